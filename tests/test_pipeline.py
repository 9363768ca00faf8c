import unittest

from smlt_backend.errors import IndexAccessError
from smlt_backend.index.snapshot import IndexSnapshot
from smlt_backend.lexical import Analyzer
from smlt_backend.models import FusionMode, RequestConfig
from smlt_backend.observer import LoggingObserver, PipelineObserver
from smlt_backend.pipeline import SemanticMoreLikeThis, find_similar

from tests.corpus import sample_records, sample_snapshot


class RecordingObserver(PipelineObserver):
    def __init__(self):
        self.events = []

    def source_not_found(self, config):
        self.events.append(("source_not_found", config.source_id))

    def filter_rejected(self, expression, error):
        self.events.append(("filter_rejected", expression))

    def vector_missing(self, source, field):
        self.events.append(("vector_missing", source.external_id, field))

    def signal_retrieved(self, config, signal, candidates):
        self.events.append(("signal", signal, candidates))

    def request_completed(self, config, result):
        self.events.append(("completed", result.num_found))


def make_config(source_id, **overrides):
    values = {"return_fields": ("id", "title")}
    values.update(overrides)
    return RequestConfig.create(source_id=source_id, **values)


class PipelineTests(unittest.TestCase):
    def setUp(self):
        self.snapshot = sample_snapshot()
        self.observer = RecordingObserver()
        self.pipeline = SemanticMoreLikeThis(self.snapshot, observer=self.observer)

    def _ids(self, result):
        return [doc["id"] for doc in result.docs]

    def test_unknown_source_returns_empty_result(self):
        result = self.pipeline.run(make_config("missing", mode=FusionMode.VECTOR_ONLY))
        self.assertEqual(
            result.to_response(),
            {"sourceId": "missing", "mode": "vector_only", "numFound": 0, "docs": []},
        )
        self.assertIn(("source_not_found", "missing"), self.observer.events)
        self.assertEqual(self.observer.events[-1], ("completed", 0))

    def test_vector_only_without_source_vector(self):
        result = self.pipeline.run(make_config("e", mode=FusionMode.VECTOR_ONLY))
        self.assertEqual(result.num_found, 0)
        self.assertEqual(result.docs, [])
        self.assertIn(("vector_missing", "e", "content_vector"), self.observer.events)

    def test_vector_only_ranks_by_similarity(self):
        result = self.pipeline.run(make_config("a", mode=FusionMode.VECTOR_ONLY, count=2))
        self.assertEqual(self._ids(result), ["b", "d"])
        self.assertAlmostEqual(result.docs[0]["score"], 1.0)
        self.assertAlmostEqual(result.docs[0]["vectorScore"], 1.0)
        self.assertEqual(result.docs[0]["lexicalScore"], 0.0)
        self.assertEqual(result.docs[0]["title"], "Kubernetes pods")

    def test_lexical_only(self):
        result = self.pipeline.run(make_config("c", mode=FusionMode.LEXICAL_ONLY))
        self.assertEqual(result.mode, "lexical_only")
        self.assertEqual(self._ids(result), ["e"])
        self.assertAlmostEqual(result.docs[0]["score"], 1.0)
        self.assertNotIn("vector", [event[1] for event in self.observer.events if event[0] == "signal"])

    def test_hybrid_combines_both_signals(self):
        result = self.pipeline.run(make_config("a", count=3))

        self.assertEqual(result.num_found, 3)
        self.assertEqual(set(self._ids(result)), {"b", "c", "d"})
        scores = [doc["score"] for doc in result.docs]
        self.assertEqual(scores, sorted(scores, reverse=True))

        pasta = next(doc for doc in result.docs if doc["id"] == "c")
        self.assertEqual(pasta["lexicalScore"], 0.0)
        self.assertAlmostEqual(pasta["score"], 0.7 * pasta["vectorScore"])
        for doc in result.docs:
            self.assertEqual(set(doc), {"id", "title", "score", "vectorScore", "lexicalScore"})

    def test_source_never_in_results(self):
        for mode in FusionMode:
            with self.subTest(mode=mode):
                result = self.pipeline.run(make_config("a", mode=mode, count=10))
                self.assertNotIn("a", self._ids(result))
                self.assertLessEqual(result.num_found, 10)
                self.assertEqual(result.num_found, len(result.docs))

    def test_filter_restricts_both_signals(self):
        result = self.pipeline.run(make_config("a", filter_queries=("category:ops",)))
        self.assertEqual(set(self._ids(result)), {"b", "d"})

    def test_invalid_filter_is_skipped(self):
        result = self.pipeline.run(
            make_config("a", filter_queries=("category:two words", "category:ops"))
        )
        self.assertEqual(set(self._ids(result)), {"b", "d"})
        self.assertIn(("filter_rejected", "category:two words"), self.observer.events)

    def test_zero_count(self):
        result = self.pipeline.run(make_config("a", count=0))
        self.assertEqual(result.num_found, 0)

    def test_identical_scores_keep_index_order(self):
        records = [
            {"id": "src", "vectors": {"content_vector": [1.0, 0.0]}},
            {"id": "twin-1", "vectors": {"content_vector": [0.0, 1.0]}},
            {"id": "twin-2", "vectors": {"content_vector": [0.0, 1.0]}},
        ]
        snapshot = IndexSnapshot(records, analyzer=Analyzer(stopwords_language=None))
        result = find_similar(snapshot, make_config("src", mode=FusionMode.VECTOR_ONLY))
        self.assertEqual(self._ids(result), ["twin-1", "twin-2"])

    def test_index_failures_propagate(self):
        class BrokenSnapshot(IndexSnapshot):
            def vector_query(self, field, query_vector, k, filter):
                raise IndexAccessError("vector index offline")

        snapshot = BrokenSnapshot(sample_records(), analyzer=Analyzer(stopwords_language=None))
        with self.assertRaises(IndexAccessError):
            find_similar(snapshot, make_config("a"))

    def test_logging_observer_reports_rejected_filters(self):
        pipeline = SemanticMoreLikeThis(self.snapshot, observer=LoggingObserver())
        with self.assertLogs("smlt_backend.pipeline", level="WARNING") as captured:
            pipeline.run(make_config("a", filter_queries=("nonsense",)))
        self.assertTrue(any("nonsense" in line for line in captured.output))


if __name__ == "__main__":
    unittest.main()
