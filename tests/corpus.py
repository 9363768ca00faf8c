from smlt_backend.index import IndexSnapshot
from smlt_backend.lexical import Analyzer


def sample_records():
    return [
        {
            "id": "a",
            "title": "Kubernetes cluster scaling",
            "content": "autoscaling kubernetes pods across cluster nodes",
            "category": "ops",
            "year": 2021,
            "vectors": {"content_vector": [1.0, 0.0, 0.0]},
        },
        {
            "id": "b",
            "title": "Kubernetes pods",
            "content": "scheduling pods onto cluster nodes",
            "category": "ops",
            "year": 2019,
            "vectors": {"content_vector": [0.9, 0.1, 0.0]},
        },
        {
            "id": "c",
            "title": "Pasta recipe",
            "content": "tomato basil garlic pasta",
            "category": "food",
            "year": 2022,
            "vectors": {"content_vector": [0.0, 1.0, 0.0]},
        },
        {
            "id": "d",
            "title": "Cluster networking",
            "content": "kubernetes networking between nodes",
            "category": ["ops", "net"],
            "year": 2023,
            "vectors": {"content_vector": [0.7, 0.0, 0.7]},
        },
        {
            "id": "e",
            "title": "Garden notes",
            "content": "basil growing tips",
            "category": "garden",
            "year": 2020,
        },
    ]


def sample_snapshot(records=None):
    # No stopword list keeps the expected terms independent of the stopword corpus.
    return IndexSnapshot(
        sample_records() if records is None else records,
        analyzer=Analyzer(stopwords_language=None),
    )
