import unittest

from smlt_backend.errors import FilterParseError
from smlt_backend.index.filters import (
    AllOf,
    FieldEquals,
    FieldExists,
    FieldIn,
    FieldRange,
    MetadataFilter,
    parse_filter_expression,
)
from smlt_backend.observer import PipelineObserver
from smlt_backend.retriever.filters import build_combined_filter


class ParseFilterExpressionTests(unittest.TestCase):
    def test_equality(self):
        parsed = parse_filter_expression("category:news")
        self.assertIsInstance(parsed, FieldEquals)
        self.assertTrue(parsed.matches({"category": "news"}))
        self.assertTrue(parsed.matches({"category": ["blog", "news"]}))
        self.assertFalse(parsed.matches({"category": "blog"}))
        self.assertFalse(parsed.matches({}))
        self.assertEqual(parsed.to_where(), {"category": {"$eq": "news"}})

    def test_numbers_compare_with_stored_strings(self):
        parsed = parse_filter_expression("year:2020")
        self.assertEqual(parsed.value, 2020)
        self.assertTrue(parsed.matches({"year": 2020}))
        self.assertTrue(parsed.matches({"year": "2020"}))

    def test_quoted_phrase(self):
        parsed = parse_filter_expression('title:"exact phrase"')
        self.assertEqual(parsed.value, "exact phrase")
        self.assertTrue(parsed.matches({"title": "exact phrase"}))

    def test_negation(self):
        for expression in ("-category:news", "NOT category:news"):
            parsed = parse_filter_expression(expression)
            self.assertTrue(parsed.negate)
            self.assertFalse(parsed.matches({"category": "news"}))
            self.assertTrue(parsed.matches({"category": "blog"}))
            self.assertEqual(parsed.to_where(), {"category": {"$ne": "news"}})

    def test_membership(self):
        parsed = parse_filter_expression("category:(news OR blog)")
        self.assertIsInstance(parsed, FieldIn)
        self.assertTrue(parsed.matches({"category": "blog"}))
        self.assertFalse(parsed.matches({"category": "food"}))
        self.assertEqual(parsed.to_where(), {"category": {"$in": ["news", "blog"]}})

    def test_open_range(self):
        parsed = parse_filter_expression("year:[2020 TO *]")
        self.assertIsInstance(parsed, FieldRange)
        self.assertTrue(parsed.matches({"year": 2020}))
        self.assertFalse(parsed.matches({"year": 2019}))
        self.assertEqual(parsed.to_where(), {"year": {"$gte": 2020}})

    def test_exclusive_range(self):
        parsed = parse_filter_expression("year:{2020 TO 2022}")
        self.assertFalse(parsed.matches({"year": 2020}))
        self.assertTrue(parsed.matches({"year": 2021}))
        self.assertFalse(parsed.matches({"year": 2022}))
        self.assertEqual(
            parsed.to_where(),
            {"$and": [{"year": {"$gt": 2020}}, {"year": {"$lt": 2022}}]},
        )

    def test_range_on_incomparable_value_does_not_match(self):
        parsed = parse_filter_expression("year:[2020 TO *]")
        self.assertFalse(parsed.matches({"year": "recent"}))

    def test_negated_range_has_no_where_clause(self):
        parsed = parse_filter_expression("-year:[2020 TO *]")
        self.assertTrue(parsed.matches({"year": 2019}))
        self.assertIsNone(parsed.to_where())

    def test_exists(self):
        parsed = parse_filter_expression("summary:*")
        self.assertIsInstance(parsed, FieldExists)
        self.assertTrue(parsed.matches({"summary": "text"}))
        self.assertFalse(parsed.matches({"summary": []}))
        self.assertIsNone(parsed.to_where())

    def test_malformed_expressions(self):
        for expression in (
            "",
            "   ",
            "no field separator",
            "year:[2020 TO",
            'title:"open',
            "category:two words",
            "category:(news",
            "category:()",
        ):
            with self.subTest(expression=expression):
                with self.assertRaises(FilterParseError):
                    parse_filter_expression(expression)


class CombinedFilterTests(unittest.TestCase):
    def test_all_of(self):
        self.assertIsNone(MetadataFilter.all_of([]))
        single = FieldEquals("category", "ops")
        self.assertIs(MetadataFilter.all_of([single]), single)

        combined = MetadataFilter.all_of([single, FieldRange("year", 2020)])
        self.assertIsInstance(combined, AllOf)
        self.assertEqual(combined.fields(), ("category", "year"))
        self.assertTrue(combined.matches({"category": "ops", "year": 2021}))
        self.assertFalse(combined.matches({"category": "ops", "year": 2019}))
        self.assertEqual(
            combined.to_where(),
            {"$and": [{"category": {"$eq": "ops"}}, {"year": {"$gte": 2020}}]},
        )

    def test_inexpressible_child_makes_where_none(self):
        combined = MetadataFilter.all_of([FieldEquals("category", "ops"), FieldExists("summary")])
        self.assertIsNone(combined.to_where())

    def test_invalid_expression_is_reported_and_skipped(self):
        rejected = []

        class RecordingObserver(PipelineObserver):
            def filter_rejected(self, expression, error):
                rejected.append((expression, error))

        combined = build_combined_filter(
            ["category:two words", "", "category:ops"],
            parse_filter_expression,
            RecordingObserver(),
        )
        self.assertIsInstance(combined, FieldEquals)
        self.assertEqual(len(rejected), 1)
        self.assertEqual(rejected[0][0], "category:two words")
        self.assertIsInstance(rejected[0][1], FilterParseError)

    def test_no_expressions_means_no_filter(self):
        self.assertIsNone(build_combined_filter([], parse_filter_expression, PipelineObserver()))


if __name__ == "__main__":
    unittest.main()
