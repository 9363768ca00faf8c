import unittest
from unittest import mock

import requests

from smlt_backend.client import SmltClient


def _response(status_code=200, body=None, invalid_json=False):
    response = mock.Mock()
    response.status_code = status_code
    if invalid_json:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


class SmltClientTests(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.client = SmltClient("http://search.local:8788/", timeout=2.0, session=self.session)

    def test_returns_similar_documents(self):
        record = {"sourceId": "a", "mode": "hybrid", "numFound": 1, "docs": [{"id": "b", "score": 1.0}]}
        self.session.get.return_value = _response(body={"semanticMoreLikeThis": record})

        result = self.client.find_similar("a", count=3, filter_queries=["category:ops"])

        self.assertEqual(result, record)
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], "http://search.local:8788/smlt")
        self.assertEqual(kwargs["timeout"], 2.0)
        self.assertEqual(kwargs["params"]["smlt"], "true")
        self.assertEqual(kwargs["params"]["smlt.id"], "a")
        self.assertEqual(kwargs["params"]["smlt.count"], 3)
        self.assertEqual(kwargs["params"]["fq"], ["category:ops"])

    def test_http_error_returns_empty_record(self):
        self.session.get.return_value = _response(status_code=500)
        with self.assertLogs("smlt_backend.client", level="WARNING"):
            result = self.client.find_similar("a", mode="vector_only")
        self.assertEqual(result, {"sourceId": "a", "mode": "vector_only", "numFound": 0, "docs": []})

    def test_transport_error_returns_empty_record(self):
        self.session.get.side_effect = requests.ConnectionError("refused")
        with self.assertLogs("smlt_backend.client", level="ERROR"):
            result = self.client.find_similar("a")
        self.assertEqual(result["numFound"], 0)
        self.assertEqual(result["docs"], [])

    def test_missing_response_key_returns_empty_record(self):
        self.session.get.return_value = _response(body={})
        self.assertEqual(self.client.find_similar("a")["numFound"], 0)

    def test_invalid_json_returns_empty_record(self):
        self.session.get.return_value = _response(invalid_json=True)
        self.assertEqual(self.client.find_similar("a")["docs"], [])


if __name__ == "__main__":
    unittest.main()
