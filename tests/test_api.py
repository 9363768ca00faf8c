import unittest

from fastapi.testclient import TestClient

from smlt_backend.errors import IndexAccessError
from smlt_backend.index import SnapshotProvider, StaticSnapshotProvider
from smlt_backend.main import create_app

from tests.corpus import sample_snapshot


class UnavailableProvider(SnapshotProvider):
    def _load(self):
        raise IndexAccessError("chroma unreachable")


class SmltEndpointTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(create_app(StaticSnapshotProvider(sample_snapshot())))

    def test_disabled_request_returns_empty_object(self):
        response = self.client.get("/smlt")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {})

        response = self.client.get("/smlt", params={"smlt.id": "a"})
        self.assertEqual(response.json(), {})

    def test_similar_documents(self):
        response = self.client.get(
            "/smlt",
            params={"smlt": "true", "smlt.id": "a", "smlt.mode": "vector_only", "smlt.count": "2"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()["semanticMoreLikeThis"]
        self.assertEqual(body["sourceId"], "a")
        self.assertEqual(body["mode"], "vector_only")
        self.assertEqual(body["numFound"], 2)
        self.assertEqual([doc["id"] for doc in body["docs"]], ["b", "d"])
        self.assertEqual(body["docs"][1]["category"], ["ops", "net"])

    def test_filter_queries_are_applied(self):
        response = self.client.get(
            "/smlt",
            params={"smlt": "true", "smlt.id": "a", "fq": ["category:ops", "year:[2020 TO *]"]},
        )
        body = response.json()["semanticMoreLikeThis"]
        self.assertEqual([doc["id"] for doc in body["docs"]], ["d"])

    def test_unknown_source(self):
        response = self.client.get("/smlt", params={"smlt": "true", "smlt.id": "missing"})
        self.assertEqual(
            response.json(),
            {"semanticMoreLikeThis": {"sourceId": "missing", "mode": "hybrid", "numFound": 0, "docs": []}},
        )

    def test_bad_parameter_is_client_error(self):
        response = self.client.get(
            "/smlt", params={"smlt": "true", "smlt.id": "a", "smlt.mode": "semantic"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("smlt.mode", response.json()["detail"])

    def test_health_and_refresh(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok", "documents": 5})
        self.assertEqual(
            self.client.post("/api/index/refresh").json(),
            {"success": True, "documents": 5},
        )


class UnavailableIndexTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(create_app(UnavailableProvider()))

    def test_smlt_request_fails_with_server_error(self):
        response = self.client.get("/smlt", params={"smlt": "true", "smlt.id": "a"})
        self.assertEqual(response.status_code, 500)

    def test_health_reports_unavailable(self):
        self.assertEqual(self.client.get("/health").status_code, 503)

    def test_refresh_fails_with_server_error(self):
        self.assertEqual(self.client.post("/api/index/refresh").status_code, 500)


if __name__ == "__main__":
    unittest.main()
