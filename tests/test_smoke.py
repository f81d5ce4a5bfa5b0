import importlib

from fastapi.testclient import TestClient


def _client():
    # conftest has prepared the environment; import server afterwards
    server = importlib.import_module("server")
    return TestClient(server.app)


def test_health_ok():
    with _client() as client:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


def test_analyzer_round_trip():
    with _client() as client:
        resp = client.post("/api/agents/analyzer", json={"input": {"mainPrompt": "Write a summary of solar"}})
        assert resp.status_code == 200
        assert len(resp.json()["deconstructedSubTasks"]) == 2


def test_cors_allows_dev_frontend():
    with _client() as client:
        resp = client.options(
            "/api/health",
            headers={"Origin": "http://localhost:9002", "Access-Control-Request-Method": "GET"},
        )
        assert resp.headers.get("access-control-allow-origin") == "http://localhost:9002"


def test_run_through_mock_workflow():
    with _client() as client:
        resp = client.post("/api/neuro-synapse/run", json={"mainPrompt": "Draw a picture of a lighthouse"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["decomposedTasks"]
        assert body["workflowDiagramData"]["nodes"]
