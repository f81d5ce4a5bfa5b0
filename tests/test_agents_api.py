from unittest.mock import AsyncMock, patch

import pytest

from src.flows.generate_image import GenerateImageOutput
from src.neuro_synapse.errors import FlowError


@pytest.mark.asyncio
@pytest.mark.parametrize("path, body, message", [
    ("/api/agents/analyzer", {"input": {}}, "Missing mainPrompt in request body"),
    ("/api/agents/planner", {"input": {"analysisSummary": "s"}}, "Missing or invalid analyzer_output in request body"),
    ("/api/agents/executor-code", {}, "Missing or invalid input for code executor"),
    ("/api/agents/executor-image", {"input": {"promptFragment": ""}}, "Missing or invalid input for image executor"),
    ("/api/agents/executor-web-search", {"input": {}}, "Missing or invalid input for web search executor"),
    ("/api/agents/ethical-checker", {"input": {"contentToReview": "x"}}, "Missing or invalid input for ethical checker"),
    ("/api/agents/result-synthesizer", {"input": {"originalPrompt": "p"}},
     "Missing or invalid input for result synthesizer"),
])
async def test_missing_input_returns_error_shape(client, path, body, message):
    resp = await client.post(path, json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": message}


@pytest.mark.asyncio
async def test_analyzer_then_planner(client):
    resp = await client.post("/api/agents/analyzer", json={"input": {"mainPrompt": "Write a report on tides"}})
    assert resp.status_code == 200
    analysis = resp.json()
    assert len(analysis["deconstructedSubTasks"]) == 2

    resp = await client.post("/api/agents/planner", json={"input": analysis})
    assert resp.status_code == 200
    assert len(resp.json()["executionPlan"]) == 2


@pytest.mark.asyncio
async def test_empty_collections_are_accepted(client):
    resp = await client.post("/api/agents/planner", json={"input": {"deconstructedSubTasks": [], "analysisSummary": "s"}})
    assert resp.status_code == 200
    assert resp.json()["executionPlan"] == []
    assert "No executable tasks planned" in resp.json()["planSummary"]

    resp = await client.post("/api/agents/ethical-checker", json={"input": {
        "contentToReview": {}, "originalPrompt": "p", "currentStage": "pre_synthesis",
    }})
    assert resp.status_code == 200
    assert resp.json()["isCompliant"] is True
    assert resp.json()["confidenceScore"] == 0.95


@pytest.mark.asyncio
async def test_executor_routes(client):
    code = await client.post("/api/agents/executor-code", json={"input": {"promptFragment": "Say Hello"}})
    assert code.json()["status"] == "COMPLETED"

    image = await client.post("/api/agents/executor-image", json={"input": {"promptFragment": "a fox"}})
    assert image.json()["status"] == "COMPLETED_MOCK"

    search = await client.post("/api/agents/executor-web-search", json={"input": {"promptFragment": "tides"}})
    assert len(search.json()["searchResults"]) == 3


@pytest.mark.asyncio
async def test_ethical_checker_and_synthesizer(client):
    resp = await client.post("/api/agents/ethical-checker", json={"input": {
        "contentToReview": ["hate speech sample"], "originalPrompt": "p", "currentStage": "pre_synthesis",
    }})
    assert resp.status_code == 200
    ethical = resp.json()
    assert ethical["isCompliant"] is False
    assert ethical["confidenceScore"] == 0.8

    resp = await client.post("/api/agents/result-synthesizer", json={"input": {
        "originalPrompt": "p", "executorOutputs": [], "ethicalCheckResult": ethical,
    }})
    assert resp.status_code == 200
    assert "Ethical Compliance: Fail." in resp.json()["synthesizedAnswer"]


@pytest.mark.asyncio
async def test_unexpected_failure_returns_500(client):
    with patch("src.api.agents.executors.execute_code", new_callable=AsyncMock) as execute:
        execute.side_effect = RuntimeError("disk full")
        resp = await client.post("/api/agents/executor-code", json={"input": {"promptFragment": "x"}})
    assert resp.status_code == 500
    assert resp.json() == {"error": "disk full"}


@pytest.mark.asyncio
async def test_schema_validated_code_route(client):
    resp = await client.post("/api/agents/executor/code", json={"description": "sort a list"})
    assert resp.status_code == 200
    assert resp.json()["languageUsed"] == "python"

    resp = await client.post("/api/agents/executor/code", json={"description": ""})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid input"
    assert body["details"][0]["loc"] == ["description"]


@pytest.mark.asyncio
async def test_evaluate_route(client):
    resp = await client.post("/api/agents/executor/evaluate", json={"contentToEvaluate": {"text": "essay"}})
    assert resp.status_code == 200
    body = resp.json()
    assert 0.5 <= body["evaluationScore"] <= 1.0
    assert "general quality" in body["feedback"]

    resp = await client.post("/api/agents/executor/evaluate", json={"evaluationCriteria": "not a list"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_image_flow_route(client):
    resp = await client.post("/api/agents/executor/image", json={})
    assert resp.status_code == 400

    with patch("src.api.agents.generate_image", new_callable=AsyncMock) as gen:
        gen.return_value = GenerateImageOutput(imageDataUri="data:image/png;base64,AA", promptUsed="fox")
        resp = await client.post("/api/agents/executor/image", json={"prompt": "fox"})
    assert resp.status_code == 200
    assert resp.json() == {"imageDataUri": "data:image/png;base64,AA", "promptUsed": "fox"}

    with patch("src.api.agents.generate_image", new_callable=AsyncMock) as gen:
        gen.side_effect = FlowError("Failed to generate image: quota")
        resp = await client.post("/api/agents/executor/image", json={"prompt": "fox"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate image: quota"}
