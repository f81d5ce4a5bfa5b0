from unittest.mock import AsyncMock, patch

import httpx
import pytest
from pydantic import BaseModel

from src import llm
from src.services.usage import snapshot


class Verdict(BaseModel):
    ok: bool


def _completion(content):
    return {"choices": [{"message": {"content": content}}]}


def test_task_models_and_env_override(monkeypatch):
    assert llm.get_model_for_task("decomposePrompt") == "gemini-1.5-pro"
    assert llm.get_model_for_task("somethingElse") == llm.DEFAULT_MODEL
    monkeypatch.setenv("LLM_MODEL_SUMMARIZEWEBPAGE", "gemini-2.0-flash")
    assert llm.get_model_for_task("summarizeWebPage") == "gemini-2.0-flash"


@pytest.mark.asyncio
async def test_no_provider_configured():
    assert llm.llm_configured() is False
    with pytest.raises(RuntimeError, match="No LLM provider configured"):
        await llm.route_llm_call("textSynthesis", [{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_gateway_is_preferred(monkeypatch):
    monkeypatch.setenv("VERCEL_AI_GATEWAY_URL", "https://gateway.test/v1")
    monkeypatch.setenv("VERCEL_AI_GATEWAY_TOKEN", "token")
    snapshot(reset=True)
    with patch("src.llm.route_via_gateway", new_callable=AsyncMock) as gateway:
        gateway.return_value = _completion("from gateway")
        resp = await llm.route_llm_call("textSynthesis", [{"role": "user", "content": "hi"}])
    assert resp["choices"][0]["message"]["content"] == "from gateway"
    assert snapshot()["providers"]["gateway"]["totals"]["calls"] == 1


@pytest.mark.asyncio
async def test_gateway_failure_falls_back_to_gemini(monkeypatch):
    monkeypatch.setenv("VERCEL_AI_GATEWAY_URL", "https://gateway.test")
    monkeypatch.setenv("VERCEL_AI_GATEWAY_TOKEN", "token")
    monkeypatch.setenv("GOOGLE_API_KEY", "key")
    with patch("src.llm.route_via_gateway", new_callable=AsyncMock) as gateway, \
            patch("src.llm.generate_text", new_callable=AsyncMock) as gemini:
        gateway.side_effect = httpx.ConnectError("refused")
        gemini.return_value = "from gemini"
        resp = await llm.route_llm_call(
            "decomposePrompt",
            [{"role": "system", "content": "be brief"}, {"role": "user", "content": "hi"}],
            {"temperature": 0.2},
        )
    assert resp == _completion("from gemini")
    model, prompt, temperature = gemini.await_args.args
    assert model == "gemini-1.5-pro"
    assert prompt == "SYSTEM: be brief\n\nUSER: hi"
    assert temperature == 0.2


@pytest.mark.asyncio
async def test_json_is_read_through_code_fences():
    with patch("src.llm.route_llm_call", new_callable=AsyncMock) as route:
        route.return_value = _completion('```json\n{"ok": true}\n```')
        assert await llm.llm_structured("analyzeData", "judge this", Verdict) == Verdict(ok=True)
    assert "JSON schema" in route.await_args.args[1][1]["content"]


@pytest.mark.asyncio
async def test_invalid_json_raises_value_error():
    with patch("src.llm.route_llm_call", new_callable=AsyncMock) as route:
        route.return_value = _completion("sorry, I can't")
        with pytest.raises(ValueError):
            await llm.llm_json("analyzeData", "judge this")


@pytest.mark.asyncio
async def test_schema_mismatch_is_a_value_error():
    with patch("src.llm.route_llm_call", new_callable=AsyncMock) as route:
        route.return_value = _completion('{"ok": "maybe"}')
        with pytest.raises(ValueError):
            await llm.llm_structured("analyzeData", "judge this", Verdict)
