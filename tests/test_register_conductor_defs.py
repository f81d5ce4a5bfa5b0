import json
from unittest.mock import patch

import httpx
import pytest

from scripts.register_conductor_defs import register
from src.neuro_synapse.conductor import OrkesConductorClient


@pytest.mark.asyncio
async def test_mock_mode_skips_registration():
    assert await register() == 0


@pytest.mark.asyncio
async def test_missing_credentials(monkeypatch):
    monkeypatch.setenv("USE_MOCK_ORKES_CLIENT", "false")
    assert await register() == 1


def _orkes_env(monkeypatch):
    monkeypatch.setenv("USE_MOCK_ORKES_CLIENT", "false")
    monkeypatch.setenv("ORKES_SERVER_URL", "https://conductor.test/api")
    monkeypatch.setenv("ORKES_KEY_ID", "id")
    monkeypatch.setenv("ORKES_KEY_SECRET", "secret")


@pytest.mark.asyncio
async def test_registers_workflow_then_task_defs(monkeypatch):
    _orkes_env(monkeypatch)
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/token":
            return httpx.Response(200, json={"token": "t"})
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={})

    def build(server_url, key_id, key_secret):
        return OrkesConductorClient(server_url, key_id, key_secret, transport=httpx.MockTransport(handler))

    with patch("src.neuro_synapse.conductor.OrkesConductorClient", side_effect=build):
        assert await register() == 0

    assert [(method, path) for method, path, _ in seen] == [
        ("PUT", "/api/metadata/workflow"),
        ("POST", "/api/metadata/taskdefs"),
    ]
    assert seen[0][2][0]["name"] == "neuro_synapse_workflow_v1"
    assert all(td["ownerEmail"] for td in seen[1][2])


@pytest.mark.asyncio
async def test_rejected_registration_returns_error(monkeypatch):
    _orkes_env(monkeypatch)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/token":
            return httpx.Response(200, json={"token": "t"})
        return httpx.Response(400, json={"message": "ownerEmail missing"})

    def build(server_url, key_id, key_secret):
        return OrkesConductorClient(server_url, key_id, key_secret, transport=httpx.MockTransport(handler))

    with patch("src.neuro_synapse.conductor.OrkesConductorClient", side_effect=build):
        assert await register() == 1
