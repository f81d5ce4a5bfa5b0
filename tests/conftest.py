import os

# Settings are read from the environment on every call, but the database
# engine is built at import time, so this has to run before `server` loads.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_neurovichar.db"
os.environ["USE_MOCK_ORKES_CLIENT"] = "true"
os.environ["AGENT_DELAY_SCALE"] = "0"
os.environ["MOCK_WORKFLOW_MIN_SEC"] = "0.05"
os.environ["MOCK_WORKFLOW_MAX_SEC"] = "0.1"
os.environ["NEURO_SYNAPSE_POLL_INTERVAL_SEC"] = "0.05"
# Empty values win over anything a local .env would load
for _key in (
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "GENAI_API_KEY",
    "VERCEL_AI_GATEWAY_URL",
    "VERCEL_AI_GATEWAY_TOKEN",
    "SERPAPI_API_KEY",
    "ORKES_SERVER_URL",
    "ORKES_KEY_ID",
    "ORKES_KEY_SECRET",
):
    os.environ[_key] = ""

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from src.neuro_synapse.conductor import factory
from src.neuro_synapse.conductor.mock import MockConductorClient


@pytest.fixture(autouse=True)
def fresh_conductor_client():
    yield
    client, factory._client = factory._client, None
    if isinstance(client, MockConductorClient):
        client.shutdown()


@pytest_asyncio.fixture
async def client():
    from server import app

    async with LifespanManager(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists("./test_neurovichar.db"):
        os.remove("./test_neurovichar.db")
