"""
Environment-driven settings for the NeuroVichar backend.

Values are read from the process environment on every `get_settings()` call so
that a `.env` loaded after import (or a test monkeypatch) is respected.
"""
from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() == "true"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Settings(BaseModel):
    # Workflow engine
    use_mock_orkes_client: bool = False
    orkes_server_url: Optional[str] = None
    orkes_key_id: Optional[str] = None
    orkes_key_secret: Optional[str] = None
    workflow_name: str = "neuro_synapse_workflow_v1"
    poll_interval_sec: float = 2.0
    max_poll_attempts: int = 15
    mock_workflow_min_sec: float = 2.0
    mock_workflow_max_sec: float = 3.5
    # Where the engine's HTTP tasks reach the agent routes
    agents_base_url: str = "http://localhost:8000"

    # Agents
    agent_delay_scale: float = 1.0

    # Providers
    genai_api_key: Optional[str] = None
    gateway_url: Optional[str] = None
    gateway_token: Optional[str] = None
    serpapi_api_key: Optional[str] = None

    database_url: str = "sqlite+aiosqlite:///./neurovichar.db"
    log_level: str = "INFO"

    @property
    def orkes_credentials_present(self) -> bool:
        return bool(self.orkes_server_url and self.orkes_key_id and self.orkes_key_secret)

    @property
    def genai_configured(self) -> bool:
        return bool(self.genai_api_key)

    @property
    def gateway_configured(self) -> bool:
        return bool(self.gateway_url and self.gateway_token)


def get_settings() -> Settings:
    return Settings(
        use_mock_orkes_client=_env_bool("USE_MOCK_ORKES_CLIENT"),
        orkes_server_url=os.getenv("ORKES_SERVER_URL") or None,
        orkes_key_id=os.getenv("ORKES_KEY_ID") or None,
        orkes_key_secret=os.getenv("ORKES_KEY_SECRET") or None,
        workflow_name=os.getenv("NEURO_SYNAPSE_WORKFLOW_NAME", "neuro_synapse_workflow_v1"),
        poll_interval_sec=_env_float("NEURO_SYNAPSE_POLL_INTERVAL_SEC", 2.0),
        max_poll_attempts=_env_int("NEURO_SYNAPSE_MAX_POLL_ATTEMPTS", 15),
        mock_workflow_min_sec=_env_float("MOCK_WORKFLOW_MIN_SEC", 2.0),
        mock_workflow_max_sec=_env_float("MOCK_WORKFLOW_MAX_SEC", 3.5),
        agents_base_url=(os.getenv("AGENTS_BASE_URL") or "http://localhost:8000").rstrip("/"),
        agent_delay_scale=_env_float("AGENT_DELAY_SCALE", 1.0),
        genai_api_key=(
            os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or os.getenv("GENAI_API_KEY") or None
        ),
        gateway_url=os.getenv("VERCEL_AI_GATEWAY_URL") or None,
        gateway_token=os.getenv("VERCEL_AI_GATEWAY_TOKEN") or None,
        serpapi_api_key=os.getenv("SERPAPI_API_KEY") or None,
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./neurovichar.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
