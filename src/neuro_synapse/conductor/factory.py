from __future__ import annotations

import logging
from typing import List, Optional, Union

from src.config import Settings, get_settings
from .http import OrkesConductorClient
from .mock import MockConductorClient
from .models import TaskDef, WorkflowDef

logger = logging.getLogger(__name__)

ConductorClient = Union[OrkesConductorClient, MockConductorClient]

_client: Optional[ConductorClient] = None


def _new_mock(settings: Settings) -> MockConductorClient:
    return MockConductorClient(min_delay=settings.mock_workflow_min_sec, max_delay=settings.mock_workflow_max_sec)


def get_conductor_client(settings: Optional[Settings] = None) -> ConductorClient:
    """Return the process-wide workflow client, mock or real per environment."""
    global _client
    settings = settings or get_settings()

    if settings.use_mock_orkes_client:
        if not isinstance(_client, MockConductorClient):
            logger.warning("USE_MOCK_ORKES_CLIENT is true. Using MOCK Orkes client. No real Orkes calls will be made.")
            _client = _new_mock(settings)
        return _client

    if _client is None or isinstance(_client, MockConductorClient):
        if not settings.orkes_credentials_present:
            logger.error(
                "ORKES_SERVER_URL, ORKES_KEY_ID, or ORKES_KEY_SECRET environment variables are not set "
                "for REAL Orkes client. Falling back to MOCK."
            )
            if not isinstance(_client, MockConductorClient):
                _client = _new_mock(settings)
            return _client
        try:
            _client = OrkesConductorClient(
                server_url=settings.orkes_server_url,
                key_id=settings.orkes_key_id,
                key_secret=settings.orkes_key_secret,
            )
            logger.info("Real OrkesConductorClient initialized successfully.")
        except Exception:
            logger.exception("Failed to initialize REAL OrkesConductorClient. Falling back to MOCK.")
            _client = _new_mock(settings)
    return _client


def conductor_mode(settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    if settings.use_mock_orkes_client or not settings.orkes_credentials_present:
        return "mock"
    return "orkes"


async def reset_conductor_client() -> None:
    global _client
    client, _client = _client, None
    if isinstance(client, MockConductorClient):
        client.shutdown()
    elif isinstance(client, OrkesConductorClient):
        await client.aclose()


async def register_neuro_synapse_workflow(workflow_def: WorkflowDef, task_defs: List[TaskDef],
                                          client: Optional[ConductorClient] = None) -> None:
    client = client or get_conductor_client()
    try:
        await client.metadata_resource.update_workflow_defs([workflow_def])
        if task_defs:
            await client.metadata_resource.register_task_defs(task_defs)
        if isinstance(client, MockConductorClient):
            logger.info("[MockOrkes] Neuro Synapse workflow and tasks (mock) registration functions called.")
        else:
            logger.info("Neuro Synapse workflow and tasks registration attempted with Orkes Cloud.")
    except Exception:
        logger.exception("Error while registering the Neuro Synapse workflow")
