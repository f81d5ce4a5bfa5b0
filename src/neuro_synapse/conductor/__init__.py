from .factory import (
    ConductorClient,
    conductor_mode,
    get_conductor_client,
    register_neuro_synapse_workflow,
    reset_conductor_client,
)
from .http import OrkesConductorClient
from .mock import MockConductorClient
from .models import TaskDef, Workflow, WorkflowDef, WorkflowStatus, WorkflowTask

__all__ = [
    "ConductorClient",
    "MockConductorClient",
    "OrkesConductorClient",
    "TaskDef",
    "Workflow",
    "WorkflowDef",
    "WorkflowStatus",
    "WorkflowTask",
    "conductor_mode",
    "get_conductor_client",
    "register_neuro_synapse_workflow",
    "reset_conductor_client",
]
