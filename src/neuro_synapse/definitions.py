from __future__ import annotations

import os
from typing import List, Optional, Tuple

import yaml

from .conductor.models import TaskDef, WorkflowDef

DEFAULT_OWNER_EMAIL = "dev@neurovichar.ai"

DEFAULT_WORKFLOW_PATH = os.path.join(os.path.dirname(__file__), "workflows", "neuro_synapse_workflow_v1.yaml")


def load_workflow_definition(path: Optional[str] = None) -> Tuple[WorkflowDef, List[TaskDef]]:
    """Load a workflow definition YAML and the task definitions it declares.

    Task definitions live under a top-level `taskDefinitions` key; they are
    split off the workflow body because the engine registers them separately.
    Each one gets a default `ownerEmail` when the YAML leaves it out.
    """
    with open(path or DEFAULT_WORKFLOW_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or not data.get("name"):
        raise ValueError("Workflow definition is invalid or missing a name.")

    raw_task_defs = data.pop("taskDefinitions", None) or []
    task_defs = [TaskDef.model_validate({"ownerEmail": DEFAULT_OWNER_EMAIL, **td}) for td in raw_task_defs]
    return WorkflowDef.model_validate(data), task_defs
