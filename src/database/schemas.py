import uuid
import datetime
from typing import Any, Dict
from pydantic import BaseModel

# Schema for recording a run (internal)
class WorkflowRunCreate(BaseModel):
    workflow_id: str | None = None
    workflow_name: str
    prompt: str
    status: str
    output: Dict[str, Any] | None = None
    error: str | None = None

# Schema for reading a run (response)
class WorkflowRun(BaseModel):
    id: uuid.UUID
    workflow_id: str | None = None
    workflow_name: str
    prompt: str
    status: str
    output: Dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime | None = None

    model_config = {"from_attributes": True}
