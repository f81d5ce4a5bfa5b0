"""Workflow-engine records, shaped like the Conductor REST payloads."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkflowStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TERMINATED = "TERMINATED"
    TIMED_OUT = "TIMED_OUT"
    PAUSED = "PAUSED"


TERMINAL_FAILURE_STATES = {WorkflowStatus.FAILED, WorkflowStatus.TERMINATED, WorkflowStatus.TIMED_OUT}


class WorkflowTask(BaseModel):
    model_config = ConfigDict(extra="allow")

    taskReferenceName: Optional[str] = None
    taskDefName: Optional[str] = None
    status: Optional[str] = None
    outputData: Dict[str, Any] = Field(default_factory=dict)
    # Populated by the mock client; the real engine leaves them unset.
    id: Optional[str] = None
    taskDescription: Optional[str] = None
    assignedAgent: Optional[str] = None
    resultSummary: Optional[str] = None
    workflowTask: Optional[Dict[str, Any]] = None


class Workflow(BaseModel):
    model_config = ConfigDict(extra="allow")

    workflowId: str
    workflowName: Optional[str] = None
    status: str
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Dict[str, Any] = Field(default_factory=dict)
    tasks: List[WorkflowTask] = Field(default_factory=list)
    startTime: Optional[Any] = None
    reasonForIncompletion: Optional[str] = None


class TaskDef(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    ownerEmail: Optional[str] = None


class WorkflowDef(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    version: int = 1
    tasks: List[Dict[str, Any]] = Field(default_factory=list)
    ownerEmail: Optional[str] = None
