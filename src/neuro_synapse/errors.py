from __future__ import annotations

from typing import Any, Optional


class NeuroSynapseError(Exception):
    """Base class for orchestration errors."""


class WorkflowNotFoundError(NeuroSynapseError):
    """Raised when the workflow engine has no record of a workflow id."""

    def __init__(self, workflow_id: str, data: Optional[Any] = None):
        self.workflow_id = workflow_id
        self.status = 404
        self.data = data if data is not None else f"Workflow with id {workflow_id} not found."
        super().__init__(f"Workflow {workflow_id} not found.")


class ConductorError(NeuroSynapseError):
    """Transport or HTTP failure talking to the workflow engine."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[Any] = None):
        self.status = status
        self.body = body
        super().__init__(message)


class WorkflowExecutionError(NeuroSynapseError):
    """The workflow reached a terminal, unsuccessful state."""

    def __init__(self, workflow_id: str, status: str, reason: Optional[str] = None):
        self.workflow_id = workflow_id
        self.status = status
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Workflow {workflow_id} ended with status {status}{detail}")


class WorkflowTimeoutError(NeuroSynapseError):
    def __init__(self, workflow_id: str, attempts: int, last_status: Optional[str] = None):
        self.workflow_id = workflow_id
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            f"Workflow {workflow_id} did not complete after {attempts} polling attempts "
            f"(last status: {last_status or 'unknown'})."
        )


class FlowError(NeuroSynapseError):
    """An LLM flow produced no usable output."""


class WorkflowOutputError(NeuroSynapseError):
    """The workflow completed but its answer does not fit `NeuroSynapseOutput`."""

    def __init__(self, workflow_id: str, detail: str):
        self.workflow_id = workflow_id
        self.detail = detail
        super().__init__(f"Workflow {workflow_id} returned an invalid answer: {detail}")
