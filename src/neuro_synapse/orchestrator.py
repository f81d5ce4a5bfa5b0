"""
Neuro Synapse entry point: start the workflow on the engine, poll it, and map
the engine's answer onto `NeuroSynapseOutput`.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from src.config import Settings, get_settings

from .conductor import ConductorClient, Workflow, WorkflowStatus, WorkflowTask, get_conductor_client
from .conductor.models import TERMINAL_FAILURE_STATES
from .diagram import build_diagram_from_tasks
from .errors import WorkflowExecutionError, WorkflowOutputError, WorkflowTimeoutError
from .models import EthicalCompliance, NeuroSynapseInput, NeuroSynapseOutput, SubTask, WorkflowDiagramData

logger = logging.getLogger(__name__)

DEFAULT_COMPLIANCE = EthicalCompliance(
    isCompliant=True,
    issuesFound=[],
    confidenceScore=0.5,
    remediationSuggestions=["Ethical compliance data not returned by the workflow."],
)


def _summarize_output(output: Dict[str, Any]) -> Optional[str]:
    if not output:
        return None
    for key in ("resultSummary", "summary", "synthesizedText", "analysisSummary", "planSummary"):
        if isinstance(output.get(key), str) and output[key]:
            return output[key]
    text = json.dumps(output, default=str)
    return text if len(text) <= 100 else text[:100] + "..."


def task_to_subtask(task: WorkflowTask) -> SubTask:
    workflow_task = task.workflowTask or {}
    return SubTask(
        id=task.taskReferenceName or task.id or "unknown_task",
        taskDescription=task.taskDescription or workflow_task.get("name") or task.taskDefName or "Workflow task",
        assignedAgent=task.assignedAgent or task.taskDefName or "Unknown",
        status=task.status or "UNKNOWN",
        resultSummary=task.resultSummary or _summarize_output(task.outputData),
        outputData=task.outputData or None,
    )


def map_workflow_output(workflow: Workflow, fallback_input: NeuroSynapseInput) -> NeuroSynapseOutput:
    output = workflow.output or {}
    answer: Dict[str, Any] = output.get("finalAnswer", output) or {}
    tasks: List[SubTask] = [task_to_subtask(t) for t in workflow.tasks or []]

    diagram = answer.get("workflowDiagramData")
    if diagram and diagram.get("nodes"):
        diagram_data = WorkflowDiagramData.model_validate(diagram)
    else:
        diagram_data = build_diagram_from_tasks(tasks)

    compliance = answer.get("ethicalCompliance")
    return NeuroSynapseOutput(
        workflowId=workflow.workflowId,
        originalPrompt=answer.get("originalPrompt") or fallback_input.mainPrompt,
        hasImageContext=answer.get("hasImageContext", bool(fallback_input.imageDataUri)),
        decomposedTasks=tasks or [SubTask.model_validate(t) for t in answer.get("decomposedTasks") or []],
        synthesizedAnswer=answer.get("synthesizedAnswer") or "No answer was synthesized.",
        workflowExplanation=answer.get("workflowExplanation") or f"Workflow {workflow.workflowId} completed.",
        toolUsages=answer.get("toolUsages") or [],
        ethicalCompliance=EthicalCompliance.model_validate(compliance) if compliance else DEFAULT_COMPLIANCE,
        workflowDiagramData=diagram_data,
    )


async def run_neuro_synapse(
    data: Union[NeuroSynapseInput, Dict[str, Any]],
    client: Optional[ConductorClient] = None,
    settings: Optional[Settings] = None,
) -> NeuroSynapseOutput:
    """
    Start the Neuro Synapse workflow and poll until it finishes.

    Each attempt sleeps `poll_interval_sec` and then fetches the workflow, so
    the first poll happens one interval after the start.

    Raises:
        WorkflowExecutionError: the workflow ended FAILED, TERMINATED or TIMED_OUT.
        WorkflowTimeoutError: it was still running after `max_poll_attempts`.
        WorkflowOutputError: it completed with an answer that fails validation.
    """
    data = NeuroSynapseInput.model_validate(data)
    settings = settings or get_settings()
    client = client or get_conductor_client(settings)

    workflow_id = await client.workflow_resource.start_workflow(
        name=settings.workflow_name,
        input={
            "mainPrompt": data.mainPrompt,
            "imageDataUri": data.imageDataUri,
            "agentsBaseUrl": settings.agents_base_url,
        },
    )
    logger.info("Started workflow %s (%s)", workflow_id, settings.workflow_name)

    last_status: Optional[str] = None
    for attempt in range(1, settings.max_poll_attempts + 1):
        await asyncio.sleep(settings.poll_interval_sec)
        workflow = await client.workflow_resource.get_workflow(workflow_id, include_tasks=True)
        last_status = workflow.status
        logger.debug("Poll %d/%d for %s: %s", attempt, settings.max_poll_attempts, workflow_id, last_status)

        if last_status == WorkflowStatus.COMPLETED.value:
            logger.info("Workflow %s completed after %d poll(s)", workflow_id, attempt)
            try:
                return map_workflow_output(workflow, data)
            except ValidationError as e:
                logger.error("Workflow %s returned an invalid answer: %s", workflow_id, e)
                raise WorkflowOutputError(workflow_id, str(e)) from e
        if last_status in {s.value for s in TERMINAL_FAILURE_STATES}:
            logger.error("Workflow %s ended with %s: %s", workflow_id, last_status, workflow.reasonForIncompletion)
            raise WorkflowExecutionError(workflow_id, last_status, workflow.reasonForIncompletion)

    raise WorkflowTimeoutError(workflow_id, settings.max_poll_attempts, last_status)
