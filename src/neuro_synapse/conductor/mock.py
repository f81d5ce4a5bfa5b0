"""
In-memory stand-in for the Orkes Conductor client.

Workflows are kept in a dict. Starting one schedules a timer on the running
event loop that flips it to COMPLETED and fills in a fabricated result, so the
UI and the polling entry point can be exercised without a Conductor server.
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..errors import WorkflowNotFoundError
from .models import TaskDef, Workflow, WorkflowDef, WorkflowStatus, WorkflowTask

logger = logging.getLogger(__name__)

# A RUNNING workflow older than this shows the planner step on the next poll.
PROGRESS_AFTER_SEC = 1.0


def _task(ref: str, description: str, agent: str, status: str, summary: str,
          output: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "id": ref,
        "taskDescription": description,
        "assignedAgent": agent,
        "status": status,
        "resultSummary": summary,
        "outputData": output or {},
        "taskReferenceName": ref,
        "taskDefName": agent,
        "workflowTask": {"name": description},
    }


def _mock_diagram() -> Dict[str, Any]:
    return {
        "nodes": [
            {"id": "input_prompt", "label": "User Prompt", "type": "input"},
            {"id": "analyzer", "label": "Analyzer Agent", "type": "agent"},
            {"id": "planner", "label": "Planner Agent", "type": "agent"},
            {"id": "executor_text", "label": "Text Executor", "type": "agent"},
            {"id": "ethical_checker", "label": "Ethical Check", "type": "process"},
            {"id": "synthesizer", "label": "Result Synthesizer", "type": "agent"},
            {"id": "final_output", "label": "Final Output", "type": "output"},
        ],
        "edges": [
            {"id": "e_input_analyzer", "source": "input_prompt", "target": "analyzer", "animated": True},
            {"id": "e_analyzer_planner", "source": "analyzer", "target": "planner", "animated": True},
            {"id": "e_planner_executor", "source": "planner", "target": "executor_text", "animated": True},
            {"id": "e_executor_ethical", "source": "executor_text", "target": "ethical_checker", "animated": True},
            {"id": "e_ethical_synthesizer", "source": "ethical_checker", "target": "synthesizer", "animated": True},
            {"id": "e_synthesizer_output", "source": "synthesizer", "target": "final_output", "animated": True},
        ],
    }


def build_mock_answer(workflow_input: Dict[str, Any]) -> Dict[str, Any]:
    """The fabricated `finalAnswer` a completed mock workflow reports."""
    prompt = workflow_input.get("mainPrompt") or None
    return {
        "originalPrompt": prompt or "N/A",
        "hasImageContext": bool(workflow_input.get("imageDataUri")),
        "synthesizedAnswer": (
            f"Mock synthesized answer for prompt: '{prompt or 'Not provided.'}' "
            "The process involved analyzing the prompt, creating a plan, executing sub-tasks "
            "(like text generation), performing an ethical review, and finally combining all results."
        ),
        "workflowExplanation": (
            "Mock Workflow Explanation: The user's prompt was first analyzed to understand its core "
            "components. A plan was then formulated to address these components using specialized "
            "agents. For instance, a text generation agent might have been invoked. All outputs were "
            "then reviewed for ethical compliance before being synthesized into this final response. "
            "The workflow diagram visually represents this orchestrated process."
        ),
        "toolUsages": [
            {"toolName": "MockSearchTool", "toolInput": {"query": "example"}, "toolOutput": {"results": ["Mock result 1"]}}
        ],
        "ethicalCompliance": {
            "isCompliant": True,
            "issuesFound": [],
            "confidenceScore": 0.95,
            "remediationSuggestions": [],
        },
        "workflowDiagramData": _mock_diagram(),
    }


class _MockWorkflowResource:
    def __init__(self, client: "MockConductorClient"):
        self._client = client

    async def start_workflow(self, name: str, input: Dict[str, Any], version: Optional[int] = None) -> str:
        return self._client._start(name, input or {}, version)

    async def get_workflow(self, workflow_id: str, include_tasks: bool = False) -> Workflow:
        return self._client._get(workflow_id, include_tasks)


class _MockMetadataResource:
    def __init__(self, client: "MockConductorClient"):
        self._client = client

    async def register_task_defs(self, task_defs: List[TaskDef]) -> Dict[str, Any]:
        logger.info("[MockOrkes] Registering task definitions: %s", [t.name for t in task_defs])
        for td in task_defs:
            self._client.task_defs[td.name] = td
        return {"success": True, "message": "Task definitions registered (mock)."}

    async def update_workflow_defs(self, workflow_defs: List[WorkflowDef]) -> Dict[str, Any]:
        for wd in workflow_defs:
            logger.info("[MockOrkes] Registering/Updating workflow definition: %s", wd.name)
        return {"success": True, "message": "Workflow definitions registered/updated (mock)."}

    async def get_workflow_def(self, name: str, version: Optional[int] = None) -> Optional[WorkflowDef]:
        logger.info("[MockOrkes] Getting workflow definition: %s", name)
        # Only workflows that have been started are known here.
        for wf in self._client.workflows.values():
            if wf["name"] == name:
                return WorkflowDef(name=name, version=version or 1, tasks=[], ownerEmail="mock@example.com")
        return None

    async def get_task_def(self, task_def_name: str) -> Optional[TaskDef]:
        logger.info("[MockOrkes] Getting task definition: %s", task_def_name)
        return self._client.task_defs.get(task_def_name)


class MockConductorClient:
    def __init__(self, min_delay: float = 2.0, max_delay: float = 3.5, config: Optional[Dict[str, Any]] = None):
        logger.warning(
            "MockConductorClient initialized. Network calls to Orkes will be simulated. Config: %s",
            "Provided" if config else "Not Provided",
        )
        self.min_delay = min_delay
        self.max_delay = max(max_delay, min_delay)
        self.workflows: Dict[str, Dict[str, Any]] = {}
        self.task_defs: Dict[str, TaskDef] = {}
        self._counter = 0
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self.workflow_resource = _MockWorkflowResource(self)
        self.metadata_resource = _MockMetadataResource(self)

    # ---- internals used by the resources ---------------------------------
    def _start(self, name: str, workflow_input: Dict[str, Any], version: Optional[int]) -> str:
        logger.info("[MockOrkes] Starting workflow: %s %s", name, workflow_input)
        self._counter += 1
        workflow_id = f"mock_wf_{int(time.time() * 1000)}_{self._counter}"
        self.workflows[workflow_id] = {
            "workflowId": workflow_id,
            "status": WorkflowStatus.RUNNING.value,
            "input": workflow_input,
            "name": name,
            "version": version,
            "tasks": [
                _task("mock_analyzer_task", "Analyze user prompt", "AnalyzerAgent", "RUNNING", "Analyzing..."),
            ],
            "output": {},
            "startTime": time.time(),
            "reasonForIncompletion": None,
        }
        delay = random.uniform(self.min_delay, self.max_delay)
        loop = asyncio.get_running_loop()
        self._timers[workflow_id] = loop.call_later(delay, self._complete, workflow_id)
        return workflow_id

    def _complete(self, workflow_id: str) -> None:
        self._timers.pop(workflow_id, None)
        wf = self.workflows.get(workflow_id)
        if not wf or wf["status"] != WorkflowStatus.RUNNING.value:
            return
        wf["status"] = WorkflowStatus.COMPLETED.value
        analyzer = wf["tasks"][0]
        analyzer["status"] = "COMPLETED"
        analyzer["resultSummary"] = "Mock analysis complete."
        # The early-progress path may already have appended an in-flight planner.
        wf["tasks"] = [analyzer]

        answer = build_mock_answer(wf["input"])
        wf["tasks"].extend([
            _task("mock_planner_task", "Plan execution", "PlannerAgent", "COMPLETED", "Plan generated.",
                  {"planSummary": "Mock execution plan."}),
            _task("mock_executor_task_1", "Execute sub-task 1", "ExecutorText", "COMPLETED", "Sub-task 1 done.",
                  {"synthesizedText": "Mock text result 1"}),
            _task("mock_ethical_check_task", "Ethical review", "EthicalChecker", "COMPLETED", "Ethical check passed.",
                  {"isCompliant": True, "issuesFound": [], "confidenceScore": 0.95}),
            _task("mock_synthesizer_task", "Synthesize results", "ResultSynthesizer", "COMPLETED",
                  "Final answer synthesized.", answer),
        ])
        wf["output"] = {"finalAnswer": answer}
        logger.info("[MockOrkes] Workflow %s COMPLETED (simulated).", workflow_id)

    def _get(self, workflow_id: str, include_tasks: bool) -> Workflow:
        logger.debug("[MockOrkes] Getting workflow: %s, include tasks: %s", workflow_id, include_tasks)
        wf = self.workflows.get(workflow_id)
        if wf is None:
            raise WorkflowNotFoundError(workflow_id)

        if wf["status"] == WorkflowStatus.RUNNING.value and time.time() - wf["startTime"] > PROGRESS_AFTER_SEC:
            tasks = wf["tasks"]
            if len(tasks) == 1 and tasks[0]["id"] == "mock_analyzer_task":
                tasks[0]["status"] = "COMPLETED"
                tasks[0]["resultSummary"] = "Mock analysis complete."
                tasks.append(_task("mock_planner_task", "Plan execution", "PlannerAgent", "IN_PROGRESS", "Planning..."))

        return Workflow(
            workflowId=wf["workflowId"],
            workflowName=wf["name"],
            status=wf["status"],
            input=wf["input"],
            output=wf["output"],
            tasks=[WorkflowTask.model_validate(t) for t in wf["tasks"]] if include_tasks else [],
            startTime=datetime.fromtimestamp(wf["startTime"], tz=timezone.utc).isoformat(),
            reasonForIncompletion=wf["reasonForIncompletion"],
        )

    def shutdown(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
