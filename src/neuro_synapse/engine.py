"""
In-process Neuro Synapse pipeline.

Runs the same agents the workflow engine calls over HTTP, in order:
analyzer, planner, executors, ethical check, synthesizer. Executors run in
dependency waves; every node whose dependencies are done runs concurrently,
and a failed node does not stop its siblings.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from src.config import get_settings
from src.flows.decompose import decompose_prompt
from src.jobs import Phase
from src.llm import llm_configured
from src.progress import ProgressReporter

from .agents import analyzer, ethical_checker, planner, synthesizer
from .agents.executors import EXECUTORS
from .diagram import build_diagram_from_plan
from .errors import FlowError
from .models import NeuroSynapseInput, NeuroSynapseOutput, SubTask

logger = logging.getLogger(__name__)

Executor = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

COMPLETED = "COMPLETED"
FAILED = "FAILED"
SKIPPED = "SKIPPED"


def resolve_dependencies(plan: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Map each plan entry's task ref to the refs it depends on.

    `dependsOn` may name either a task ref or the analyzer sub-task id the
    ref was built from. Raises ValueError on an unknown dependency or a cycle.
    """
    refs = [entry["taskReferenceName"] for entry in plan]
    if len(set(refs)) != len(refs):
        raise ValueError("Duplicate taskReferenceName in execution plan.")
    by_subtask_id = {}
    for entry in plan:
        ref, name = entry["taskReferenceName"], entry.get("name") or ""
        if name and ref.endswith("_" + name):
            by_subtask_id[ref[: -len(name) - 1]] = ref

    deps: Dict[str, List[str]] = {}
    for entry in plan:
        ref = entry["taskReferenceName"]
        resolved = []
        for dep in (entry.get("input") or {}).get("dependsOn") or []:
            target = dep if dep in refs else by_subtask_id.get(dep)
            if target is None:
                raise ValueError(f"Task {ref} depends on unknown task {dep}.")
            resolved.append(target)
        deps[ref] = resolved

    # Kahn check before anything runs
    remaining = {ref: set(d) for ref, d in deps.items()}
    while remaining:
        ready = [ref for ref, d in remaining.items() if not d]
        if not ready:
            raise ValueError(f"Dependency cycle among tasks: {', '.join(sorted(remaining))}")
        for ref in ready:
            del remaining[ref]
        for d in remaining.values():
            d.difference_update(ready)
    return deps


def _summary_of(output: Dict[str, Any]) -> str:
    if output.get("error"):
        return f"Error: {output['error']}"
    if output.get("imageDataUri") or output.get("imageUrl"):
        return "[Image Generated]"
    if output.get("generatedCode"):
        return "[Code Generated]"
    return output.get("summary") or output.get("synthesizedText") or output.get("status") or ""


def _with_resolved_deps(plan: List[Dict[str, Any]], deps: Dict[str, List[str]]) -> List[Dict[str, Any]]:
    resolved = []
    for entry in plan:
        task_input = dict(entry.get("input") or {})
        if deps[entry["taskReferenceName"]]:
            task_input["dependsOn"] = deps[entry["taskReferenceName"]]
        resolved.append({**entry, "input": task_input})
    return resolved


class LocalWorkflowEngine:
    def __init__(self, executors: Optional[Dict[str, Executor]] = None):
        self.executors = dict(EXECUTORS if executors is None else executors)

    async def analyze(self, data: NeuroSynapseInput) -> Dict[str, Any]:
        """LLM decomposition when a provider is configured, keyword rules otherwise."""
        if llm_configured() and not get_settings().use_mock_orkes_client:
            try:
                decomposition = await decompose_prompt({"complexPrompt": data.mainPrompt})
            except FlowError as e:
                logger.warning("Decomposition failed, using keyword analysis: %s", e)
            else:
                if decomposition.subtasks:
                    return analyzer.from_decomposition(decomposition, data.imageDataUri)
                logger.warning("Decomposition returned no sub-tasks, using keyword analysis")
        return await analyzer.analyze(data.mainPrompt, data.imageDataUri)

    async def _run_node(self, entry: Dict[str, Any], upstream: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        executor = self.executors.get(entry["name"])
        if executor is None:
            raise ValueError(f"No executor registered for task {entry['name']}")
        task_input = dict(entry.get("input") or {})
        if upstream:
            task_input["upstreamOutputs"] = upstream
        return await executor(task_input)

    async def dispatch(self, plan: List[Dict[str, Any]],
                       on_wave: Optional[Callable[[Dict[str, str]], Awaitable[None]]] = None,
                       ) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, str]]:
        """
        Run every plan entry in dependency waves.

        Returns ({ref: output}, {ref: COMPLETED|FAILED|SKIPPED}), both in plan
        order. A dependency cycle raises ValueError before any executor runs.
        """
        deps = resolve_dependencies(plan)
        entries = {e["taskReferenceName"]: e for e in plan}
        status: Dict[str, str] = {}
        outputs: Dict[str, Dict[str, Any]] = {}

        while len(status) < len(plan):
            for ref, d in deps.items():
                if ref not in status and any(status.get(x) in (FAILED, SKIPPED) for x in d):
                    status[ref] = SKIPPED
                    outputs[ref] = {"error": f"Skipped because a dependency failed: {', '.join(d)}",
                                    "status": SKIPPED}
            wave = [ref for ref, d in deps.items()
                    if ref not in status and all(status.get(x) == COMPLETED for x in d)]
            if not wave:
                continue

            results = await asyncio.gather(
                *(self._run_node(entries[ref], {d: outputs[d] for d in deps[ref]}) for ref in wave),
                return_exceptions=True,
            )
            for ref, result in zip(wave, results):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, BaseException):
                    logger.error("Executor task %s failed: %s", ref, result)
                    status[ref] = FAILED
                    outputs[ref] = {"error": str(result) or type(result).__name__, "status": FAILED}
                else:
                    status[ref] = FAILED if result.get("status") == FAILED else COMPLETED
                    outputs[ref] = result
            if on_wave:
                await on_wave(status)

        return {ref: outputs[ref] for ref in entries}, {ref: status[ref] for ref in entries}

    async def run(self, data: Union[NeuroSynapseInput, Dict[str, Any]],
                  progress: Optional[ProgressReporter] = None) -> NeuroSynapseOutput:
        data = NeuroSynapseInput.model_validate(data)
        workflow_id = f"local_wf_{uuid.uuid4().hex[:12]}"

        async def report(phase: Phase, pct: int, **kw):
            if progress:
                await progress.checkpoint()
                await progress.update(phase, pct, **kw)

        await report(Phase.analysis, 5, message="Analyzing prompt")
        analysis = await self.analyze(data)

        await report(Phase.planning, 20, message=analysis["analysisSummary"])
        plan_result = await planner.plan(analysis)
        plan = plan_result["executionPlan"]
        deps = resolve_dependencies(plan)

        await report(Phase.execution, 35, metrics={"tasks_planned": len(plan)}, message=plan_result["planSummary"])

        async def on_wave(status: Dict[str, str]):
            counts = {s: sum(1 for v in status.values() if v == s) for s in (COMPLETED, FAILED, SKIPPED)}
            await report(
                Phase.execution, 35 + int(40 * len(status) / max(1, len(plan))),
                metrics={"tasks_completed": counts[COMPLETED], "tasks_failed": counts[FAILED],
                         "tasks_skipped": counts[SKIPPED]},
                message=f"{len(status)}/{len(plan)} executor task(s) finished",
            )

        outputs, status = await self.dispatch(plan, on_wave=on_wave)

        sub_tasks = []
        executor_outputs = []
        for entry in plan:
            ref = entry["taskReferenceName"]
            fragment = entry["input"].get("promptFragment")
            sub_tasks.append(SubTask(
                id=ref,
                taskDescription=fragment or entry["name"],
                assignedAgent=entry["name"],
                status=status[ref],
                resultSummary=_summary_of(outputs[ref]),
                outputData=outputs[ref],
            ))
            executor_outputs.append({**outputs[ref], "taskReferenceName": ref, "promptFragment": fragment})

        await report(Phase.ethical_review, 80, partial=sub_tasks, message="Reviewing executor outputs")
        ethical = await ethical_checker.check(executor_outputs, data.mainPrompt, "pre_synthesis")

        await report(Phase.synthesis, 90, message="Synthesizing results")
        synthesized = await synthesizer.synthesize({
            "originalPrompt": data.mainPrompt,
            "hasImageContext": bool(data.imageDataUri),
            "analysisSummary": analysis["analysisSummary"],
            "planSummary": plan_result["planSummary"],
            "executorOutputs": executor_outputs,
            "ethicalCheckResult": ethical,
        })

        return NeuroSynapseOutput(
            workflowId=workflow_id,
            originalPrompt=data.mainPrompt,
            hasImageContext=bool(data.imageDataUri),
            decomposedTasks=sub_tasks,
            synthesizedAnswer=synthesized["synthesizedAnswer"],
            workflowExplanation=synthesized["workflowExplanation"],
            toolUsages=[],
            ethicalCompliance=ethical,
            workflowDiagramData=build_diagram_from_plan(_with_resolved_deps(plan, deps)),
        )
