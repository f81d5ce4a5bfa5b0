from __future__ import annotations

import logging
from typing import Any, Dict, List

from .base import simulate_delay

logger = logging.getLogger(__name__)

AGENT_TASK_NAMES: Dict[str, str] = {
    "ExecutorWebSearch": "execute_web_search_task",
    "ExecutorImage": "execute_image_generation_task",
    "ExecutorCode": "execute_code_generation_task",
    "ExecutorText": "execute_text_synthesis_task",
}


def create_execution_plan(analyzer_output: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map the analyzer's sub-tasks onto executor task definitions.

    The resulting `executionPlan` is the dynamic task list a FORK_JOIN_DYNAMIC
    consumes. Sub-tasks assigned to an unknown agent are skipped.
    """
    details = f'Execution plan based on: "{analyzer_output.get("analysisSummary", "")}". '
    original_prompt = analyzer_output.get("originalPrompt")
    has_image = analyzer_output.get("hasImageContext", False)
    plan: List[Dict[str, Any]] = []

    for sub_task in analyzer_output.get("deconstructedSubTasks") or []:
        agent = sub_task.get("agent")
        task_name = AGENT_TASK_NAMES.get(agent)
        if task_name is None:
            logger.warning("[PlannerAgent] Unknown agent type: %s for task %s. Skipping.", agent, sub_task.get("id"))
            continue

        task_input: Dict[str, Any] = {
            "promptFragment": sub_task.get("description"),
            "originalPrompt": original_prompt,
            "hasImageContext": has_image,
        }
        if agent == "ExecutorText":
            task_input["contextData"] = "General context from planner."
        if sub_task.get("dependsOn"):
            task_input["dependsOn"] = list(sub_task["dependsOn"])

        plan.append({
            "name": task_name,
            "taskReferenceName": f"{sub_task.get('id')}_{task_name}",
            "input": task_input,
        })
        details += f'Scheduled {agent} for: "{sub_task.get("description")}". '

    if not plan:
        details += "No executable tasks planned based on analyzer output. Consider a fallback or default action."
    else:
        details += f"Total {len(plan)} executor tasks scheduled for parallel execution."

    return {
        "executionPlan": plan,
        "planSummary": details,
        "originalPrompt": original_prompt,
        "hasImageContext": has_image,
    }


async def plan(analyzer_output: Dict[str, Any]) -> Dict[str, Any]:
    logger.info("[PlannerAgent] Received %d sub-task(s)", len(analyzer_output.get("deconstructedSubTasks") or []))
    await simulate_delay(0.5, 1.0)
    result = create_execution_plan(analyzer_output)
    logger.info("[PlannerAgent] Plan created with %d task(s)", len(result["executionPlan"]))
    return result
