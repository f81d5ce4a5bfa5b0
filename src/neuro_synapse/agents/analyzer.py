from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .base import simulate_delay

logger = logging.getLogger(__name__)


def _has_any(text: str, words: List[str]) -> bool:
    return any(w in text for w in words)


def deconstruct_prompt(prompt: str, image_data_uri: Optional[str] = None) -> Dict[str, Any]:
    """
    Keyword-based prompt deconstruction.

    The first matching rule wins: report/summary, then image, then code,
    otherwise a general research + synthesis pair.
    """
    sub_tasks: List[Dict[str, str]] = []
    details = f'Analyzed prompt: "{prompt}". '
    details += "Image context was provided and considered. " if image_data_uri else "No image context provided. "

    lowered = prompt.lower()
    if _has_any(lowered, ["report", "summary"]):
        sub_tasks.append({"id": "task_data_gathering",
                          "description": "Gather relevant data for the report/summary.",
                          "agent": "ExecutorWebSearch"})
        sub_tasks.append({"id": "task_report_writing",
                          "description": "Write the report/summary based on gathered data.",
                          "agent": "ExecutorText"})
        details += "Identified need for data gathering and report writing. "
    elif _has_any(lowered, ["image", "picture", "generate art"]):
        sub_tasks.append({"id": "task_image_generation",
                          "description": f'Generate image based on prompt: "{prompt}"',
                          "agent": "ExecutorImage"})
        details += "Identified need for image generation. "
    elif _has_any(lowered, ["code", "script", "develop"]):
        sub_tasks.append({"id": "task_code_generation",
                          "description": f'Generate code/script for: "{prompt}"',
                          "agent": "ExecutorCode"})
        details += "Identified need for code generation. "
    else:
        sub_tasks.append({"id": "task_general_research",
                          "description": f'General research and information synthesis for: "{prompt}"',
                          "agent": "ExecutorWebSearch"})
        sub_tasks.append({"id": "task_general_synthesis",
                          "description": "Synthesize findings from research.",
                          "agent": "ExecutorText"})
        details += "Identified need for general research and synthesis. "

    return {
        "deconstructedSubTasks": sub_tasks,
        "analysisSummary": details + f"Decomposed into {len(sub_tasks)} primary sub-task(s).",
        "originalPrompt": prompt,
        "hasImageContext": bool(image_data_uri),
    }


async def analyze(main_prompt: str, image_data_uri: Optional[str] = None) -> Dict[str, Any]:
    logger.info("[AnalyzerAgent] Received prompt: %s, Image provided: %s", main_prompt, bool(image_data_uri))
    await simulate_delay(1.0, 2.0)
    result = deconstruct_prompt(main_prompt, image_data_uri)
    logger.info("[AnalyzerAgent] Analysis complete: %d sub-task(s)", len(result["deconstructedSubTasks"]))
    return result


def _executor_for(agent_hint: Optional[str], description: str) -> str:
    text = (agent_hint or description).lower()
    if _has_any(text, ["image", "picture", "illustrat", "visual", "draw"]):
        return "ExecutorImage"
    if _has_any(text, ["code", "script", "program", "develop"]):
        return "ExecutorCode"
    if _has_any(text, ["research", "search", "web", "gather", "data"]):
        return "ExecutorWebSearch"
    return "ExecutorText"


def from_decomposition(decomposition: Any, image_data_uri: Optional[str] = None) -> Dict[str, Any]:
    """
    Turn a `decompose_prompt` result into analyzer output.

    Free-form agent names are mapped onto the four executors and each
    sub-task's `dependencies` become `dependsOn`. Dependencies on ids the
    decomposition does not contain are dropped.
    """
    known = {s.taskId for s in decomposition.subtasks}
    sub_tasks: List[Dict[str, Any]] = []
    for s in decomposition.subtasks:
        sub_task: Dict[str, Any] = {
            "id": s.taskId,
            "description": s.description,
            "agent": _executor_for(s.assignedAgent, s.description),
        }
        depends_on = [d for d in s.dependencies or [] if d in known and d != s.taskId]
        if depends_on:
            sub_task["dependsOn"] = depends_on
        sub_tasks.append(sub_task)

    prompt = decomposition.originalPrompt
    details = f'Analyzed prompt: "{prompt}". '
    details += "Image context was provided and considered. " if image_data_uri else "No image context provided. "
    details += f"{decomposition.summary} " if decomposition.summary else ""
    return {
        "deconstructedSubTasks": sub_tasks,
        "analysisSummary": details + f"Decomposed into {len(sub_tasks)} primary sub-task(s).",
        "originalPrompt": prompt,
        "hasImageContext": bool(image_data_uri),
    }
