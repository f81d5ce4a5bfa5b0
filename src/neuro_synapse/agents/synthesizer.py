from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Optional

from src.config import get_settings
from src.llm import LLM_ERRORS, llm_configured, llm_text

from .base import simulate_delay

logger = logging.getLogger(__name__)

DEFAULT_COMPLIANCE = {
    "isCompliant": True,
    "confidenceScore": 0.8,
    "issuesFound": ["Ethical check step might have been skipped or failed if data is missing."],
}


def _aggregate_answer(data: Dict[str, Any], outputs: List[Any], ethical: Optional[Dict[str, Any]]) -> str:
    answer = f'Synthesis for prompt: "{data["originalPrompt"]}".\n'
    if data.get("hasImageContext"):
        answer += "Image context was considered.\n"
    if data.get("analysisSummary"):
        answer += f"\nAnalysis: {data['analysisSummary']}\n"
    if data.get("planSummary"):
        answer += f"Plan: {data['planSummary']}\n"

    answer += "\nKey findings from execution:\n"
    for i, out in enumerate(outputs):
        if not out:
            continue
        ref = out.get("taskReferenceName") or f"executor_{i + 1}"
        answer += f"\n--- Output from {ref} ---\n"
        if out.get("generatedCode"):
            answer += (f"Generated Code (snippet):\n```{out.get('language') or ''}\n"
                       f"{out['generatedCode'][:150]}...\n```\n")
        if out.get("imageDataUri"):
            answer += "Generated Image: [Image data present - will be displayed in UI]\n"
        if out.get("imageUrl"):
            answer += f"Generated Image (mock URL): {out['imageUrl']}\n"
        if out.get("synthesizedText"):
            answer += f"Synthesized Text: {out['synthesizedText'][:200]}...\n"
        if isinstance(out.get("searchResults"), list):
            top = out["searchResults"][0].get("title") if out["searchResults"] else None
            answer += f"Web Search Summary: {out.get('summary')}\nTop result: {top or 'N/A'}\n"
        if out.get("error"):
            answer += f"Error in this task: {out['error']}\n"

    if ethical:
        answer += f"\n\nEthical Compliance: {'Pass' if ethical.get('isCompliant') else 'Fail'}.\n"
        if not ethical.get("isCompliant") and ethical.get("issuesFound"):
            answer += f"Issues: {', '.join(ethical['issuesFound'])}\n"
    return answer


def _explanation(data: Dict[str, Any], outputs: List[Any], ethical: Optional[Dict[str, Any]]) -> str:
    text = f'The prompt "{data["originalPrompt"]}" was processed. '
    text += data.get("analysisSummary") or "It was analyzed. "
    text += data.get("planSummary") or "A plan was formulated. "
    text += f" {len(outputs)} executor tasks were run. "
    if ethical:
        text += f"An ethical review was performed (Compliant: {'true' if ethical.get('isCompliant') else 'false'}). "
    return text + "Results were then synthesized."


def _llm_prompt(data: Dict[str, Any], outputs: List[Any], ethical: Optional[Dict[str, Any]]) -> str:
    agent_lines = []
    for i, out in enumerate(outputs):
        if not out:
            agent_lines.append(f"Agent {i + 1}: No output received.")
            continue
        line = f"Agent {out.get('taskReferenceName') or f'Executor {i + 1}'}:\n"
        if out.get("generatedCode"):
            line += f"  Code: {out['generatedCode'][:100]}...\n"
        if out.get("imageDataUri") or out.get("imageUrl"):
            line += "  Image: [Image generated]\n"
        if out.get("synthesizedText"):
            line += f"  Text: {out['synthesizedText'][:100]}...\n"
        if out.get("searchResults"):
            line += f"  WebSearch: {out.get('summary')}\n"
        if out.get("error"):
            line += f"  Error: {out['error']}\n"
        agent_lines.append(line)

    issues = ", ".join((ethical or {}).get("issuesFound") or []) or "None"
    return (
        f"Original User Prompt: {data['originalPrompt']}\n"
        f"{'User provided image context.' if data.get('hasImageContext') else ''}\n\n"
        f"Analysis Summary: {data.get('analysisSummary') or 'Not available.'}\n"
        f"Execution Plan Summary: {data.get('planSummary') or 'Not available.'}\n\n"
        f"Individual Agent Outputs:\n" + "\n".join(agent_lines) + "\n\n"
        f"Ethical Check Result: Compliant: {(ethical or {}).get('isCompliant')}, Issues: {issues}\n\n"
        "Based on all the above, provide a comprehensive, synthesized answer for the original user prompt. "
        "Combine insights and present a coherent response. Explain the workflow taken to arrive at this answer."
    )


def _result_summary(out: Dict[str, Any]) -> str:
    if out.get("imageDataUri"):
        return "[Image Generated]"
    if out.get("generatedCode"):
        return "[Code Generated]"
    return out.get("synthesizedText") or out.get("summary") or json.dumps(out, default=str)[:100] + "..."


def _decomposed_tasks(outputs: List[Any]) -> List[Dict[str, Any]]:
    tasks = []
    for i, out in enumerate(outputs):
        out = out or {}
        ref = out.get("taskReferenceName")
        parts = ref.split("_") if ref else []
        tasks.append({
            "id": ref or f"exec_task_{i}",
            "taskDescription": out.get("promptFragment") or "Executor Task",
            "assignedAgent": parts[1] if len(parts) > 1 and parts[1] else "Executor",
            "status": out.get("status") or "UNKNOWN",
            "resultSummary": _result_summary(out),
        })
    return tasks


SYNTHESIZER_DIAGRAM = {
    "nodes": [
        {"id": "input", "label": "User Prompt", "type": "input"},
        {"id": "synthesizer", "label": "Result Synthesizer", "type": "process"},
        {"id": "output", "label": "Final Output", "type": "output"},
    ],
    "edges": [
        {"id": "e1", "source": "input", "target": "synthesizer", "animated": True},
        {"id": "e2", "source": "synthesizer", "target": "output", "animated": True},
    ],
}


async def synthesize_results(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Aggregate executor outputs into the final answer shape.

    `data` carries originalPrompt, hasImageContext, analysisSummary,
    planSummary, executorOutputs and ethicalCheckResult.
    """
    outputs: List[Any] = data.get("executorOutputs") or []
    ethical: Optional[Dict[str, Any]] = data.get("ethicalCheckResult")
    logger.info("[ResultSynthesizer] Synthesizing results for prompt: %r", data["originalPrompt"])

    answer = _aggregate_answer(data, outputs, ethical)
    explanation = _explanation(data, outputs, ethical)

    if llm_configured() and not get_settings().use_mock_orkes_client:
        try:
            text = await llm_text("synthesizeResults", _llm_prompt(data, outputs, ethical))
            answer = text or "LLM-based synthesis failed, using basic aggregation."
            explanation = (
                "The prompt was processed through multiple AI agents. An LLM synthesized the final "
                "response based on their collective outputs and an ethical review."
            )
        except LLM_ERRORS as e:
            logger.error("[ResultSynthesizer] LLM Synthesis Error: %s", e)
            answer += "\n(LLM-based final synthesis failed, using basic aggregated data.)"

    return {
        "originalPrompt": data["originalPrompt"],
        "hasImageContext": bool(data.get("hasImageContext")),
        "decomposedTasks": _decomposed_tasks(outputs),
        "synthesizedAnswer": answer,
        "workflowExplanation": explanation,
        "workflowDiagramData": copy.deepcopy(SYNTHESIZER_DIAGRAM),
        "toolUsages": [],
        "ethicalCompliance": ethical or dict(DEFAULT_COMPLIANCE),
    }


async def synthesize(data: Dict[str, Any]) -> Dict[str, Any]:
    await simulate_delay(1.0, 1.5)
    result = await synthesize_results(data)
    logger.info("[ResultSynthesizer] Synthesis complete.")
    return result
