from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from .base import preview, simulate_delay

logger = logging.getLogger(__name__)


def perform_ethical_check(content: Any, original_prompt: str, stage: str) -> Dict[str, Any]:
    """Rule-based compliance check. The last rule that fires sets the confidence."""
    logger.info("[EthicalChecker] Performing check for stage: %s, content: %s", stage, preview(content))

    is_compliant = True
    issues: List[str] = []
    remediations: List[str] = []
    confidence = 0.95

    text = json.dumps(content, default=str).lower()

    if "harmful" in text or "hate speech" in text:
        is_compliant = False
        issues.append("Content may contain harmful or hate speech elements.")
        remediations.append("Rephrase or remove problematic content.")
        confidence = 0.8
    if "illegal activity" in text:
        is_compliant = False
        issues.append("Content may describe or promote illegal activities.")
        remediations.append("Ensure content aligns with legal guidelines.")
        confidence = 0.75
    if "manipulate" in (original_prompt or "").lower() and stage == "final_output":
        is_compliant = False
        issues.append("The original prompt had manipulative intent, and the final output might reflect this.")
        remediations.append(
            "Review prompt intent and ensure output is neutral and factual if manipulation was detected."
        )
        confidence = 0.6

    if is_compliant:
        logger.info("[EthicalChecker] Content deemed compliant.")
    else:
        logger.warning("[EthicalChecker] Content flagged for ethical concerns: %s", issues)

    return {
        "isCompliant": is_compliant,
        "issuesFound": issues,
        "confidenceScore": confidence,
        "remediationSuggestions": remediations,
        "checkedStage": stage,
    }


async def check(content: Any, original_prompt: str, stage: str) -> Dict[str, Any]:
    await simulate_delay(0.5, 0.8)
    return perform_ethical_check(content, original_prompt, stage)
