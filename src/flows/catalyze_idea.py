from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

from pydantic import BaseModel

from src.llm import LLM_ERRORS, llm_structured
from src.neuro_synapse.errors import FlowError

logger = logging.getLogger(__name__)


class CatalyzeIdeaInput(BaseModel):
    theme: str


class CatalyzeIdeaOutput(BaseModel):
    originalTheme: str = ""
    potentialQuestions: List[str]
    suggestedAgents: List[str]
    starterComplexPrompt: str
    creativeAngle: Optional[str] = None


def build_prompt(data: CatalyzeIdeaInput) -> str:
    return f"""You are an AI Idea Catalyst, specialized in helping users transform a general theme into a structured, complex prompt suitable for an advanced AI orchestration system like Neuro Synapse.

User's Theme:
"{data.theme}"

Your task is to:
1. Generate Potential Questions: 3-5 thought-provoking, complex questions or research directions that an AI could explore.
2. Suggest Agent Types: 2-3 types of virtual AI agents (e.g., "Financial Analyst", "Historical Researcher", "Ethical Reviewer") that would be valuable for the theme.
3. Formulate a Starter Complex Prompt: combine the theme, the questions and the idea of using multiple agents into one comprehensive prompt that instructs Neuro Synapse to decompose the problem, assign tasks to virtual agents and synthesize a multifaceted answer. Start it with "Analyze the theme of '...' by decomposing it into the following areas..."
4. Identify a Creative Angle: one unique angle the user might not have considered."""


async def catalyze_idea(data: Union[CatalyzeIdeaInput, dict, Any]) -> CatalyzeIdeaOutput:
    data = CatalyzeIdeaInput.model_validate(data)
    try:
        output = await llm_structured("catalyzeIdea", build_prompt(data), CatalyzeIdeaOutput)
    except LLM_ERRORS as e:
        logger.error("Idea catalyst failed: %s", e)
        raise FlowError("Idea Catalyst failed to generate a response.") from e
    return output.model_copy(update={"originalTheme": data.theme})
