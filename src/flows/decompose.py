from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

from pydantic import BaseModel

from src.llm import LLM_ERRORS, llm_structured
from src.neuro_synapse.errors import FlowError

logger = logging.getLogger(__name__)


class Subtask(BaseModel):
    taskId: str
    description: str
    assignedAgent: Optional[str] = None
    dependencies: Optional[List[str]] = None


class DecomposePromptInput(BaseModel):
    complexPrompt: str
    context: Optional[str] = None


class DecomposePromptOutput(BaseModel):
    originalPrompt: str = ""
    subtasks: List[Subtask]
    summary: str


def build_prompt(data: DecomposePromptInput) -> str:
    context = f'\nAdditional Context:\n"{data.context}"\n' if data.context else ""
    return f"""You are the Neuro Synapse, an advanced AI prompt decomposition engine.
Your task is to break down a complex user prompt into a series of smaller, manageable subtasks.
Each subtask should be clearly defined and, where possible, assigned to a conceptual AI agent type best suited to handle it.
Also, identify any dependencies between subtasks.

Complex Prompt:
"{data.complexPrompt}"
{context}
Analyze the complex prompt and provide:
1. The original prompt.
2. A list of subtasks, each with:
    - taskId: A unique identifier (e.g., "task_001", "task_002").
    - description: A clear and concise description of what needs to be done.
    - assignedAgent: (Optional) Suggest a type of AI agent (e.g., "Data Analyst", "Creative Writer", "Code Generator", "Web Researcher", "Image Generator").
    - dependencies: (Optional) A list of task IDs that this task depends on.
3. A brief summary of your decomposition strategy.

Ensure the subtasks are logical and cover all aspects of the original prompt.
The goal is to create a plan that allows multiple specialized AI agents to work in parallel or sequentially to fulfill the user's request."""


async def decompose_prompt(data: Union[DecomposePromptInput, dict, Any]) -> DecomposePromptOutput:
    data = DecomposePromptInput.model_validate(data)
    try:
        output = await llm_structured("decomposePrompt", build_prompt(data), DecomposePromptOutput)
    except LLM_ERRORS as e:
        logger.error("Prompt decomposition failed: %s", e)
        raise FlowError(
            "The AI model failed to generate a valid decomposition. Please try a different prompt or refine your input."
        ) from e
    return output.model_copy(update={"originalPrompt": data.complexPrompt})
