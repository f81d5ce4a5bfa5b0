from __future__ import annotations

import logging
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from src.llm import LLM_ERRORS, llm_structured
from src.neuro_synapse.errors import FlowError

logger = logging.getLogger(__name__)

ActionType = Literal[
    "EXECUTE_NEUROSYNAPSE",
    "SUGGEST_IMAGE_GENERATION",
    "SUMMARIZE_DOCUMENT_FOCUS",
    "NAVIGATE",
    "CLARIFY",
    "INFORM",
    "NONE",
]


class DeviceStatus(BaseModel):
    batteryLevel: Optional[float] = None
    isCharging: Optional[bool] = None
    networkType: Optional[Literal["WiFi", "Cellular", "Ethernet", "Offline"]] = None


class InteractionFootprints(BaseModel):
    typingRhythm: Optional[Literal["fast", "moderate", "slow", "erratic"]] = None
    copyPasteActivity: Optional[bool] = None
    appSwitchFrequency: Optional[Literal["high", "medium", "low"]] = None


class UserContext(BaseModel):
    recentSearches: Optional[List[str]] = None
    visitedPages: Optional[List[str]] = None
    currentFocus: Optional[str] = None
    preferredTone: Optional[Literal["formal", "casual", "technical"]] = None
    activeApplications: Optional[List[str]] = None
    calendarEvents: Optional[List[str]] = None
    timeOfDay: Optional[str] = None
    deviceStatus: Optional[DeviceStatus] = None
    interactionFootprints: Optional[InteractionFootprints] = None


class InterpretUserIntentInput(BaseModel):
    userQuery: str
    userContext: Optional[UserContext] = None


class InterpretUserIntentOutput(BaseModel):
    originalQuery: str = ""
    inferredIntent: str
    softPromptForSynapse: Optional[str] = None
    suggestedActionType: ActionType
    suggestedActionDetail: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    explanation: str


def _quoted(items: List[str]) -> str:
    return "; ".join(f'"{i}"' for i in items)


def render_context(ctx: Optional[UserContext]) -> str:
    """Render only the telemetry fields that are present."""
    if ctx is None:
        return "User's Context: Not provided. Inference will be very limited."

    lines = ["User's Context (Simulated Telemetry):"]
    if ctx.currentFocus:
        lines.append(f'  - Current Focus: "{ctx.currentFocus}"')
    if ctx.recentSearches:
        lines.append(f"  - Recent Searches: {_quoted(ctx.recentSearches)}")
    if ctx.visitedPages:
        lines.append(f"  - Visited Pages: {_quoted(ctx.visitedPages)}")
    if ctx.activeApplications:
        lines.append(f"  - Active Applications: {_quoted(ctx.activeApplications)}")
    if ctx.calendarEvents:
        lines.append(f"  - Upcoming Calendar Events: {_quoted(ctx.calendarEvents)}")
    if ctx.timeOfDay:
        lines.append(f'  - Time of Day: "{ctx.timeOfDay}"')
    fp = ctx.interactionFootprints
    if fp:
        if fp.typingRhythm:
            lines.append(f"  - Typing Rhythm: {fp.typingRhythm}")
        if fp.copyPasteActivity:
            lines.append(f"  - Recent Copy/Paste: {str(fp.copyPasteActivity).lower()}")
        if fp.appSwitchFrequency:
            lines.append(f"  - App Switch Frequency: {fp.appSwitchFrequency}")
    if ctx.deviceStatus and ctx.deviceStatus.batteryLevel:
        charging = " (Charging)" if ctx.deviceStatus.isCharging else ""
        lines.append(f"  - Battery: {ctx.deviceStatus.batteryLevel:g}%{charging}")
    if ctx.preferredTone:
        lines.append(
            f'  - Preferred Tone: "{ctx.preferredTone}" '
            "(Adapt your 'explanation' and 'inferredIntent' fields to this tone)"
        )
    return "\n".join(lines)


def build_prompt(data: InterpretUserIntentInput) -> str:
    return f"""You are an exceptionally perceptive AI assistant powering NeuroShastra for "NeuroVichar".
Your primary role is to INFER a user's most likely INTENT and generate a "SOFT PROMPT" for the NeuroSynapse engine, based ALMOST ENTIRELY on the provided 'userContext' (simulated behavioral telemetry and environmental data). The 'userQuery' might be a generic placeholder like "What should I do?" or "Infer my intent", in which case the 'userContext' is paramount.

CRITICALLY ANALYZE THE userContext:
{render_context(data.userContext)}

User's Explicit Query (may be generic):
"{data.userQuery}"

Application Features (for context on where to direct or what tasks are possible):
- / (Dashboard): Overview.
- /neuroshastra: Thought-to-task AI, decoding digital behavior for zero-input intent resolution.
- /neuro-synapse: Complex problem decomposition and synthesis. This is a primary target for complex inferred intents.
- /ai-image-generation: Generates images.
- /idea-catalyst: Helps brainstorm complex prompts.
- /web-browsing: Summarizes web pages.

Your Tasks:
1. Inferred Intent: the user's most probable underlying goal, based on the userContext. Be specific.
2. Soft Prompt for NeuroSynapse: a clear, actionable, standalone prompt derived from the inferred intent.
3. Suggested Action Type: one of EXECUTE_NEUROSYNAPSE, SUGGEST_IMAGE_GENERATION, SUMMARIZE_DOCUMENT_FOCUS, NAVIGATE, CLARIFY, INFORM, NONE.
4. Suggested Action Detail: the core task for Synapse, or the image prompt, document, navigation path, clarifying question or information.
5. Confidence: 0.0-1.0, higher when telemetry signals converge.
6. Explanation: which specific userContext elements led to the inference.

If 'userContext' is sparse or contradictory, confidence should be lower, and 'suggestedActionType' might be 'CLARIFY'."""


async def interpret_user_intent(data: Union[InterpretUserIntentInput, dict, Any]) -> InterpretUserIntentOutput:
    data = InterpretUserIntentInput.model_validate(data)
    try:
        output = await llm_structured("interpretUserIntent", build_prompt(data), InterpretUserIntentOutput)
    except LLM_ERRORS as e:
        logger.error("Intent interpretation failed: %s", e)
        raise FlowError("NeuroShastra failed to generate an interpretation.") from e
    return output.model_copy(update={"originalQuery": data.userQuery})
