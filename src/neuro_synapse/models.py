from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

NodeType = Literal["input", "agent", "process", "output", "tool", "decision"]


class SubTask(BaseModel):
    id: str
    taskDescription: str
    assignedAgent: str
    status: str
    resultSummary: Optional[str] = None
    outputData: Optional[Dict[str, Any]] = None


class ToolUsage(BaseModel):
    toolName: str
    toolInput: Any = None
    toolOutput: Any = None


class EthicalCompliance(BaseModel):
    isCompliant: bool
    issuesFound: List[str] = Field(default_factory=list)
    confidenceScore: float = Field(ge=0.0, le=1.0)
    remediationSuggestions: List[str] = Field(default_factory=list)
    checkedStage: Optional[str] = None


class DiagramNode(BaseModel):
    id: str
    label: str
    type: NodeType


class DiagramEdge(BaseModel):
    id: str
    source: str
    target: str
    animated: bool = False
    label: Optional[str] = None


class WorkflowDiagramData(BaseModel):
    nodes: List[DiagramNode] = Field(default_factory=list)
    edges: List[DiagramEdge] = Field(default_factory=list)


class NeuroSynapseInput(BaseModel):
    mainPrompt: str
    imageDataUri: Optional[str] = None

    @field_validator("mainPrompt")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("mainPrompt must not be empty")
        return v


class NeuroSynapseOutput(BaseModel):
    workflowId: Optional[str] = None
    originalPrompt: str
    hasImageContext: bool = False
    decomposedTasks: List[SubTask] = Field(default_factory=list)
    synthesizedAnswer: str
    workflowExplanation: str
    toolUsages: List[ToolUsage] = Field(default_factory=list)
    ethicalCompliance: EthicalCompliance
    workflowDiagramData: WorkflowDiagramData = Field(default_factory=WorkflowDiagramData)
