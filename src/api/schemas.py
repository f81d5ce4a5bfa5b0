from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

# --- API Models ---

class StartResponse(BaseModel):
    job_id: str
    trace_id: str

# --- Schema-validated agent routes ---

class CodeExecutorInput(BaseModel):
    description: str = Field(min_length=1)
    language: str = "python"

class CodeExecutorOutput(BaseModel):
    generatedCode: str
    languageUsed: str
    executionNotes: Optional[str] = None

class EvaluateInput(BaseModel):
    contentToEvaluate: Any = None
    evaluationCriteria: Optional[List[str]] = None

class EvaluateOutput(BaseModel):
    evaluationScore: float = Field(ge=0.0, le=1.0)
    feedback: str
    passed: bool

class ImageExecutorInput(BaseModel):
    prompt: str = Field(min_length=1)

# --- Diagram layout ---

class DiagramLayoutResponse(BaseModel):
    positions: Dict[str, Dict[str, float]]
    width: float
    height: float
