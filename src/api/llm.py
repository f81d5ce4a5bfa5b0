from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from src.llm import LLM_ERRORS, get_model_for_task, route_llm_call


router = APIRouter(prefix="/api/llm", tags=["llm"])


class ChatMessage(BaseModel):
    role: str
    content: Any


class RouteRequest(BaseModel):
    taskName: str
    messages: List[ChatMessage]
    options: Optional[Dict[str, Any]] = None


@router.post("/route")
async def route(req: RouteRequest) -> Dict[str, Any]:
    try:
        return await route_llm_call(req.taskName, [m.model_dump() for m in req.messages], req.options)
    except LLM_ERRORS as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/model/{task_name}")
async def model_for_task(task_name: str) -> Dict[str, str]:
    return {"taskName": task_name, "model": get_model_for_task(task_name)}
