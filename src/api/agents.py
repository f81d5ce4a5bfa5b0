"""
Agent endpoints the workflow engine calls as HTTP tasks.

Bodies follow the worker convention `{"input": {...}}`. Errors keep the
`{"error": ...}` shape rather than FastAPI's `{"detail": ...}` because the
engine's task definitions read that key.
"""
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from src.api.schemas import CodeExecutorInput, EvaluateInput, ImageExecutorInput
from src.flows.generate_image import generate_image
from src.neuro_synapse.agents import analyzer, ethical_checker, executors, planner, synthesizer
from src.neuro_synapse.agents.evaluator import evaluate_content, generate_code_snippet
from src.neuro_synapse.errors import FlowError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/agents",
    tags=["agents"],
)


def _error(message: str, status_code: int = 400, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _server_error(tag: str, e: Exception, default: str = "An unknown error occurred") -> JSONResponse:
    logger.exception("[%s] Error: %s", tag, e)
    return _error(str(e) or default, status_code=500)


async def _input_of(request: Request) -> Dict[str, Any]:
    body = await request.json()
    value = body.get("input") if isinstance(body, dict) else None
    return value if isinstance(value, dict) else {}


def _blank(value: Any) -> bool:
    """Falsy the way the engine's JSON payloads treat it: empty lists and objects still count."""
    return value is None or value is False or value == "" or (isinstance(value, (int, float)) and value == 0)


def _validate(model: type, body: Any) -> BaseModel:
    return model.model_validate(body if body is not None else {})


def _invalid(tag: str, e: ValidationError) -> JSONResponse:
    details = json.loads(e.json(include_url=False))
    logger.error("[%s] Validation error: %s", tag, details)
    return _error("Invalid input", details=details)


@router.post("/analyzer")
async def run_analyzer(request: Request):
    try:
        data = await _input_of(request)
        if not data.get("mainPrompt"):
            return _error("Missing mainPrompt in request body")
        return await analyzer.analyze(data["mainPrompt"], data.get("imageDataUri"))
    except Exception as e:
        return _server_error("AnalyzerAgent", e)


@router.post("/planner")
async def run_planner(request: Request):
    try:
        data = await _input_of(request)
        if _blank(data.get("deconstructedSubTasks")):
            return _error("Missing or invalid analyzer_output in request body")
        return await planner.plan(data)
    except Exception as e:
        return _server_error("PlannerAgent", e)


@router.post("/executor-code")
async def run_code_executor(request: Request):
    try:
        data = await _input_of(request)
        if not data.get("promptFragment"):
            return _error("Missing or invalid input for code executor")
        return await executors.execute_code(data)
    except Exception as e:
        return _server_error("ExecutorCode", e)


@router.post("/executor-image")
async def run_image_executor(request: Request):
    try:
        data = await _input_of(request)
        if not data.get("promptFragment"):
            return _error("Missing or invalid input for image executor")
        result = await executors.execute_image(data)
        logger.info("[ExecutorImage] Image generation result: %s", result["status"])
        return result
    except Exception as e:
        return _server_error("ExecutorImage", e)


@router.post("/executor-web-search")
async def run_web_search_executor(request: Request):
    try:
        data = await _input_of(request)
        if not data.get("promptFragment"):
            return _error("Missing or invalid input for web search executor")
        return await executors.execute_web_search(data)
    except Exception as e:
        return _server_error("ExecutorWebSearch", e)


@router.post("/ethical-checker")
async def run_ethical_checker(request: Request):
    try:
        data = await _input_of(request)
        if _blank(data.get("contentToReview")) or _blank(data.get("currentStage")):
            return _error("Missing or invalid input for ethical checker")
        return await ethical_checker.check(
            data["contentToReview"], data.get("originalPrompt") or "", data["currentStage"]
        )
    except Exception as e:
        return _server_error("EthicalChecker", e)


@router.post("/result-synthesizer")
async def run_result_synthesizer(request: Request):
    try:
        data = await _input_of(request)
        if not data.get("originalPrompt") or data.get("executorOutputs") is None:
            return _error("Missing or invalid input for result synthesizer")
        return await synthesizer.synthesize(data)
    except Exception as e:
        return _server_error("ResultSynthesizer", e)


# ---- Schema-validated executors -------------------------------------------------

@router.post("/executor/code")
async def run_code_snippet(request: Request):
    try:
        parsed = _validate(CodeExecutorInput, await request.json())
    except ValidationError as e:
        return _invalid("Agent: CodeExecutor", e)
    except ValueError as e:
        return _server_error("Agent: CodeExecutor", e, "Failed to generate code")
    return generate_code_snippet(parsed.description, parsed.language)


@router.post("/executor/evaluate")
async def run_evaluator(request: Request):
    try:
        parsed = _validate(EvaluateInput, await request.json())
    except ValidationError as e:
        return _invalid("Agent: Evaluator", e)
    except ValueError as e:
        return _server_error("Agent: Evaluator", e, "Failed to evaluate content")
    output = evaluate_content(parsed.contentToEvaluate, parsed.evaluationCriteria)
    logger.info("[Agent: Evaluator] Output: %s", output)
    return output


@router.post("/executor/image")
async def run_image_flow(request: Request):
    try:
        parsed = _validate(ImageExecutorInput, await request.json())
    except ValidationError as e:
        return _invalid("Agent: ImageExecutor", e)
    except ValueError as e:
        return _server_error("Agent: ImageExecutor", e, "Failed to generate image")
    try:
        result = await generate_image({"prompt": parsed.prompt})
    except FlowError as e:
        return _server_error("Agent: ImageExecutor", e, "Failed to generate image")
    return result.model_dump()
