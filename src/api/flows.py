import logging

from fastapi import APIRouter, HTTPException, status

from src.flows.catalyze_idea import CatalyzeIdeaInput, CatalyzeIdeaOutput, catalyze_idea
from src.flows.data_analysis import RealTimeDataAnalysisInput, RealTimeDataAnalysisOutput, real_time_data_analysis
from src.flows.decompose import DecomposePromptInput, DecomposePromptOutput, decompose_prompt
from src.flows.generate_image import GenerateImageInput, GenerateImageOutput, generate_image
from src.flows.interpret_intent import InterpretUserIntentInput, InterpretUserIntentOutput, interpret_user_intent
from src.flows.summarize_web_page import SummarizeWebPageInput, SummarizeWebPageOutput, summarize_web_page
from src.neuro_synapse.errors import FlowError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/flows",
    tags=["flows"],
)


def _bad_gateway(e: FlowError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/decompose", response_model=DecomposePromptOutput)
async def decompose(req: DecomposePromptInput):
    try:
        return await decompose_prompt(req)
    except FlowError as e:
        raise _bad_gateway(e)


@router.post("/catalyze-idea", response_model=CatalyzeIdeaOutput)
async def catalyze(req: CatalyzeIdeaInput):
    try:
        return await catalyze_idea(req)
    except FlowError as e:
        raise _bad_gateway(e)


@router.post("/interpret-intent", response_model=InterpretUserIntentOutput)
async def interpret_intent(req: InterpretUserIntentInput):
    try:
        return await interpret_user_intent(req)
    except FlowError as e:
        raise _bad_gateway(e)


@router.post("/generate-image", response_model=GenerateImageOutput)
async def image(req: GenerateImageInput):
    try:
        return await generate_image(req)
    except FlowError as e:
        raise _bad_gateway(e)


@router.post("/data-analysis", response_model=RealTimeDataAnalysisOutput)
async def data_analysis(req: RealTimeDataAnalysisInput):
    try:
        return await real_time_data_analysis(req)
    except FlowError as e:
        raise _bad_gateway(e)


@router.post("/summarize-web-page", response_model=SummarizeWebPageOutput)
async def summarize(req: SummarizeWebPageInput):
    try:
        return await summarize_web_page(req)
    except FlowError as e:
        raise _bad_gateway(e)
