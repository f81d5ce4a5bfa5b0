from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import ValidationError

from src.flows.catalyze_idea import CatalyzeIdeaOutput, catalyze_idea
from src.flows.data_analysis import RealTimeDataAnalysisInput, RealTimeDataAnalysisOutput, real_time_data_analysis
from src.flows.decompose import DecomposePromptOutput, decompose_prompt
from src.flows.generate_image import generate_image
from src.flows.interpret_intent import InterpretUserIntentOutput, UserContext, interpret_user_intent, render_context
from src.flows.summarize_web_page import SummarizeWebPageOutput, summarize_web_page
from src.neuro_synapse.errors import FlowError

PAGE = "<html><head><title>Market Watch</title></head><body><p>Prices rose 4% this week.</p></body></html>"


def _page_client():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/down":
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, text=PAGE)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_decompose_keeps_the_callers_prompt():
    llm_output = DecomposePromptOutput(
        originalPrompt="something the model invented",
        subtasks=[{"taskId": "task_001", "description": "Research", "assignedAgent": "Web Researcher"}],
        summary="One step.",
    )
    with patch("src.flows.decompose.llm_structured", new_callable=AsyncMock) as llm:
        llm.return_value = llm_output
        result = await decompose_prompt({"complexPrompt": "Plan a trip", "context": "budget travel"})

    assert result.originalPrompt == "Plan a trip"
    assert result.subtasks[0].taskId == "task_001"
    task_name, prompt, model = llm.await_args.args
    assert task_name == "decomposePrompt"
    assert '"Plan a trip"' in prompt
    assert "budget travel" in prompt
    assert model is DecomposePromptOutput


@pytest.mark.asyncio
async def test_decompose_without_provider_raises_flow_error():
    with pytest.raises(FlowError, match="failed to generate a valid decomposition"):
        await decompose_prompt({"complexPrompt": "Plan a trip"})


@pytest.mark.asyncio
async def test_catalyze_idea():
    with patch("src.flows.catalyze_idea.llm_structured", new_callable=AsyncMock) as llm:
        llm.return_value = CatalyzeIdeaOutput(
            potentialQuestions=["Why?"], suggestedAgents=["Historian"], starterComplexPrompt="Analyze the theme of 'x'",
        )
        result = await catalyze_idea({"theme": "urban farming"})
    assert result.originalTheme == "urban farming"

    with patch("src.flows.catalyze_idea.llm_structured", new_callable=AsyncMock) as llm:
        llm.side_effect = ValueError("not json")
        with pytest.raises(FlowError, match="Idea Catalyst failed to generate a response."):
            await catalyze_idea({"theme": "urban farming"})


def test_context_renders_only_present_fields():
    assert render_context(None) == "User's Context: Not provided. Inference will be very limited."
    text = render_context(UserContext(currentFocus="budget.xlsx", recentSearches=["tax rules", "deductions"]))
    assert 'Current Focus: "budget.xlsx"' in text
    assert 'Recent Searches: "tax rules"; "deductions"' in text
    assert "Visited Pages" not in text


@pytest.mark.asyncio
async def test_interpret_intent():
    with patch("src.flows.interpret_intent.llm_structured", new_callable=AsyncMock) as llm:
        llm.return_value = InterpretUserIntentOutput(
            inferredIntent="Wants a tax summary",
            suggestedActionType="EXECUTE_NEUROSYNAPSE",
            confidence=0.8,
            explanation="Recent searches were about taxes.",
        )
        result = await interpret_user_intent({"userQuery": "help me with this"})
    assert result.suggestedActionType == "EXECUTE_NEUROSYNAPSE"
    assert result.originalQuery == "help me with this"

    with patch("src.flows.interpret_intent.llm_structured", new_callable=AsyncMock) as llm:
        llm.side_effect = RuntimeError("No LLM provider configured")
        with pytest.raises(FlowError, match="NeuroShastra failed to generate an interpretation."):
            await interpret_user_intent({"userQuery": "help"})


def _image_response(parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


@pytest.mark.asyncio
async def test_generate_image_returns_data_uri():
    genai_client = MagicMock()
    genai_client.aio.models.generate_content = AsyncMock(return_value=_image_response([
        SimpleNamespace(inline_data=None, text="here you go"),
        SimpleNamespace(inline_data=SimpleNamespace(data=b"abc", mime_type="image/png")),
    ]))
    with patch("src.flows.generate_image.get_genai_client", return_value=genai_client):
        result = await generate_image({"prompt": "a lighthouse"})
    assert result.imageDataUri == "data:image/png;base64,YWJj"
    assert result.promptUsed == "a lighthouse"
    assert genai_client.aio.models.generate_content.await_args.kwargs["contents"] == "a lighthouse"


@pytest.mark.asyncio
async def test_generate_image_without_media_fails():
    genai_client = MagicMock()
    genai_client.aio.models.generate_content = AsyncMock(return_value=_image_response([]))
    with patch("src.flows.generate_image.get_genai_client", return_value=genai_client):
        with pytest.raises(FlowError, match="No media URL returned"):
            await generate_image({"prompt": "a lighthouse"})


@pytest.mark.asyncio
async def test_generate_image_without_key_fails():
    with pytest.raises(FlowError, match="Failed to generate image"):
        await generate_image({"prompt": "a lighthouse"})


def test_data_analysis_requires_http_url():
    with pytest.raises(ValidationError):
        RealTimeDataAnalysisInput(dataSource="ftp://files.test/data.csv", analysisType="trend")


@pytest.mark.asyncio
async def test_data_analysis_prompts_with_page_content():
    output = RealTimeDataAnalysisOutput(
        trends=[{"trend": "Rising prices", "description": "Up 4%"}],
        insights=[{"insight": "Inflation", "explanation": "Prices rising"}],
        summary="Prices are up.",
    )
    async with _page_client() as client:
        with patch("src.flows.data_analysis.llm_structured", new_callable=AsyncMock) as llm:
            llm.return_value = output
            result = await real_time_data_analysis(
                {"dataSource": "https://markets.test/today", "analysisType": "trend", "keywords": "prices"},
                client=client,
            )
    assert result.summary == "Prices are up."
    prompt = llm.await_args.args[1]
    assert "Prices rose 4% this week." in prompt
    assert "Keywords: prices" in prompt


@pytest.mark.asyncio
async def test_data_analysis_fetch_failure():
    async with _page_client() as client:
        with pytest.raises(FlowError, match="Failed to fetch data source"):
            await real_time_data_analysis({"dataSource": "https://markets.test/down", "analysisType": "trend"},
                                          client=client)


@pytest.mark.asyncio
async def test_summary_title_comes_from_page():
    async with _page_client() as client:
        with patch("src.flows.summarize_web_page.llm_structured", new_callable=AsyncMock) as llm:
            llm.return_value = SummarizeWebPageOutput(summary="Prices went up.", title="Invented title")
            result = await summarize_web_page({"url": "https://markets.test/today"}, client=client)
    assert result.summary == "Prices went up."
    assert result.title == "Market Watch"
