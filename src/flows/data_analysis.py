from __future__ import annotations

import logging
from typing import Any, List, Optional, Union
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, field_validator

from src.llm import LLM_ERRORS, llm_structured
from src.neuro_synapse.errors import FlowError
from src.services.web_browser import browse_web_page

logger = logging.getLogger(__name__)

# Page text beyond this is cut before prompting
MAX_CONTENT_CHARS = 20000


class RealTimeDataAnalysisInput(BaseModel):
    dataSource: str
    analysisType: str
    keywords: Optional[str] = None

    @field_validator("dataSource")
    @classmethod
    def _is_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("dataSource must be an absolute http(s) URL")
        return v


class Trend(BaseModel):
    trend: str
    description: str


class Insight(BaseModel):
    insight: str
    explanation: str


class RealTimeDataAnalysisOutput(BaseModel):
    trends: List[Trend]
    insights: List[Insight]
    summary: str


def build_prompt(data: RealTimeDataAnalysisInput, page_content: str) -> str:
    keywords = f"Keywords: {data.keywords}\n" if data.keywords else ""
    return (
        "You are an expert data analyst specializing in real-time web data analysis.\n\n"
        "You will analyze the data from the provided data source to identify trends and insights "
        "based on the specified analysis type.\n\n"
        f"Data Source URL: {data.dataSource}\n"
        f"Analysis Type: {data.analysisType}\n"
        f"{keywords}\n"
        f"Web Page Content:\n{page_content[:MAX_CONTENT_CHARS]}\n\n"
        "Analyze the data and provide a summary of the analysis, a list of identified trends, "
        "and a list of insights."
    )


async def real_time_data_analysis(data: Union[RealTimeDataAnalysisInput, dict, Any],
                                  client: Optional[httpx.AsyncClient] = None) -> RealTimeDataAnalysisOutput:
    data = RealTimeDataAnalysisInput.model_validate(data)
    try:
        page = await browse_web_page(data.dataSource, client=client)
    except httpx.HTTPError as e:
        raise FlowError(f"Failed to fetch data source: {e}") from e

    try:
        return await llm_structured("analyzeData", build_prompt(data, page.content), RealTimeDataAnalysisOutput)
    except LLM_ERRORS as e:
        logger.error("Data analysis failed for %s: %s", data.dataSource, e)
        raise FlowError("Real-time data analysis failed to generate a result.") from e
