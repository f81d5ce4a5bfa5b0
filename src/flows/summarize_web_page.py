from __future__ import annotations

import logging
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel

from src.llm import LLM_ERRORS, llm_structured
from src.neuro_synapse.errors import FlowError
from src.services.web_browser import browse_web_page

from .data_analysis import MAX_CONTENT_CHARS

logger = logging.getLogger(__name__)


class SummarizeWebPageInput(BaseModel):
    url: str


class SummarizeWebPageOutput(BaseModel):
    summary: str
    title: str = ""


async def summarize_web_page(data: Union[SummarizeWebPageInput, dict, Any],
                             client: Optional[httpx.AsyncClient] = None) -> SummarizeWebPageOutput:
    """Browse `url` and summarize it. The title always comes from the page itself."""
    data = SummarizeWebPageInput.model_validate(data)
    try:
        page = await browse_web_page(data.url, client=client)
    except httpx.HTTPError as e:
        raise FlowError(f"Failed to fetch web page: {e}") from e

    prompt = (
        "You are an expert summarizer.  You will be given the content of a web page "
        "and you will summarize it in a concise way.\n\n"
        f"Title: {page.title}\n"
        f"Content: {page.content[:MAX_CONTENT_CHARS]}\n\n"
        "Summary: "
    )
    try:
        output = await llm_structured("summarizeWebPage", prompt, SummarizeWebPageOutput)
    except LLM_ERRORS as e:
        logger.error("Summarization failed for %s: %s", data.url, e)
        raise FlowError("Web page summarization failed to generate a summary.") from e
    return SummarizeWebPageOutput(summary=output.summary, title=page.title)
