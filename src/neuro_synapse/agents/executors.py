from __future__ import annotations

import logging
import re
from typing import Any, Dict, List
from urllib.parse import quote, urlparse

from src.config import get_settings
from src.flows.generate_image import generate_image
from src.llm import LLM_ERRORS, llm_configured, llm_text
from src.services.web_browser import browse_web_page
from src.utils import core_web_search

from ..errors import FlowError
from .base import preview, simulate_delay

logger = logging.getLogger(__name__)

# Left unescaped in picsum seeds, matching the frontend's URI component encoding
URI_COMPONENT_SAFE = "-_.!~*'()"


def _function_name(fragment: str) -> str:
    return re.sub(r"\s+", "_", fragment).lower() or "myFunction"


def generate_code(prompt_fragment: str, original_prompt: str) -> Dict[str, Any]:
    name = _function_name(prompt_fragment)
    code = (
        f"\n// Mock generated code for: {prompt_fragment}\n"
        f"function {name}() {{\n"
        f'  console.log("Hello from NeuroVichar - {original_prompt}!");\n'
        f"  // Add more complex logic based on the prompt\n"
        f'  return "Mock code execution result";\n'
        f"}}\n\n"
        f"{name}();\n  "
    )
    return {
        "generatedCode": code,
        "language": "javascript",
        "executionLog": "Mock code generated successfully. No runtime errors (simulated).",
        "status": "COMPLETED",
    }


async def execute_code(task_input: Dict[str, Any]) -> Dict[str, Any]:
    logger.info("[ExecutorCode] Generating code for: %r", task_input.get("promptFragment"))
    await simulate_delay(1.5, 2.5)
    return generate_code(task_input.get("promptFragment") or "", task_input.get("originalPrompt") or "")


def _use_mock_image() -> bool:
    settings = get_settings()
    return not settings.genai_configured or settings.use_mock_orkes_client


async def execute_image(task_input: Dict[str, Any]) -> Dict[str, Any]:
    fragment = task_input.get("promptFragment") or ""
    logger.info("[ExecutorImage] Generating image for: %r", fragment)

    if _use_mock_image():
        await simulate_delay(2.0, 3.5)
        return {
            "imageUrl": f"https://picsum.photos/seed/{quote(fragment[:20], safe=URI_COMPONENT_SAFE)}/512/512",
            "altText": f"Mock image for: {fragment}",
            "status": "COMPLETED_MOCK",
        }

    try:
        result = await generate_image({"prompt": fragment})
    except (FlowError, *LLM_ERRORS) as e:
        logger.error("[ExecutorImage] Image generation failed: %s", e)
        return {"error": f"Failed to generate image: {e}", "status": "FAILED"}
    return {
        "imageDataUri": result.imageDataUri,
        "altText": f"AI generated image for: {result.promptUsed}",
        "status": "COMPLETED_REAL",
    }


def _looks_like_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc) and " " not in value


def mock_search_results(query: str) -> List[Dict[str, str]]:
    return [
        {"title": f'Search Result 1 for "{query}"',
         "snippet": "This is the first mock search result snippet containing relevant information about your query.",
         "url": "https://example.com/result1"},
        {"title": f'Search Result 2 for "{query}"',
         "snippet": "Another piece of information found on the web related to your topic.",
         "url": "https://example.com/result2"},
        {"title": f'Search Result 3 (Blog) for "{query}"',
         "snippet": "A blog post discussing various aspects of the query.",
         "url": "https://blog.example.com/post"},
    ]


async def execute_web_search(task_input: Dict[str, Any]) -> Dict[str, Any]:
    query = task_input.get("promptFragment") or ""
    logger.info("[ExecutorWebSearch] Performing search for: %r", query)
    await simulate_delay(1.5, 2.5)

    if _looks_like_url(query):
        page = await browse_web_page(query)
        results = [{"title": page.title, "snippet": page.content[:200] + "...", "url": page.url}]
    else:
        results = []
        if get_settings().serpapi_api_key:
            results = await core_web_search(query, k=3)
        if not results:
            results = mock_search_results(query)

    return {
        "searchResults": results,
        "summary": f'Found {len(results)} mock results for "{query}".',
        "status": "COMPLETED",
    }


def _template_text(task_input: Dict[str, Any]) -> str:
    text = f"Synthesized response for: {task_input.get('promptFragment') or ''}"
    if task_input.get("originalPrompt"):
        text += f" (original prompt: \"{task_input['originalPrompt']}\")"
    if task_input.get("contextData"):
        text += f". Context: {task_input['contextData']}"
    upstream = task_input.get("upstreamOutputs") or {}
    for ref, out in upstream.items():
        if isinstance(out, dict) and out.get("summary"):
            text += f" Using {ref}: {out['summary']}"
    return text


async def execute_text_synthesis(task_input: Dict[str, Any]) -> Dict[str, Any]:
    logger.info("[ExecutorText] Synthesizing text for: %r", task_input.get("promptFragment"))
    await simulate_delay(1.0, 2.0)

    if llm_configured() and not get_settings().use_mock_orkes_client:
        prompt = (
            f"Task: {task_input.get('promptFragment')}\n"
            f"Original user prompt: {task_input.get('originalPrompt')}\n"
            f"Context: {task_input.get('contextData') or 'None'}\n"
            f"Upstream results: {preview(task_input.get('upstreamOutputs') or {}, 2000)}\n\n"
            "Write a concise, well-structured response for this task."
        )
        try:
            text = await llm_text("textSynthesis", prompt)
            if text.strip():
                return {"synthesizedText": text.strip(), "status": "COMPLETED"}
        except LLM_ERRORS as e:
            logger.warning("[ExecutorText] LLM synthesis failed, using template: %s", e)

    return {"synthesizedText": _template_text(task_input), "status": "COMPLETED"}


EXECUTORS = {
    "execute_web_search_task": execute_web_search,
    "execute_image_generation_task": execute_image,
    "execute_code_generation_task": execute_code,
    "execute_text_synthesis_task": execute_text_synthesis,
}
