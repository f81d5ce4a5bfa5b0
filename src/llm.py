"""
Centralized LLM task-to-model routing.

Single source of truth for which model handles which task. Chat-style requests
go through the Vercel AI Gateway (OpenAI-compatible) when it is configured and
fall back to Google GenAI otherwise.
"""
from __future__ import annotations

import json
import logging
import os
import re
import time
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from google import genai
from google.genai import errors as genai_errors
from pydantic import BaseModel

from src.config import get_settings
from src.services.usage import record_call

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Failures a caller can fall back from without crashing a workflow
LLM_ERRORS = (httpx.HTTPError, RuntimeError, ValueError, genai_errors.APIError)

DEFAULT_MODEL = "gemini-1.5-flash"
IMAGE_MODEL = "gemini-2.0-flash-exp"

TASK_MODEL_MAP: Dict[str, str] = {
    "decomposePrompt": "gemini-1.5-pro",
    "catalyzeIdea": "gemini-1.5-pro",
    "interpretUserIntent": "gemini-1.5-pro",
    "analyzeData": "gemini-1.5-flash",
    "summarizeWebPage": "gemini-1.5-flash",
    "synthesizeResults": "gemini-1.5-pro",
    "textSynthesis": "gemini-1.5-flash",
}


def get_model_for_task(task_name: str) -> str:
    # Per-task override: LLM_MODEL_<taskName> or LLM_MODEL_<TASK_NAME>
    normalized = re.sub(r"[^A-Za-z0-9]+", "_", task_name).upper()
    return (
        os.getenv(f"LLM_MODEL_{task_name}")
        or os.getenv(f"LLM_MODEL_{normalized}")
        or TASK_MODEL_MAP.get(task_name, DEFAULT_MODEL)
    )


def llm_configured() -> bool:
    settings = get_settings()
    return settings.gateway_configured or settings.genai_configured


def get_genai_client() -> genai.Client:
    api_key = get_settings().genai_api_key
    if not api_key:
        raise RuntimeError("Missing GOOGLE_API_KEY / GEMINI_API_KEY")
    return genai.Client(api_key=api_key)


async def route_via_gateway(task_name: str, messages: List[Dict[str, Any]],
                            options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Route a chat completion through the OpenAI-compatible gateway.

    Returns a ChatCompletion-like dict with at least
    {"choices": [{"message": {"content": str}}]}
    """
    settings = get_settings()
    if not settings.gateway_configured:
        raise RuntimeError("Vercel AI Gateway not configured")
    base_url = settings.gateway_url.rstrip("/")
    if base_url.endswith("/v1"):
        base_url = base_url[:-3]

    payload: Dict[str, Any] = {"model": get_model_for_task(task_name), "messages": messages}
    if options:
        payload.update(options)
    headers = {
        "Authorization": f"Bearer {settings.gateway_token}",
        "Content-Type": "application/json",
    }
    async with httpx.AsyncClient(timeout=60) as client:
        resp = await client.post(f"{base_url}/v1/chat/completions", json=payload, headers=headers)
        resp.raise_for_status()
        return resp.json()


def _messages_to_prompt(messages: List[Dict[str, Any]]) -> str:
    parts: List[str] = []
    for m in messages:
        content = m.get("content", "")
        text = "\n".join(str(c) for c in content) if isinstance(content, list) else str(content)
        parts.append(f"{m.get('role', 'user').upper()}: {text}")
    return "\n\n".join(parts)


async def generate_text(model: str, prompt: str, temperature: Optional[float] = None) -> str:
    client = get_genai_client()
    config = {"temperature": temperature} if temperature is not None else None
    resp = await client.aio.models.generate_content(model=model, contents=prompt, config=config)
    return getattr(resp, "text", None) or ""


async def route_llm_call(task_name: str, messages: List[Dict[str, Any]],
                         options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Primary router used by the flows and agents.

    Tries the gateway first, then a direct Gemini call with the messages
    flattened into one prompt.
    """
    settings = get_settings()
    model = get_model_for_task(task_name)
    approx_in = sum(len(str(m.get("content", ""))) for m in messages) // 4
    start = time.perf_counter()

    if settings.gateway_configured:
        try:
            resp = await route_via_gateway(task_name, messages, options)
            record_call("gateway", model, approx_in, None, time.perf_counter() - start)
            return resp
        except (httpx.HTTPError, RuntimeError) as e:
            logger.warning("Gateway call for %s failed, falling back to Gemini: %s", task_name, e)

    if settings.genai_configured:
        temperature = (options or {}).get("temperature")
        text = await generate_text(model, _messages_to_prompt(messages), temperature)
        record_call("google-api", model, approx_in, None, time.perf_counter() - start)
        return {"choices": [{"message": {"content": text}}]}

    raise RuntimeError("No LLM provider configured")


def _content_of(resp: Dict[str, Any]) -> str:
    content = resp.get("choices", [{}])[0].get("message", {}).get("content", "")
    return content if isinstance(content, str) else str(content)


async def llm_text(task_name: str, prompt: str, temperature: float | None = None) -> str:
    opts = {"temperature": temperature} if temperature is not None else {}
    resp = await route_llm_call(task_name, [{"role": "user", "content": prompt}], opts)
    return _content_of(resp)


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```[a-zA-Z]*\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text.strip()


async def llm_json(task_name: str, prompt: str, temperature: float | None = None) -> Any:
    msgs = [
        {"role": "system", "content": "Return ONLY valid JSON. No commentary, no code fences."},
        {"role": "user", "content": prompt},
    ]
    opts = {"temperature": temperature} if temperature is not None else {}
    text = _content_of(await route_llm_call(task_name, msgs, opts))
    for candidate in (text, _strip_fences(text)):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ValueError(f"LLM did not return valid JSON for task {task_name}.")


async def llm_structured(task_name: str, prompt: str, structured_model: Type[T],
                         temperature: float | None = None) -> T:
    """Ask for JSON matching `structured_model` and validate it."""
    schema = json.dumps(structured_model.model_json_schema())
    full_prompt = f"{prompt}\n\nRespond with a JSON object matching this JSON schema:\n{schema}"
    data = await llm_json(task_name, full_prompt, temperature=temperature)
    return structured_model.model_validate(data)
