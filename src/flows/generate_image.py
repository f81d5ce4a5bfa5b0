from __future__ import annotations

import base64
import logging
import time
from typing import Any, Optional, Union

from google.genai import types
from pydantic import BaseModel, Field

from src.llm import IMAGE_MODEL, LLM_ERRORS, get_genai_client
from src.neuro_synapse.errors import FlowError
from src.services.usage import record_call

logger = logging.getLogger(__name__)


class GenerateImageInput(BaseModel):
    prompt: str = Field(min_length=1)


class GenerateImageOutput(BaseModel):
    imageDataUri: str
    promptUsed: str


def _first_image_data_uri(response: Any) -> Optional[str]:
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                data = inline.data
                if isinstance(data, str):
                    encoded = data
                else:
                    encoded = base64.b64encode(data).decode("ascii")
                return f"data:{inline.mime_type or 'image/png'};base64,{encoded}"
    return None


async def generate_image(data: Union[GenerateImageInput, dict, Any]) -> GenerateImageOutput:
    data = GenerateImageInput.model_validate(data)
    start = time.perf_counter()
    try:
        client = get_genai_client()
        response = await client.aio.models.generate_content(
            model=IMAGE_MODEL,
            contents=data.prompt,
            config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
        )
    except LLM_ERRORS as e:
        logger.error("Error in generate_image: %s", e)
        raise FlowError(f"Failed to generate image: {e}") from e
    record_call("google-api", IMAGE_MODEL, len(data.prompt) // 4, None, time.perf_counter() - start)

    uri = _first_image_data_uri(response)
    if not uri:
        raise FlowError("Failed to generate image: Image generation failed: No media URL returned.")
    return GenerateImageOutput(imageDataUri=uri, promptUsed=data.prompt)
