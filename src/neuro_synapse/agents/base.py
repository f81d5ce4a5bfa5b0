from __future__ import annotations

import asyncio
import json
import random
from typing import Any

from src.config import get_settings


async def simulate_delay(min_sec: float, max_sec: float) -> None:
    """Sleep for a uniform random duration, scaled by AGENT_DELAY_SCALE."""
    scale = get_settings().agent_delay_scale
    if scale <= 0:
        return
    await asyncio.sleep(random.uniform(min_sec, max_sec) * scale)


def preview(value: Any, limit: int = 200) -> str:
    # Log helper; falls back to str() for non-JSON values
    try:
        text = json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = str(value)
    return text if len(text) <= limit else text[:limit] + "..."
