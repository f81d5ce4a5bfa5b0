"""Process-wide LLM usage counters, grouped by provider and model."""
from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class UsageCounter:
    calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    time_sec: float = 0.0

    def add(self, input_tokens: Optional[int], output_tokens: Optional[int], time_sec: Optional[float]) -> None:
        self.calls += 1
        self.input_tokens += int(input_tokens or 0)
        self.output_tokens += int(output_tokens or 0)
        self.time_sec += float(time_sec or 0.0)


class UsageTracker:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_model: Dict[str, Dict[str, UsageCounter]] = defaultdict(dict)

    def record(self, provider: str, model: str, input_tokens: Optional[int] = None,
               output_tokens: Optional[int] = None, time_sec: Optional[float] = None) -> None:
        with self._lock:
            counter = self._by_model[provider].setdefault(model, UsageCounter())
            counter.add(input_tokens, output_tokens, time_sec)

    def report(self, reset: bool = False) -> Dict[str, Any]:
        """
        Return `{"calls": n, "providers": {name: {"models": {...}, "totals": {...}}}}`.
        With `reset=True` the counters are cleared after the report is taken.
        """
        with self._lock:
            providers: Dict[str, Any] = {}
            for provider, models in self._by_model.items():
                totals = UsageCounter()
                for c in models.values():
                    totals.calls += c.calls
                    totals.input_tokens += c.input_tokens
                    totals.output_tokens += c.output_tokens
                    totals.time_sec += c.time_sec
                providers[provider] = {
                    "models": {name: asdict(c) for name, c in models.items()},
                    "totals": asdict(totals),
                }
            if reset:
                self._by_model.clear()
        return {"calls": sum(p["totals"]["calls"] for p in providers.values()), "providers": providers}


tracker = UsageTracker()


def record_call(provider: str, model: str, input_tokens: int | None, output_tokens: int | None,
                time_sec: float | None) -> None:
    tracker.record(provider, model, input_tokens, output_tokens, time_sec)


def snapshot(reset: bool = False) -> Dict[str, Any]:
    return tracker.report(reset=reset)
