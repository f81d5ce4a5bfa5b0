import asyncio
import time
from typing import Optional, List, Dict
from src.jobs import JobStore, Phase
from src.neuro_synapse.models import SubTask

class ProgressReporter:
    def __init__(self, store: JobStore, job_id: str, t0: float):
        self._store = store
        self._job_id = job_id
        self._t0 = t0

    async def update(self, phase: Phase, pct: int,
                     partial: Optional[List[SubTask]] = None,
                     metrics: Optional[Dict[str, int]] = None,
                     message: Optional[str] = None):
        metrics = dict(metrics or {})
        metrics["elapsed_ms"] = int((time.perf_counter() - self._t0) * 1000)

        await self._store.heartbeat(
            self._job_id,
            phase=phase,
            pct=pct,
            partial=partial,
            metrics=metrics,
            message=message,
        )

    async def is_cancelled(self) -> bool:
        return await self._store.is_cancelled(self._job_id)

    async def checkpoint(self):
        """Raise CancelledError if the job was cancelled; called between phases."""
        if await self.is_cancelled():
            raise asyncio.CancelledError(f"job {self._job_id} cancelled")
