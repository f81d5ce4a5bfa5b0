"""
Background jobs for the in-process Neuro Synapse engine.

A job is a snapshot (`JobView`) that the runner updates as it moves through
the pipeline phases. Clients poll `GET /api/jobs/{id}` or subscribe to the
SSE stream. Jobs live in memory and expire after a TTL.
"""
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta, timezone
import asyncio, json, uuid

from src.neuro_synapse.models import NeuroSynapseOutput, SubTask

# ---- States & phases ---------------------------------------------------------
class JobState(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

TERMINAL_STATES = {JobState.SUCCEEDED, JobState.FAILED, JobState.CANCELLED}

class Phase(str, Enum):
    analysis = "analysis"
    planning = "planning"
    execution = "execution"
    ethical_review = "ethical_review"
    synthesis = "synthesis"

# ---- API models --------------------------------------------------------------
class JobProgress(BaseModel):
    phase: Phase
    pct: int = Field(ge=0, le=100)

class JobMetrics(BaseModel):
    tasks_planned: int = 0
    tasks_completed: int = 0
    tasks_failed: int = 0
    tasks_skipped: int = 0
    elapsed_ms: int = 0

class JobView(BaseModel):
    job_id: str
    trace_id: str
    status: JobState = JobState.QUEUED
    progress: JobProgress = Field(default_factory=lambda: JobProgress(phase=Phase.analysis, pct=0))
    started_at: datetime
    updated_at: datetime
    metrics: JobMetrics = Field(default_factory=JobMetrics)
    # Executor sub-tasks, filled in once dispatch is done
    partial_results: List[SubTask] = Field(default_factory=list)
    result: Optional[NeuroSynapseOutput] = None
    error: Optional[Dict[str, Any]] = None
    log: Optional[str] = None

# ---- Store -------------------------------------------------------------------
class _Job:
    def __init__(self, ttl: timedelta):
        now = datetime.now(timezone.utc)
        self.view = JobView(job_id=str(uuid.uuid4()), trace_id=str(uuid.uuid4()), started_at=now, updated_at=now)
        self.cancel_event = asyncio.Event()
        self.task: Optional[asyncio.Task] = None
        self.expires_at = now + ttl
        # Bumped on every change; the SSE stream compares it
        self.revision = 0

    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) > self.expires_at

    def touch(self):
        self.revision += 1
        self.view.updated_at = datetime.now(timezone.utc)

class JobStore:
    """In-memory jobs guarded by one asyncio lock. Unknown ids raise KeyError."""

    def __init__(self, ttl_seconds: int = 24 * 3600):
        self._jobs: Dict[str, _Job] = {}
        self._lock = asyncio.Lock()
        self._ttl = timedelta(seconds=ttl_seconds)

    def _require(self, job_id: str) -> _Job:
        job = self._jobs.get(job_id)
        if job is None or job.is_expired():
            raise KeyError(job_id)
        return job

    async def create(self) -> _Job:
        async with self._lock:
            self._sweep()
            job = _Job(self._ttl)
            self._jobs[job.view.job_id] = job
            return job

    async def get(self, job_id: str) -> Optional[_Job]:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job and job.is_expired():
                del self._jobs[job_id]
                return None
            return job

    async def update(self, job_id: str, **fields):
        async with self._lock:
            job = self._require(job_id)
            for k, v in fields.items():
                setattr(job.view, k, v)
            job.touch()

    async def heartbeat(self, job_id: str, *, phase: Phase, pct: int,
                        partial: Optional[List[SubTask]] = None,
                        metrics: Optional[Dict[str, int]] = None,
                        message: Optional[str] = None):
        """Record progress. `metrics` values replace the current counters."""
        async with self._lock:
            job = self._require(job_id)
            if job.view.status in TERMINAL_STATES: return
            job.view.progress = JobProgress(phase=phase, pct=pct)
            if partial: job.view.partial_results = list(partial)
            if metrics:
                job.view.metrics = job.view.metrics.model_copy(update={k: int(v) for k, v in metrics.items()})
            if message: job.view.log = message
            job.touch()

    async def _finish(self, job_id: str, state: JobState, **fields) -> bool:
        async with self._lock:
            job = self._require(job_id)
            # First terminal state wins; a late result does not undo a cancel
            if job.view.status in TERMINAL_STATES:
                return False
            if state is JobState.CANCELLED:
                job.cancel_event.set()
            job.view.status = state
            for k, v in fields.items():
                setattr(job.view, k, v)
            job.touch()
            return True

    async def complete(self, job_id: str, result: NeuroSynapseOutput) -> bool:
        return await self._finish(job_id, JobState.SUCCEEDED, result=result,
                                  progress=JobProgress(phase=Phase.synthesis, pct=100))

    async def fail(self, job_id: str, code: str, message: str) -> bool:
        return await self._finish(job_id, JobState.FAILED, error={"code": code, "message": message})

    async def cancel(self, job_id: str) -> bool:
        return await self._finish(job_id, JobState.CANCELLED)

    async def is_cancelled(self, job_id: str) -> bool:
        job = await self.get(job_id)
        return job.cancel_event.is_set() if job else True

    def _sweep(self):
        for jid in [jid for jid, j in self._jobs.items() if j.is_expired()]:
            del self._jobs[jid]

    async def evict_expired(self):
        async with self._lock:
            self._sweep()

job_store = JobStore()
router = APIRouter(
    prefix="/api/jobs",
    tags=["jobs"],
)

SSE_POLL_SEC = 0.25

# ---- Status & Cancel Routes ---------------------------------------------------
@router.get("/{job_id}", response_model=JobView)
async def get_job_status(job_id: str):
    job = await job_store.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found or expired")
    return job.view

@router.post("/{job_id}/cancel", response_model=JobView)
async def cancel_job(job_id: str):
    try:
        await job_store.cancel(job_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Job not found")
    job = await job_store.get(job_id)
    if job and job.task and not job.task.done():
        job.task.cancel()
    return job.view


def _sse(obj: Dict[str, Any]) -> str:
    return f"data: {json.dumps(obj)}\n\n"


@router.get("/{job_id}/events")
async def stream_job_events(job_id: str):
    """
    Server-Sent Events stream of job snapshots.

    Sends the full JobView as JSON whenever its revision changes and stops
    after the first terminal snapshot.
    """
    async def gen():
        seen = -1
        while True:
            job = await job_store.get(job_id)
            if not job:
                yield _sse({"error": "not_found", "job_id": job_id})
                return

            if job.revision != seen:
                seen = job.revision
                yield _sse(job.view.model_dump(mode="json"))

            if job.view.status in TERMINAL_STATES:
                return

            await asyncio.sleep(SSE_POLL_SEC)

    return StreamingResponse(gen(), media_type="text/event-stream")
