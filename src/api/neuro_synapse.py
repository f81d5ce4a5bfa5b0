import asyncio
import logging
import time
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.schemas import DiagramLayoutResponse, StartResponse
from src.config import get_settings
from src.database import crud, schemas
from src.database.database import SessionLocal, get_db
from src.jobs import JobState, job_store
from src.neuro_synapse.conductor import Workflow, get_conductor_client
from src.neuro_synapse.diagram import diagram_canvas_size, layout_diagram
from src.neuro_synapse.engine import LocalWorkflowEngine
from src.neuro_synapse.errors import (
    ConductorError,
    WorkflowExecutionError,
    WorkflowNotFoundError,
    WorkflowOutputError,
    WorkflowTimeoutError,
)
from src.neuro_synapse.models import NeuroSynapseInput, NeuroSynapseOutput, WorkflowDiagramData
from src.neuro_synapse.orchestrator import run_neuro_synapse
from src.progress import ProgressReporter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/neuro-synapse",
    tags=["neuro-synapse"],
)


async def _record_run(db: AsyncSession, req: NeuroSynapseInput, workflow_name: str, status_: str,
                      workflow_id: str | None = None, output: dict | None = None, error: str | None = None):
    await crud.create_run(db, schemas.WorkflowRunCreate(
        workflow_id=workflow_id,
        workflow_name=workflow_name,
        prompt=req.mainPrompt,
        status=status_,
        output=output,
        error=error,
    ))
    await db.commit()


@router.post("/run", response_model=NeuroSynapseOutput)
async def run(req: NeuroSynapseInput, db: AsyncSession = Depends(get_db)):
    """
    Start the Neuro Synapse workflow on the configured engine and wait for it.
    Every run, successful or not, is written to the run history.
    """
    settings = get_settings()
    try:
        result = await run_neuro_synapse(req, settings=settings)
    except WorkflowExecutionError as e:
        await _record_run(db, req, settings.workflow_name, e.status, workflow_id=e.workflow_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except WorkflowTimeoutError as e:
        await _record_run(db, req, settings.workflow_name, "POLL_TIMEOUT", workflow_id=e.workflow_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
    except WorkflowNotFoundError as e:
        await _record_run(db, req, settings.workflow_name, "ERROR", workflow_id=e.workflow_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e.data))
    except WorkflowOutputError as e:
        await _record_run(db, req, settings.workflow_name, "ERROR", workflow_id=e.workflow_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except ConductorError as e:
        await _record_run(db, req, settings.workflow_name, "ERROR", error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    await _record_run(db, req, settings.workflow_name, "COMPLETED", workflow_id=result.workflowId,
                      output=result.model_dump(mode="json"))
    return result


@router.get("/workflows/{workflow_id}", response_model=Workflow)
async def get_workflow(workflow_id: str):
    client = get_conductor_client()
    try:
        return await client.workflow_resource.get_workflow(workflow_id, include_tasks=True)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e.data))
    except ConductorError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("/runs", response_model=List[schemas.WorkflowRun])
async def list_runs(skip: int = 0, limit: int = 100, db: AsyncSession = Depends(get_db)):
    return await crud.get_runs(db, skip=skip, limit=limit)


@router.get("/runs/{run_id}", response_model=schemas.WorkflowRun)
async def read_run(run_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    db_run = await crud.get_run(db, run_id=run_id)
    if db_run is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Run not found")
    return db_run


@router.post("/diagram/layout", response_model=DiagramLayoutResponse)
async def diagram_layout(data: WorkflowDiagramData):
    positions = layout_diagram(data)
    width, height = diagram_canvas_size(positions)
    return DiagramLayoutResponse(
        positions={nid: {"x": x, "y": y} for nid, (x, y) in positions.items()},
        width=width,
        height=height,
    )


# ---- In-process engine as a background job ---------------------------------------

async def local_engine_runner(job_id: str, req: NeuroSynapseInput):
    t0 = time.perf_counter()
    try:
        reporter = ProgressReporter(job_store, job_id, t0)
        await job_store.update(job_id, status=JobState.RUNNING)
        result = await LocalWorkflowEngine().run(req, progress=reporter)
        if await reporter.is_cancelled():
            return
        await job_store.complete(job_id, result)
        async with SessionLocal() as db:
            await _record_run(db, req, "local_engine", "COMPLETED", workflow_id=result.workflowId,
                              output=result.model_dump(mode="json"))
    except asyncio.CancelledError:
        logger.info("Job %s was cancelled.", job_id)
    except Exception as e:
        logger.exception("Runner for job %s caught exception: %s", job_id, e)
        await job_store.fail(job_id, code=type(e).__name__, message=str(e))


@router.post("/jobs", response_model=StartResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_job(req: NeuroSynapseInput):
    """
    Runs the in-process pipeline in the background. Poll /api/jobs/{job_id}
    or subscribe to /api/jobs/{job_id}/events for progress.
    """
    job = await job_store.create()
    job.task = asyncio.create_task(local_engine_runner(job.view.job_id, req))
    return StartResponse(job_id=job.view.job_id, trace_id=job.view.trace_id)
