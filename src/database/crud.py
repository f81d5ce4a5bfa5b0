import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from . import models, schemas

async def get_run(db: AsyncSession, run_id: uuid.UUID):
    result = await db.execute(select(models.WorkflowRun).filter(models.WorkflowRun.id == run_id))
    return result.scalars().first()

async def get_runs(db: AsyncSession, skip: int = 0, limit: int = 100):
    query = (
        select(models.WorkflowRun)
        .order_by(models.WorkflowRun.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return result.scalars().all()

async def create_run(db: AsyncSession, run: schemas.WorkflowRunCreate) -> models.WorkflowRun:
    """Creates a run-history row in the session. Does not commit."""
    db_run = models.WorkflowRun(**run.model_dump())
    db.add(db_run)
    await db.flush() # Flush to assign an ID
    await db.refresh(db_run)
    return db_run
