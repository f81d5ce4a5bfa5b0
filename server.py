from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

# Load environment variables early so downstream modules see them
from dotenv import load_dotenv
# Load .env first
load_dotenv()
# Then overlay .env.local if present (does not override already-set envs by default)
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env.local"), override=False)

from src.config import get_settings
from src.logging_setup import setup_logging
from src.jobs import router as jobs_router
from src.database import models, database
from src.llm import llm_configured
from src.neuro_synapse.conductor import conductor_mode, reset_conductor_client
from src.api import agents as agents_router
from src.api import neuro_synapse as neuro_synapse_router
from src.api import flows as flows_router
from src.api import llm as llm_router
from src.api import metrics as metrics_router

setup_logging()
logger = logging.getLogger(__name__)

# --- App Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # On startup:
    # Initialize database tables
    async with database.engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    logger.info("NeuroVichar backend started (workflow client: %s)", conductor_mode())

    yield

    # On shutdown:
    # Stop mock timers / close the Orkes HTTP client
    await reset_conductor_client()
    await database.engine.dispose()

# --- Main App Setup ---
app = FastAPI(title="NeuroVichar Backend", lifespan=lifespan)

# CORS for the local Next.js dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
        "http://127.0.0.1:9002",
        "http://localhost:9002",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(jobs_router)
app.include_router(agents_router.router)
app.include_router(neuro_synapse_router.router)
app.include_router(flows_router.router)
app.include_router(llm_router.router)
app.include_router(metrics_router.router)

# --- Health Check ---
@app.get("/api/health")
async def health():
    settings = get_settings()
    return {
        "status": "ok",
        "llmConfigured": llm_configured(),
        "serpapiConfigured": bool(settings.serpapi_api_key),
        "conductorMode": conductor_mode(settings),
    }
