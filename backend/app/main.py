from dotenv import load_dotenv
import pathlib

# Load .env from backend folder (parent of app)
env_path = pathlib.Path(__file__).parent.parent / '.env'
load_dotenv(env_path)
from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from typing import List
import asyncio
import logging
import os
import sys
from datetime import datetime

# ===== WINDOWS FIX FOR PLAYWRIGHT =====
# Playwright needs ProactorEventLoop on Windows
if sys.platform == 'win32':
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
# ======================================

from models import (
    TestRun, RunStatus, InspectRequest, CreateTestRunRequest, UpdateTestRunRequest
)
from storage import TestRunStorage
from qa_agent import EngineConfig, LocalScreenshotStore, NavigationFailure, RunCoordinator

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="QA Agent Engine")

config = EngineConfig.from_env()
storage = TestRunStorage(os.getenv("QA_AGENT_DATA_DIR", "data"))
screenshot_store = LocalScreenshotStore(config.screenshot_dir, config.screenshot_url_prefix)
coordinator = RunCoordinator(config=config, screenshot_store=screenshot_store)

# CORS Configuration
# In production, set CORS_ORIGINS environment variable to comma-separated allowed origins
cors_origins_env = os.getenv("CORS_ORIGINS", "")
if cors_origins_env:
    allowed_origins = [origin.strip() for origin in cors_origins_env.split(",")]
else:
    # Development defaults - localhost only
    allowed_origins = [
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",  # React dev server
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)


def get_storage() -> TestRunStorage:
    return storage


def get_coordinator() -> RunCoordinator:
    return coordinator


def get_screenshot_store() -> LocalScreenshotStore:
    return screenshot_store


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now().isoformat()}


# ============ Discovery ============

@app.post("/api/inspect")
async def inspect_page(
    request: InspectRequest,
    coordinator: RunCoordinator = Depends(get_coordinator)
):
    """Discover the interactive elements of a page"""
    if not request.url.strip():
        raise HTTPException(status_code=400, detail="URL is required")

    try:
        inspection = await coordinator.inspect(request.url)
    except NavigationFailure as e:
        logger.warning(f"Inspection of {request.url} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Inspection of {request.url} crashed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return inspection.to_dict()


# ============ Test Runs ============

@app.post("/api/test-runs")
async def create_test_run(
    request: CreateTestRunRequest,
    storage: TestRunStorage = Depends(get_storage)
):
    """Store a reviewed test plan as a new run"""
    run = storage.create_run(
        url=request.url,
        page_data=request.page_data,
        tests=request.tests,
        confidence=request.confidence
    )
    logger.info(f"Created test run {run.id} with {len(run.tests)} tests")
    return run.to_record()


@app.get("/api/test-runs")
async def list_test_runs(storage: TestRunStorage = Depends(get_storage)) -> List[dict]:
    return [run.to_record() for run in storage.get_all_runs()]


@app.get("/api/test-runs/{run_id}")
async def get_test_run(run_id: str, storage: TestRunStorage = Depends(get_storage)):
    run = storage.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Test run not found")
    return run.to_record()


@app.put("/api/test-runs/{run_id}")
async def update_test_run(
    run_id: str,
    request: UpdateTestRunRequest,
    storage: TestRunStorage = Depends(get_storage)
):
    """Replace the tests of a run (after review)"""
    run = storage.update_run(run_id, tests=request.tests)
    if not run:
        raise HTTPException(status_code=404, detail="Test run not found")
    return run.to_record()


@app.delete("/api/test-runs/{run_id}")
async def delete_test_run(run_id: str, storage: TestRunStorage = Depends(get_storage)):
    if not storage.delete_run(run_id):
        raise HTTPException(status_code=404, detail="Test run not found")
    return {"success": True}


@app.post("/api/test-runs/{run_id}/execute")
async def execute_test_run(
    run_id: str,
    storage: TestRunStorage = Depends(get_storage),
    coordinator: RunCoordinator = Depends(get_coordinator)
):
    """Execute every test of a run and store the results"""
    run = storage.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Test run not found")

    storage.update_run(run_id, status=RunStatus.RUNNING)
    logger.info(f"Executing test run {run_id} ({len(run.tests)} tests)")

    try:
        results = await coordinator.execute_run(run)
    except Exception as e:
        logger.error(f"Test run {run_id} failed: {e}")
        storage.update_run(run_id, status=RunStatus.ERROR, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    updated = storage.mark_completed(run_id, [r.to_dict() for r in results])
    return updated.to_record()


# ============ Screenshots ============

@app.get("/screenshots/{path:path}")
async def get_screenshot(path: str, store: LocalScreenshotStore = Depends(get_screenshot_store)):
    try:
        file_path = store.resolve(path)
    except ValueError:
        raise HTTPException(status_code=404, detail="Screenshot not found")

    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="Screenshot not found")
    return FileResponse(str(file_path))
