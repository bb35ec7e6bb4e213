"""
Part QA Tracker - FastAPI Backend
Main application entry point
"""
from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_settings
from database import StorePool
from errors import QATrackerError
from routes import assistant, metrics, parts, reports, store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting Part QA Tracker API...")
    pool = getattr(app.state, "store_pool", None)
    if pool is None:
        pool = StorePool.from_settings(settings)
        app.state.store_pool = pool

    await pool.connect()
    await pool.create_tables()

    yield

    # Shutdown
    logger.info("Shutting down Part QA Tracker API...")
    await pool.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="Part QA Tracker API",
    description="Tracks part quality issues from uploaded QA workbooks",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors with the usual ``{error}`` body"""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    logger.warning(f"Rejected request to {request.url.path}: {messages}")
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


@app.exception_handler(QATrackerError)
async def qa_tracker_error_handler(request: Request, exc: QATrackerError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


app.include_router(store.router)
app.include_router(reports.router)
app.include_router(parts.router)
app.include_router(metrics.router)
app.include_router(assistant.router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.python_env == "development",
        timeout_keep_alive=65,
        log_level="info"
    )
