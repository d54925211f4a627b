"""
FastAPI application for OpenLesson.

Provides REST API for:
- Plan generation from a topic
- Submission evaluation
- Adaptive recompute of upcoming challenges
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from config import get_settings
from src.core.logs import configure_logging
from src.db.database import check_database_health, init_db

settings = get_settings()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging()
    logger.info("Starting OpenLesson service...")
    init_db()
    if not settings.has_ai_configured():
        logger.warning("OPENROUTER_API_KEY is not set; generation and grading will fail")
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down OpenLesson service...")


app = FastAPI(
    title="OpenLesson",
    description="""
    Adaptive challenge engine.

    ## Flow

    ```
    Topic
        ↓ generate
    Plan + Challenges
        ↓ learner submits
    Evaluation (passed / feedback / score)
        ↓ recompute
    Adapted Challenges
    ```
    """,
    version=VERSION,
    lifespan=lifespan,
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "openlesson",
        "version": VERSION,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with database connectivity and AI configuration."""
    db_status, db_error = check_database_health()

    result: dict[str, Any] = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {
            "database": db_status,
            "ai": "configured" if settings.has_ai_configured() else "not_configured",
        },
        "model": settings.ai_model,
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from src.api.routers import lessons_router  # noqa: E402

app.include_router(lessons_router.router, prefix="/api", tags=["Lessons"])
