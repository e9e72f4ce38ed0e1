"""Health check endpoints for the photo matcher service."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from src.config import settings

router = APIRouter(prefix="/health", tags=["health"])

# Checks that do not affect readiness
INFORMATIONAL_CHECKS = {"watch"}


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str
    timestamp: datetime
    version: str
    environment: str


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: str
    checks: dict[str, str] = Field(description="Component name -> ok or a problem")


def _engine_check(request: Request) -> str:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return "not_configured"
    if engine.snapshot.directory is None:
        # Nothing committed yet (never loaded, or every pass failed)
        return engine.state.value
    return "ok"


def _overrides_check(request: Request) -> str:
    repo = getattr(request.app.state, "override_repo", None)
    if repo is None:
        return "not_configured"
    if repo.load_error:
        return "unreadable"
    parent = repo.path.parent
    if parent.exists() and not parent.is_dir():
        return "unwritable"
    return "ok"


def _watch_check(request: Request) -> str:
    watcher = getattr(request.app.state, "directory_watcher", None)
    if watcher is None:
        return "disabled"
    if watcher.failure:
        return "failed"
    return "ok" if watcher.is_running else "stopped"


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe - app is running."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe - photos have been reconciled at least once.

    The directory watch is reported but never blocks readiness, since
    manual reload still works without it.
    """
    checks = {
        "api": "ok",
        "engine": _engine_check(request),
        "overrides": _overrides_check(request),
        "watch": _watch_check(request),
    }

    required = [v for k, v in checks.items() if k not in INFORMATIONAL_CHECKS]
    status = "ready" if all(v == "ok" for v in required) else "not_ready"
    return ReadinessResponse(status=status, checks=checks)
