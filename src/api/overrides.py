"""Manual override API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from src.repositories.override_repo import (
    OverridePersistenceError,
    OverrideRepository,
)

router = APIRouter(prefix="/overrides", tags=["overrides"])


class OverridesResponse(BaseModel):
    """All stored overrides."""

    overrides: dict[str, str] = Field(description="Filename -> 'Last, First'")
    count: int


class RemoveResponse(BaseModel):
    filename: str
    removed: bool


def get_override_repo(request: Request) -> OverrideRepository:
    """Get OverrideRepository from app state."""
    if not hasattr(request.app.state, "override_repo"):
        raise HTTPException(status_code=500, detail="OverrideRepository not initialized")
    return request.app.state.override_repo


@router.get("/", response_model=OverridesResponse)
async def list_overrides(
    repo: OverrideRepository = Depends(get_override_repo),
) -> OverridesResponse:
    overrides = repo.all()
    return OverridesResponse(overrides=overrides, count=len(overrides))


@router.delete("/{filename}", response_model=RemoveResponse)
async def remove_override(
    filename: str,
    repo: OverrideRepository = Depends(get_override_repo),
) -> RemoveResponse:
    """Forget a manual override.

    The photo keeps its current match until the next reload.
    """
    try:
        removed = repo.remove(filename)
    except OverridePersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not removed:
        raise HTTPException(status_code=404, detail=f"No override for {filename}")
    return RemoveResponse(filename=filename, removed=True)


@router.post("/reload", response_model=OverridesResponse)
async def reload_overrides(
    repo: OverrideRepository = Depends(get_override_repo),
) -> OverridesResponse:
    """Re-read overrides from disk.

    Call after a backup import rewrites the overrides file, then reload
    photos so the engine sees them.
    """
    repo.reload()
    overrides = repo.all()
    return OverridesResponse(overrides=overrides, count=len(overrides))
