"""Photo reconciliation API endpoints.

Exposes the matched and unmatched photo lists, the manual assignment
workflow, and reload controls for the presentation layer.

Handlers are async and run on the event loop, which keeps the engine
single-writer. Reloads and assignments read the roster, list the
directory and fsync the override file inline, so other requests wait
while one of them runs.
"""

from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from src.identity.engine import ReconciliationEngine
from src.identity.schemas import (
    PhotoRecord,
    ReconciliationResult,
    Suggestion,
    UnresolvedFile,
)
from src.repositories.override_repo import OverridePersistenceError
from src.repositories.preferences_repo import PreferencesRepository
from src.services.directory_watcher import DirectoryWatcher

logger = structlog.get_logger()

router = APIRouter(prefix="/photos", tags=["photos"])


class PhotoResponse(BaseModel):
    """A matched photo."""

    filename: str = Field(description="Photo filename")
    image_path: str = Field(description="Absolute or configured path to the photo")
    first_name: str
    last_name: str
    display_name: str = Field(description="'First Last'")
    roster_name: str = Field(description="'Last, First'")
    source: str = Field(description="How the match was determined")

    @classmethod
    def from_record(cls, record: PhotoRecord) -> "PhotoResponse":
        """Convert internal PhotoRecord to API response model."""
        return cls(
            filename=record.filename,
            image_path=str(record.image_path),
            first_name=record.identity.first_name,
            last_name=record.identity.last_name,
            display_name=record.identity.display_name,
            roster_name=record.identity.roster_name,
            source=record.source.value,
        )


class SuggestionResponse(BaseModel):
    """A ranked roster candidate."""

    roster_name: str
    distance: int = Field(description="Edit distance to the filename")
    is_strong: bool = Field(description="True if distance <= 3")

    @classmethod
    def from_suggestion(cls, suggestion: Suggestion) -> "SuggestionResponse":
        return cls(
            roster_name=suggestion.roster_name,
            distance=suggestion.distance,
            is_strong=suggestion.is_strong,
        )


class UnresolvedResponse(BaseModel):
    """A photo waiting for manual assignment."""

    filename: str
    image_path: str
    suggestions: list[SuggestionResponse] = Field(default_factory=list)
    has_strong_suggestion: bool = False
    note: str | None = Field(default=None, description="Why the photo was parked")

    @classmethod
    def from_unresolved(cls, item: UnresolvedFile) -> "UnresolvedResponse":
        return cls(
            filename=item.filename,
            image_path=str(item.path),
            suggestions=[SuggestionResponse.from_suggestion(s) for s in item.suggestions],
            has_strong_suggestion=item.has_strong_suggestion,
            note=item.note,
        )


class StatusResponse(BaseModel):
    """Engine state for the presentation layer."""

    state: str
    last_error: str | None = None
    directory: str | None = None
    resolved_count: int
    unresolved_count: int
    roster_size: int
    reload_pending: bool = Field(
        description="True if the directory changed since the last reload"
    )
    watching: bool


class AssignRequest(BaseModel):
    """Request to bind a photo to a roster name."""

    filename: str = Field(description="Photo filename")
    roster_name: str = Field(description="Roster name in 'Last, First' form")


class AssignResponse(BaseModel):
    """Outcome of a manual assignment."""

    filename: str
    resolved: bool = Field(description="False if the identity was already taken")
    photo: PhotoResponse | None = None
    unresolved: UnresolvedResponse | None = None


class AssignStrongResponse(BaseModel):
    """Outcome of accepting all strong suggestions."""

    assigned: int = Field(description="Photos that became matched")
    remaining_unresolved: int


class DirectoryRequest(BaseModel):
    """Request to switch the images directory."""

    directory: str = Field(description="Folder with photos and roster")


def get_engine(request: Request) -> ReconciliationEngine:
    """Get ReconciliationEngine from app state."""
    if not hasattr(request.app.state, "engine"):
        raise HTTPException(status_code=500, detail="ReconciliationEngine not initialized")
    return request.app.state.engine


def start_watch(app: FastAPI) -> None:
    """(Re)start the directory watch for the engine's current directory.

    The change callback only flags that a reload is pending; the client
    decides when to call POST /photos/reload.
    """
    watcher: DirectoryWatcher | None = getattr(app.state, "directory_watcher", None)
    engine: ReconciliationEngine = app.state.engine
    if watcher is None or engine.directory is None:
        return

    def on_change() -> None:
        app.state.reload_pending = True
        logger.info("Reload pending", directory=str(engine.directory))

    watcher.start(engine.directory, on_change)


def _status(request: Request, engine: ReconciliationEngine) -> StatusResponse:
    watcher: DirectoryWatcher | None = getattr(
        request.app.state, "directory_watcher", None
    )
    return StatusResponse(
        state=engine.state.value,
        last_error=engine.last_error,
        directory=str(engine.directory) if engine.directory else None,
        resolved_count=len(engine.resolved_identities()),
        unresolved_count=len(engine.unresolved_files()),
        roster_size=len(engine.roster_index),
        reload_pending=getattr(request.app.state, "reload_pending", False),
        watching=bool(watcher and watcher.is_running),
    )


@router.get("/resolved", response_model=list[PhotoResponse])
async def list_resolved(
    engine: ReconciliationEngine = Depends(get_engine),
) -> list[PhotoResponse]:
    """List matched photos from the last committed pass."""
    return [PhotoResponse.from_record(r) for r in engine.resolved_identities()]


@router.get("/unresolved", response_model=list[UnresolvedResponse])
async def list_unresolved(
    engine: ReconciliationEngine = Depends(get_engine),
) -> list[UnresolvedResponse]:
    """List photos needing manual assignment, with ranked suggestions."""
    return [UnresolvedResponse.from_unresolved(u) for u in engine.unresolved_files()]


@router.get("/status", response_model=StatusResponse)
async def get_status(
    request: Request,
    engine: ReconciliationEngine = Depends(get_engine),
) -> StatusResponse:
    """Current engine state, counts and whether a reload is pending."""
    return _status(request, engine)


@router.post("/reload", response_model=ReconciliationResult)
async def reload_photos(
    request: Request,
    engine: ReconciliationEngine = Depends(get_engine),
) -> ReconciliationResult:
    """Run a full reconciliation pass.

    A failed pass keeps the previous matches; the response carries
    success=False and the reason.
    """
    result = engine.reconcile()
    if result.success:
        request.app.state.reload_pending = False
    return result


@router.post("/assign", response_model=AssignResponse)
async def assign_photo(
    body: AssignRequest,
    engine: ReconciliationEngine = Depends(get_engine),
) -> AssignResponse:
    """Bind a photo to a roster name and remember it as an override.

    Args:
        body: Photo filename and roster name
        engine: Reconciliation engine

    Returns:
        AssignResponse with the new match, or the parked photo if the
        identity already belongs to another photo
    """
    try:
        outcome = engine.assign(body.filename, body.roster_name)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OverridePersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if isinstance(outcome, PhotoRecord):
        return AssignResponse(
            filename=body.filename,
            resolved=True,
            photo=PhotoResponse.from_record(outcome),
        )
    return AssignResponse(
        filename=body.filename,
        resolved=False,
        unresolved=UnresolvedResponse.from_unresolved(outcome),
    )


@router.post("/assign-strong", response_model=AssignStrongResponse)
async def assign_strong_suggestions(
    engine: ReconciliationEngine = Depends(get_engine),
) -> AssignStrongResponse:
    """Accept the best suggestion for every photo where it is strong."""
    try:
        assigned = engine.assign_all_strong_suggestions()
    except OverridePersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return AssignStrongResponse(
        assigned=assigned,
        remaining_unresolved=len(engine.unresolved_files()),
    )


@router.put("/directory", response_model=ReconciliationResult)
async def set_directory(
    body: DirectoryRequest,
    request: Request,
    engine: ReconciliationEngine = Depends(get_engine),
) -> ReconciliationResult:
    """Switch to another images directory, reconcile it and watch it.

    The switch only takes effect if the new directory reconciles. On
    failure the previous directory, matches and watch stay in place.
    A successful switch is remembered for the next launch.
    """
    candidate = Path(body.directory).expanduser()
    result = engine.reconcile(candidate)
    if not result.success:
        return result

    request.app.state.reload_pending = False
    start_watch(request.app)
    preferences: PreferencesRepository | None = getattr(
        request.app.state, "preferences_repo", None
    )
    if preferences is not None and not preferences.save_images_directory(candidate):
        logger.warning("Images directory not remembered", directory=str(candidate))
    return result
