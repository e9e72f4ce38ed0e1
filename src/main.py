"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.adapters.roster_adapter import RosterAdapter
from src.api.photos import start_watch
from src.api.router import api_router
from src.config import settings
from src.identity.engine import ReconciliationEngine
from src.identity.resolver import IdentityResolver
from src.repositories.override_repo import OverrideRepository
from src.repositories.preferences_repo import PreferencesRepository
from src.services.directory_watcher import DirectoryWatcher

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Load manual overrides and the remembered images directory
    - Build the reconciliation engine and run the first pass
    - Start watching the images directory

    Shutdown:
    - Stop the directory watch
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")

    override_repo = OverrideRepository(settings.overrides_path)
    app.state.override_repo = override_repo
    logger.info(f"Overrides loaded from {override_repo.path}")

    preferences_repo = PreferencesRepository(settings.preferences_path)
    app.state.preferences_repo = preferences_repo
    # A directory chosen at runtime wins over the configured default
    images_directory = preferences_repo.images_directory or settings.images_directory

    resolver = IdentityResolver.default(
        override_repo,
        auto_accept_strong_matches=settings.auto_accept_strong_matches,
    )
    engine = ReconciliationEngine(
        roster_source=RosterAdapter(),
        overrides=override_repo,
        resolver=resolver,
        directory=images_directory,
    )
    app.state.engine = engine
    app.state.reload_pending = False

    if engine.directory is not None:
        result = engine.reconcile()
        if not result.success:
            logger.warning(f"Initial load failed: {result.reason}")
    else:
        logger.info("No images directory configured yet")

    watcher = None
    if settings.watch_enabled:
        watcher = DirectoryWatcher(
            debounce_ms=settings.watch_debounce_ms,
            force_polling=settings.watch_force_polling,
        )
    app.state.directory_watcher = watcher
    start_watch(app)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    if watcher is not None:
        watcher.stop()
        await watcher.wait_closed()
        logger.info("Directory watch stopped")


app = FastAPI(
    title=settings.app_name,
    description="Matches a folder of photos to a name roster",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="127.0.0.1",
        port=8000,
    )
