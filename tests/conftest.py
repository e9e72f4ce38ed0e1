"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.adapters.roster_adapter import RosterAdapter
from src.identity.engine import ReconciliationEngine
from src.main import app
from src.repositories.override_repo import OverrideRepository

ROSTER = ["Smith, John", "Doe, Jane", "Williams, Robert"]


def write_roster(directory: Path, names: list[str], filename: str = "roster.csv") -> Path:
    """Write a one-column CSV roster."""
    path = directory / filename
    lines = ["Name"] + [f'"{name}"' for name in names]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    """Images directory with the default roster and no photos."""
    directory = tmp_path / "photos"
    directory.mkdir()
    write_roster(directory, ROSTER)
    return directory


@pytest.fixture
def add_photos(images_dir: Path) -> Callable[..., list[Path]]:
    """Create empty photo files in the images directory."""

    def _add(*names: str) -> list[Path]:
        paths = []
        for name in names:
            path = images_dir / name
            path.write_bytes(b"")
            paths.append(path)
        return paths

    return _add


@pytest.fixture
def override_repo(tmp_path: Path) -> OverrideRepository:
    """Override repository backed by a temp file."""
    return OverrideRepository(tmp_path / "data" / "mappings.json")


@pytest.fixture
def engine(images_dir: Path, override_repo: OverrideRepository) -> ReconciliationEngine:
    """Engine with the default override -> exact -> fuzzy pipeline."""
    return ReconciliationEngine(
        roster_source=RosterAdapter(),
        overrides=override_repo,
        directory=images_dir,
    )


@pytest.fixture
async def client(
    engine: ReconciliationEngine, override_repo: OverrideRepository
) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app with a loaded engine."""
    engine.reconcile()

    # Set up app state
    app.state.override_repo = override_repo
    app.state.engine = engine
    app.state.directory_watcher = None
    app.state.reload_pending = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up app state
    del app.state.override_repo
    del app.state.engine
    del app.state.directory_watcher
    del app.state.reload_pending
