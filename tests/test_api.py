"""Tests for the assembled application."""

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import AsyncClient

from src.adapters.roster_adapter import RosterAdapter
from src.api.health import router as health_router
from src.identity.engine import ReconciliationEngine
from src.main import app, settings
from src.repositories.override_repo import OverrideRepository
from src.repositories.preferences_repo import PreferencesRepository
from tests.conftest import write_roster


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "Roster Photo Matcher"
    assert "timestamp" in data
    assert data["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_liveness(client: AsyncClient) -> None:
    response = await client.get("/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_readiness_after_load(client: AsyncClient) -> None:
    """Ready once a pass has committed; no watcher is only informational."""
    response = await client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"] == {
        "api": "ok",
        "engine": "ok",
        "overrides": "ok",
        "watch": "disabled",
    }


@pytest.mark.asyncio
async def test_status_reports_loaded_engine(client: AsyncClient) -> None:
    """Routers are mounted on the main app."""
    response = await client.get("/photos/status")
    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "loaded"
    assert data["roster_size"] == 3
    assert data["reload_pending"] is False
    assert data["watching"] is False


class TestReadiness:
    """Readiness states outside the happy path."""

    @pytest.fixture
    def health_app(self) -> FastAPI:
        """Bare app with only the health router."""
        health_app = FastAPI()
        health_app.include_router(health_router)
        return health_app

    def test_nothing_configured(self, health_app: FastAPI):
        data = TestClient(health_app).get("/health/ready").json()

        assert data["status"] == "not_ready"
        assert data["checks"]["engine"] == "not_configured"
        assert data["checks"]["overrides"] == "not_configured"

    def test_failed_first_load(self, health_app: FastAPI, tmp_path: Path):
        """An engine that never committed a pass reports its state."""
        repo = OverrideRepository(tmp_path / "mappings.json")
        engine = ReconciliationEngine(
            roster_source=RosterAdapter(),
            overrides=repo,
            directory=tmp_path / "missing",
        )
        engine.reconcile()
        health_app.state.engine = engine
        health_app.state.override_repo = repo

        data = TestClient(health_app).get("/health/ready").json()

        assert data["status"] == "not_ready"
        assert data["checks"]["engine"] == "failed"
        assert data["checks"]["overrides"] == "ok"

    def test_override_store_refusing_writes(
        self,
        health_app: FastAPI,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ):
        def fail(path: Path) -> Path:
            raise PermissionError("read-only")

        path = tmp_path / "mappings.json"
        path.write_text("{broken")
        monkeypatch.setattr("src.repositories.override_repo.quarantine", fail)
        health_app.state.override_repo = OverrideRepository(path)

        data = TestClient(health_app).get("/health/ready").json()

        assert data["checks"]["overrides"] == "unreadable"


class TestRestart:
    """Startup wiring in the application lifespan."""

    @pytest.fixture
    def isolated_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Point the app's settings at temp storage with no watch."""
        monkeypatch.setattr(settings, "data_directory", tmp_path / "data")
        monkeypatch.setattr(settings, "images_directory", None)
        monkeypatch.setattr(settings, "watch_enabled", False)
        return settings

    def test_switched_directory_survives_restart(
        self, isolated_settings, tmp_path: Path
    ):
        other = tmp_path / "period4"
        other.mkdir()
        write_roster(other, ["Jones, Amy"])
        (other / "JonesAmy.jpg").write_bytes(b"")

        with TestClient(app) as first_run:
            assert first_run.get("/photos/status").json()["directory"] is None
            first_run.put("/photos/directory", json={"directory": str(other)})

        with TestClient(app) as second_run:
            status = second_run.get("/photos/status").json()
            resolved = second_run.get("/photos/resolved").json()

        assert status["directory"] == str(other)
        assert status["state"] == "loaded"
        assert [r["roster_name"] for r in resolved] == ["Jones, Amy"]

    def test_remembered_directory_beats_configured_default(
        self, isolated_settings, tmp_path: Path, images_dir: Path
    ):
        other = tmp_path / "period4"
        other.mkdir()
        write_roster(other, ["Jones, Amy"])
        preferences = PreferencesRepository(isolated_settings.preferences_path)
        preferences.save_images_directory(other)
        isolated_settings.images_directory = images_dir

        with TestClient(app) as client:
            status = client.get("/photos/status").json()

        assert status["directory"] == str(other)
