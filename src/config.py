"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

PORTABLE_MARKER = "portable.txt"


def default_data_directory() -> Path:
    """Pick where overrides live.

    Portable mode (a portable.txt marker in the working directory) keeps
    data next to the app in ./data; otherwise it goes under the user's home.
    """
    if (Path.cwd() / PORTABLE_MARKER).exists():
        return Path.cwd() / "data"
    return Path.home() / ".namegame"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Roster Photo Matcher"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Storage
    images_directory: Path | None = Field(
        default=None,
        description="Folder holding the photos and the roster spreadsheet",
    )
    data_directory: Path | None = Field(
        default=None,
        description="Where mappings.json is kept (portable or home directory)",
    )
    overrides_filename: str = Field(default="mappings.json")
    preferences_filename: str = Field(
        default="preferences.json",
        description="Remembers the images directory chosen at runtime",
    )

    # Matching
    auto_accept_strong_matches: bool = Field(
        default=True,
        description="Resolve fuzzy matches within edit distance 3 without review",
    )

    # Directory watch
    watch_enabled: bool = Field(default=True)
    watch_debounce_ms: int = Field(default=1600, ge=0)
    watch_force_polling: bool = Field(default=False)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def _fill_data_directory(self) -> "Settings":
        if self.data_directory is None:
            self.data_directory = default_data_directory()
        return self

    @property
    def overrides_path(self) -> Path:
        """Full path of the manual override file."""
        return self.data_directory / self.overrides_filename

    @property
    def preferences_path(self) -> Path:
        """Full path of the saved preferences file."""
        return self.data_directory / self.preferences_filename


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
