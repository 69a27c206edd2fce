"""
Snipgen Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


class GenerateSettings(BaseSettings):
    """Generation pipeline settings."""

    model_config = SettingsConfigDict(env_prefix="GENERATE_")

    worker_count: int = Field(
        default=0, ge=0, le=256, description="Parallel workers, 0 uses the CPU count"
    )
    debounce_delay_ms: int = Field(default=100, ge=10, le=5000)
    results_buffer: int = Field(default=256, ge=1)
    keep_orphaned_files: bool = Field(default=False)
    lazy: bool = Field(default=False)


class WatcherSettings(BaseSettings):
    """File watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    recursive: bool = Field(default=True)
    ignore_patterns: list[str] = Field(
        default=[
            ".git",
            ".venv",
            "venv",
            ".idea",
            ".vscode",
            "__pycache__",
            "node_modules",
            ".pytest_cache",
            ".mypy_cache",
            ".ruff_cache",
        ],
        description="Directory names or glob patterns skipped by the walker and watcher",
    )

    @field_validator("ignore_patterns", mode="before")
    @classmethod
    def parse_ignore_patterns(cls, v: str | list[str]) -> list[str]:
        """Parse ignore patterns from comma-separated string or list."""
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v


class RenderSettings(BaseSettings):
    """Default renderer settings."""

    model_config = SettingsConfigDict(env_prefix="RENDER_")

    tab_width: int = Field(default=8, ge=1, le=16)
    line_numbers: bool = Field(default=False)
    base_line: int = Field(default=1, ge=0)
    linkable_lines: bool = Field(default=False)
    include_version: bool = Field(default=False)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="snipgen")
    app_version: str = Field(default="0.1.0")

    # Sub-settings
    generate: GenerateSettings = Field(default_factory=GenerateSettings)
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    render: RenderSettings = Field(default_factory=RenderSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings.
    """
    return Settings()
