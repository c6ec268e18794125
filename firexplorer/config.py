"""Environment-driven settings."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from firexplorer.query.pager import DEFAULT_PAGE_SIZE


class ConfigError(RuntimeError):
    """Raised when a setting in the environment is malformed."""


@dataclass(slots=True)
class Settings:
    page_size: int = DEFAULT_PAGE_SIZE
    credentials_path: Path | None = None
    log_level: str = "INFO"


def load_settings(env_file: str | Path | None = None) -> Settings:
    load_dotenv(env_file)

    raw_page_size = os.getenv("FIREXPLORER_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))
    try:
        page_size = int(raw_page_size)
    except ValueError:
        raise ConfigError(f"FIREXPLORER_PAGE_SIZE must be an integer, got {raw_page_size!r}") from None
    if page_size < 1:
        raise ConfigError(f"FIREXPLORER_PAGE_SIZE must be >= 1, got {page_size}")

    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    return Settings(
        page_size=page_size,
        credentials_path=Path(credentials) if credentials else None,
        log_level=os.getenv("FIREXPLORER_LOG_LEVEL", "INFO").upper(),
    )
