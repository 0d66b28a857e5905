"""Configuration enums and environment settings."""

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class ResponseFormat(str, Enum):
    """Output format for tool responses."""

    MARKDOWN = "markdown"
    JSON = "json"


DEFAULT_CACHE_DIR = Path.home() / ".cache" / "so-search"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Defaults applied to every search unless the caller overrides them."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    sites: tuple[str, ...] = ("stackoverflow",)
    limit: int = Field(default=20, ge=1, le=100)
    duckduckgo: bool = False
    preserve_discovery_rank: bool = False
    empty_is_blocked: bool = True
    cache_dir: Path = DEFAULT_CACHE_DIR

    @property
    def sites_file(self) -> Path:
        return self.cache_dir / "sites.json"


def load_settings() -> Settings:
    """Load settings from the environment (and a .env file if present)."""
    load_dotenv()

    sites = tuple(
        s.strip() for s in os.getenv("SO_SITES", "stackoverflow").split(",") if s.strip()
    )

    return Settings(
        api_key=os.getenv("STACKEXCHANGE_API_KEY") or None,
        sites=sites or ("stackoverflow",),
        limit=int(os.getenv("SO_LIMIT", "20")),
        duckduckgo=_env_flag("SO_DUCKDUCKGO", False),
        preserve_discovery_rank=_env_flag("SO_PRESERVE_DISCOVERY_RANK", False),
        empty_is_blocked=_env_flag("SO_DDG_EMPTY_IS_BLOCKED", True),
        cache_dir=Path(os.getenv("SO_CACHE_DIR", str(DEFAULT_CACHE_DIR))).expanduser(),
    )
