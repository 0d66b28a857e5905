"""Search request models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.config import ResponseFormat

# Stack Exchange caps pagesize at 100
MAX_LIMIT = 100


class MergeMode(str, Enum):
    """How per-site result lists are combined into one list."""

    DIRECT_MULTI = "direct_multi"  # Keyword search over several sites
    DIRECT_SINGLE = "direct_single"  # Keyword search over one site
    DISCOVERY = "discovery"  # Ids found via DuckDuckGo


class SearchRequest(BaseModel):
    """
    One search invocation. Immutable for the lifetime of the search.

    Use ``lucky()`` to derive the single-answer variant instead of changing
    an existing request.
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="forbid",
    )

    query: str = Field(..., min_length=1)
    sites: tuple[str, ...] = Field(default=("stackoverflow",), min_length=1)
    limit: int = Field(default=20, ge=1, le=MAX_LIMIT)
    use_duckduckgo: bool = False
    api_key: Optional[str] = None

    @field_validator("sites")
    @classmethod
    def dedupe_sites(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop blank and repeated site codes, keeping the first occurrence."""
        sites = tuple(dict.fromkeys(s.strip() for s in v if s.strip()))
        if not sites:
            raise ValueError("At least one site code is required")
        return sites

    def lucky(self) -> "SearchRequest":
        """
        Derive the request used for a lucky search.

        The limit drops to 1. Keyword search only queries the first site,
        since one relevance-ranked site answers faster than several.
        """
        update: dict = {"limit": 1}
        if not self.use_duckduckgo:
            update["sites"] = self.sites[:1]
        return self.model_copy(update=update)


class SearchInput(BaseModel):
    """Tool input for a Stack Exchange search."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )

    query: str = Field(
        ...,
        description="Developer question, e.g. 'how do I exit vim?'",
        min_length=2,
        max_length=500,
    )

    sites: Optional[list[str]] = Field(
        default=None,
        description="Site codes to search (e.g. ['stackoverflow', 'unix']). Defaults to SO_SITES.",
    )

    limit: Optional[int] = Field(
        default=None,
        description="Questions per site (keyword search) or in total (DuckDuckGo)",
        ge=1,
        le=MAX_LIMIT,
    )

    duckduckgo: Optional[bool] = Field(
        default=None,
        description="Find questions through DuckDuckGo instead of the Stack Exchange search API",
    )

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' (default) or 'json'",
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Collapse whitespace and reject queries with no search terms."""
        v = " ".join(v.split())
        if not v.rstrip("?"):
            raise ValueError("Query must contain at least one search term.")
        return v
