"""
Stack Exchange wire models and the structures derived from them.

Only the fields selected by the API filter are modelled; anything else in
the payload is ignored.
"""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from rich.markdown import Markdown

T = TypeVar("T")

# ══════════════════════════════════════════════════════════════════════════════
# Wire Models
# ══════════════════════════════════════════════════════════════════════════════


class Site(BaseModel):
    """One Q&A community: its API code and canonical domain."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    code: str = Field(..., alias="api_site_parameter")
    url: str = Field(..., alias="site_url")


class Answer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(..., alias="answer_id")
    score: int
    body: str = Field(..., alias="body_markdown")
    is_accepted: bool = False


class Question(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(..., alias="question_id")
    score: int
    title: str
    body: str = Field(..., alias="body_markdown")
    answers: List[Answer] = Field(default_factory=list)


class ResponseWrapper(BaseModel, Generic[T]):
    """Boilerplate envelope around every API response."""

    model_config = ConfigDict(extra="ignore")

    items: List[T] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════════
# Parsed Documents
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class ParsedAnswer:
    id: int
    score: int
    body: Markdown
    is_accepted: bool


@dataclass
class ParsedQuestion:
    """A question whose bodies are renderable markdown documents."""

    id: int
    score: int
    title: str
    body: Markdown
    answers: List[ParsedAnswer] = field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════════
# Discovery Candidates
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class CandidateSet:
    """
    Question ids discovered per site, in order of first appearance.

    Each candidate also remembers its position in the search engine's result
    list so the original cross-site ranking can be restored after resolution.
    """

    ids: dict[str, list[str]] = field(default_factory=dict)
    ordinals: dict[tuple[str, str], int] = field(default_factory=dict)
    count: int = 0

    def add(self, site: str, question_id: str) -> None:
        self.ids.setdefault(site, []).append(question_id)
        self.ordinals.setdefault((site, question_id), self.count)
        self.count += 1

    def ordinal(self, site: str, question_id) -> Optional[int]:
        return self.ordinals.get((site, str(question_id)))

    def items(self):
        return self.ids.items()

    def __len__(self) -> int:
        return self.count

    def __bool__(self) -> bool:
        return self.count > 0
