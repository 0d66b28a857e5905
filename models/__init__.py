"""
Data models for the Stack Exchange search server.

Wire models for the Stack Exchange API, the immutable search request, and
configuration loaded from the environment.
"""

from models.config import ResponseFormat, Settings, load_settings
from models.questions import (
    Answer,
    CandidateSet,
    ParsedAnswer,
    ParsedQuestion,
    Question,
    ResponseWrapper,
    Site,
)
from models.search import MAX_LIMIT, MergeMode, SearchInput, SearchRequest

__all__ = [
    # Configuration
    "ResponseFormat",
    "Settings",
    "load_settings",
    # Wire models
    "Site",
    "Answer",
    "Question",
    "ResponseWrapper",
    # Parsed documents
    "ParsedAnswer",
    "ParsedQuestion",
    # Search
    "CandidateSet",
    "MergeMode",
    "SearchInput",
    "SearchRequest",
    "MAX_LIMIT",
]
