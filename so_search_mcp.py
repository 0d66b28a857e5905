#!/usr/bin/env python3
"""
Stack Exchange Search MCP Server

An MCP server that answers developer questions with real Q&A threads from
Stack Overflow and the rest of the Stack Exchange network.

Features:
- Keyword search across several Stack Exchange sites at once
- DuckDuckGo discovery as an alternative to the Stack Exchange search API
- "Lucky" mode returning only the best answer to the best question
- Cleaned-up markdown for every question and answer body
"""

import json
import logging
import sys
from typing import List

import httpx
from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from api.stackexchange import API_TIMEOUT
from core.errors import SearchError, UnknownSiteError
from core.planner import StackExchange
from core.sites import SiteDirectory
from models import (
    Question,
    ResponseFormat,
    SearchInput,
    SearchRequest,
    Settings,
    load_settings,
)

# Set up logging
logging.getLogger().setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

SETTINGS = load_settings()

# Initialize MCP server
mcp = FastMCP("so_search_mcp")

# Constants
CHARACTER_LIMIT = 25000


# ============================================================================
# Search Plumbing
# ============================================================================


def build_request(params: SearchInput, settings: Settings) -> SearchRequest:
    """Combine tool input with the configured defaults."""
    return SearchRequest(
        query=params.query,
        sites=tuple(params.sites or settings.sites),
        limit=params.limit or settings.limit,
        use_duckduckgo=(
            settings.duckduckgo if params.duckduckgo is None else params.duckduckgo
        ),
        api_key=settings.api_key,
    )


async def build_searcher(
    client: httpx.AsyncClient, request: SearchRequest, settings: Settings
) -> StackExchange:
    """
    Resolve the request's sites against the site directory.

    Raises:
        UnknownSiteError: A requested site code does not exist
    """
    directory = await SiteDirectory.load(client, settings.sites_file)
    invalid = directory.find_invalid_site(request.sites)
    if invalid is not None:
        raise UnknownSiteError(invalid)

    return StackExchange(
        request,
        directory.get_urls(request.sites),
        client,
        preserve_discovery_rank=settings.preserve_discovery_rank,
        empty_is_blocked=settings.empty_is_blocked,
    )


def render_markdown(questions: List[Question]) -> str:
    """Render questions and their answers as one markdown document."""
    if not questions:
        return "No results found."

    sections = []
    for q in questions:
        lines = [f"# {q.title}", f"*Score: {q.score} · Question {q.id}*", "", q.body]
        for a in q.answers:
            accepted = " ✓ accepted" if a.is_accepted else ""
            lines += ["", f"## Answer ({a.score}){accepted}", "", a.body]
        sections.append("\n".join(lines))

    text = "\n\n---\n\n".join(sections)
    if len(text) > CHARACTER_LIMIT:
        text = text[:CHARACTER_LIMIT] + "\n\n…(truncated)"
    return text


def render_json(questions: List[Question]) -> str:
    return json.dumps([q.model_dump() for q in questions], indent=2)


# ============================================================================
# Tools
# ============================================================================


@mcp.tool(
    name="stackexchange_search",
    annotations={
        "title": "Search Stack Exchange",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def stackexchange_search(params: SearchInput) -> str:
    """
    Search Stack Exchange sites for questions matching a developer question.

    Returns every matching question with all of its answers, best answers
    first. With several sites the questions are ranked by score.

    Args:
        params: Query, optional site codes, limit, and discovery mode

    Returns:
        str: Markdown document or JSON list of questions

    Examples:
        - Use when: "how do I exit vim?" on stackoverflow and unix
        - Don't use when: You only need the single best answer (use stackexchange_lucky)
    """
    try:
        request = build_request(params, SETTINGS)
        async with httpx.AsyncClient(timeout=API_TIMEOUT) as client:
            searcher = await build_searcher(client, request, SETTINGS)
            questions = await searcher.search()
    except (SearchError, ValidationError) as e:
        logger.warning(f"Search failed: {e}")
        return f"❌ Error: {e}"

    if params.response_format == ResponseFormat.JSON:
        return render_json(questions)
    return render_markdown(questions)


@mcp.tool(
    name="stackexchange_lucky",
    annotations={
        "title": "Best Stack Exchange Answer",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def stackexchange_lucky(params: SearchInput) -> str:
    """
    Get only the top answer to the most relevant question.

    Keyword search uses just the first site for speed.

    Returns:
        str: Markdown body of the best answer
    """
    try:
        request = build_request(params, SETTINGS)
        async with httpx.AsyncClient(timeout=API_TIMEOUT) as client:
            searcher = await build_searcher(client, request, SETTINGS)
            return await searcher.search_lucky()
    except (SearchError, ValidationError) as e:
        logger.warning(f"Lucky search failed: {e}")
        return f"❌ Error: {e}"


def validate_environment():
    """Report configuration on startup."""
    print("\nValidating environment...", file=sys.stderr)

    if SETTINGS.api_key:
        print("Stack Exchange API key configured (10,000 requests/day)", file=sys.stderr)
    else:
        print("No STACKEXCHANGE_API_KEY set (300 requests/day)", file=sys.stderr)

    mode = "DuckDuckGo discovery" if SETTINGS.duckduckgo else "Stack Exchange search"
    print(f"Sites: {', '.join(SETTINGS.sites)} · Mode: {mode}", file=sys.stderr)
    print("Ready\n", file=sys.stderr)


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    validate_environment()

    # Run the MCP server
    mcp.run()
