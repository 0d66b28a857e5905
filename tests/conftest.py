"""Pytest configuration, shared fixtures and lightweight asyncio support.

Coroutine test functions are executed on a fresh event loop by the
``pytest_pyfunc_call`` hook below, so the suite needs no asyncio plugin.
HTTP is faked with ``httpx.MockTransport``; nothing here touches the network.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register a no-op ``--asyncio-mode`` option for compatibility."""

    try:
        parser.addoption(
            "--asyncio-mode",
            action="store",
            default="auto",
            help="Compat shim for async tests without pytest-asyncio",
        )
    except ValueError:
        # Already registered by an installed asyncio plugin
        pass


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute coroutine test functions on an event loop.

    Returning ``True`` tells pytest the call was handled, preventing the
    default (which would error on an un-awaited coroutine).
    """

    test_obj = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_obj):
        return None

    bound_args = {
        name: value
        for name, value in pyfuncitem.funcargs.items()
        if name in inspect.signature(test_obj).parameters
    }

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(test_obj(**bound_args))
    finally:
        loop.close()
        asyncio.set_event_loop(None)

    return True


# ══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def fixture_html() -> Callable[[str], str]:
    """Read an HTML page from tests/fixtures."""

    def read(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return read


@pytest.fixture
def question_payload() -> Callable[..., dict[str, Any]]:
    """Build a question as the Stack Exchange API returns it."""

    def build(
        question_id: int,
        score: int = 0,
        answers: list[tuple[int, int]] | None = None,
        title: str | None = None,
    ) -> dict[str, Any]:
        return {
            "question_id": question_id,
            "score": score,
            "title": title or f"Question {question_id}",
            "body_markdown": f"Body of {question_id}",
            "answers": [
                {
                    "answer_id": answer_id,
                    "score": answer_score,
                    "body_markdown": f"Answer {answer_id}",
                    "is_accepted": False,
                }
                for answer_id, answer_score in (answers or [])
            ],
        }

    return build


@pytest.fixture
def mock_client() -> Callable[[Callable], httpx.AsyncClient]:
    """Create an AsyncClient whose requests are answered by ``handler``."""

    def build(handler: Callable) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build


def json_response(items: list[dict[str, Any]], status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps({"items": items}).encode())


@pytest.fixture
def items_response() -> Callable[..., httpx.Response]:
    """Wrap items in the Stack Exchange response envelope."""
    return json_response
