"""
Query planning for Stack Exchange searches.

Chooses between keyword search against the Stack Exchange API and
DuckDuckGo discovery followed by id lookup, then fans the per-site
requests out and merges the results.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Mapping, Optional

import httpx

from api.duckduckgo import DUCKDUCKGO_URL, discover
from api.stackexchange import API_TIMEOUT, SE_API_URL, fetch_questions, search_advanced
from core.aggregate import merge
from core.errors import EmptyQuestionError, NoResultsError
from core.fanout import CONCURRENT_REQUESTS_LIMIT, SiteOperation, fan_out
from core.markdown import parse_questions
from models.questions import ParsedQuestion, Question
from models.search import MergeMode, SearchRequest

__all__ = ["StackExchange"]

logger = logging.getLogger(__name__)


class StackExchange:
    """
    Runs one search request against the Stack Exchange network.

    The HTTP client, when given, is shared read-only by every per-site task.
    Without one, each call opens a temporary client.
    """

    def __init__(
        self,
        request: SearchRequest,
        sites: Mapping[str, str],
        client: Optional[httpx.AsyncClient] = None,
        *,
        preserve_discovery_rank: bool = False,
        empty_is_blocked: bool = True,
        concurrency: int = CONCURRENT_REQUESTS_LIMIT,
        api_url: str = SE_API_URL,
        duckduckgo_url: str = DUCKDUCKGO_URL,
    ):
        self.request = request
        self.sites = dict(sites)
        self.client = client
        self.preserve_discovery_rank = preserve_discovery_rank
        self.empty_is_blocked = empty_is_blocked
        self.concurrency = concurrency
        self.api_url = api_url
        self.duckduckgo_url = duckduckgo_url

    def with_request(self, request: SearchRequest) -> "StackExchange":
        """Copy of this planner bound to a different request."""
        return StackExchange(
            request,
            self.sites,
            self.client,
            preserve_discovery_rank=self.preserve_discovery_rank,
            empty_is_blocked=self.empty_is_blocked,
            concurrency=self.concurrency,
            api_url=self.api_url,
            duckduckgo_url=self.duckduckgo_url,
        )

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=API_TIMEOUT) as client:
            yield client

    # ══════════════════════════════════════════════════════════════════════════
    # Entry Points
    # ══════════════════════════════════════════════════════════════════════════

    async def search(self) -> List[Question]:
        """Search the query and get a list of relevant questions."""
        async with self._client() as client:
            if self.request.use_duckduckgo:
                questions = await self._search_duckduckgo(client)
            else:
                questions = await self._search_advanced(client)

        logger.info(f"Found {len(questions)} questions for '{self.request.query}'")
        return questions

    async def search_lucky(self) -> str:
        """
        Search the query and get the top answer body.

        Raises:
            NoResultsError: No question matched
            EmptyQuestionError: The top question has no answers
        """
        questions = await self.with_request(self.request.lucky()).search()
        if not questions:
            raise NoResultsError()
        question = questions[0]
        if not question.answers:
            raise EmptyQuestionError(question.id)
        return question.answers[0].body

    async def search_md(self) -> List[ParsedQuestion]:
        """Search and parse every body into a renderable document."""
        return parse_questions(await self.search())

    # ══════════════════════════════════════════════════════════════════════════
    # Execution Paths
    # ══════════════════════════════════════════════════════════════════════════

    async def _search_advanced(self, client: httpx.AsyncClient) -> List[Question]:
        """Keyword search on every configured site."""
        request = self.request

        def operation(site: str) -> SiteOperation:
            return lambda: search_advanced(
                client,
                site,
                request.query,
                request.limit,
                api_key=request.api_key,
                base_url=self.api_url,
            )

        per_site = await fan_out(
            {site: operation(site) for site in request.sites}, self.concurrency
        )
        mode = MergeMode.DIRECT_MULTI if len(request.sites) > 1 else MergeMode.DIRECT_SINGLE
        return merge(per_site, mode)

    async def _search_duckduckgo(self, client: httpx.AsyncClient) -> List[Question]:
        """Find question ids on DuckDuckGo, then fetch them per site."""
        request = self.request
        candidates = await discover(
            client,
            request.query,
            self.sites,
            request.limit,
            empty_is_blocked=self.empty_is_blocked,
            base_url=self.duckduckgo_url,
        )

        def operation(site: str, ids: List[str]) -> SiteOperation:
            return lambda: fetch_questions(
                client, site, ids, api_key=request.api_key, base_url=self.api_url
            )

        operations: Dict[str, SiteOperation] = {
            site: operation(site, ids) for site, ids in candidates.items() if ids
        }
        per_site = await fan_out(operations, self.concurrency)
        return merge(
            per_site,
            MergeMode.DISCOVERY,
            candidates=candidates if self.preserve_discovery_rank else None,
        )
