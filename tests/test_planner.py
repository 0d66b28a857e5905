"""Tests for query planning: direct search, discovery, and lucky search."""

import asyncio

import httpx
import pytest

from core.errors import (
    BlockedError,
    EmptyQuestionError,
    NoResultsError,
    SiteTaskError,
    TransportError,
)
from core.planner import StackExchange
from models import ParsedQuestion, SearchRequest

SITE_URLS = {
    "stackoverflow": "stackoverflow.com",
    "askubuntu": "askubuntu.com",
    "unix": "unix.stackexchange.com",
}


class FakeNetwork:
    """Routes requests to canned Stack Exchange / DuckDuckGo responses."""

    def __init__(self, items_response, search=None, questions=None, html=None):
        self.items_response = items_response
        self.search = search or {}
        self.questions = questions or {}
        self.html = html
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "duckduckgo.com":
            return httpx.Response(200, text=self.html)

        site = request.url.params["site"]
        if request.url.path == "/2.2/search/advanced":
            result = self.search[site]
        else:
            result = self.questions[site]
        if isinstance(result, httpx.Response):
            return result
        return self.items_response(result)

    def sites_requested(self, path: str):
        return [r.url.params["site"] for r in self.requests if r.url.path.startswith(path)]


def searcher(request: SearchRequest, client: httpx.AsyncClient, **kwargs) -> StackExchange:
    return StackExchange(
        request,
        {code: SITE_URLS[code] for code in request.sites},
        client,
        **kwargs,
    )


class TestDirectSearch:
    async def test_multi_site_sorted_by_score(self, mock_client, items_response, question_payload):
        network = FakeNetwork(
            items_response,
            search={
                "stackoverflow": [question_payload(1, 3), question_payload(2, 30)],
                "unix": [question_payload(3, 10, answers=[(31, 1), (32, 8)])],
            },
        )
        request = SearchRequest(query="exit vim", sites=["stackoverflow", "unix"], limit=5)

        async with mock_client(network) as client:
            questions = await searcher(request, client).search()

        assert [q.id for q in questions] == [2, 3, 1]
        scores = [q.score for q in questions]
        assert scores == sorted(scores, reverse=True)
        for q in questions:
            answer_scores = [a.score for a in q.answers]
            assert answer_scores == sorted(answer_scores, reverse=True)
        assert sorted(network.sites_requested("/2.2/search/advanced")) == ["stackoverflow", "unix"]
        assert {r.url.params["pagesize"] for r in network.requests} == {"5"}

    async def test_single_site_keeps_relevance_order(self, mock_client, items_response, question_payload):
        network = FakeNetwork(
            items_response,
            search={"unix": [question_payload(1, 0), question_payload(2, 99)]},
        )
        request = SearchRequest(query="exit vim", sites=["unix"])

        async with mock_client(network) as client:
            questions = await searcher(request, client).search()

        assert [q.id for q in questions] == [1, 2]

    async def test_one_failing_site_fails_search(self, mock_client, items_response, question_payload):
        network = FakeNetwork(
            items_response,
            search={
                "stackoverflow": [question_payload(1, 3)],
                "unix": httpx.Response(500, text="boom"),
            },
        )
        request = SearchRequest(query="exit vim", sites=["stackoverflow", "unix"])

        async with mock_client(network) as client:
            with pytest.raises(SiteTaskError) as exc_info:
                await searcher(request, client).search()

        assert exc_info.value.site == "unix"
        assert isinstance(exc_info.value.cause, TransportError)

    async def test_failure_stops_queued_sites(self, mock_client, items_response, question_payload):
        network = FakeNetwork(
            items_response,
            search={
                "unix": httpx.Response(500, text="boom"),
                "stackoverflow": [question_payload(1, 3)],
                "askubuntu": [question_payload(2, 3)],
            },
        )
        request = SearchRequest(query="exit vim", sites=["unix", "stackoverflow", "askubuntu"])

        async with mock_client(network) as client:
            with pytest.raises(SiteTaskError):
                await searcher(request, client, concurrency=1).search()
            await asyncio.sleep(0.01)

        assert network.sites_requested("/2.2/search/advanced") == ["unix"]

    async def test_api_key_forwarded(self, mock_client, items_response):
        network = FakeNetwork(items_response, search={"stackoverflow": []})
        request = SearchRequest(query="exit vim", api_key="k3y")

        async with mock_client(network) as client:
            assert await searcher(request, client).search() == []

        assert network.requests[0].url.params["key"] == "k3y"


class TestDiscoverySearch:
    async def test_resolves_candidates_per_site(
        self, mock_client, items_response, question_payload, fixture_html
    ):
        network = FakeNetwork(
            items_response,
            html=fixture_html("exit-vim.html"),
            questions={
                "stackoverflow": [question_payload(11828270, 4000), question_payload(9171356, 2000)],
                "askubuntu": [question_payload(24406, 900)],
            },
        )
        request = SearchRequest(
            query="how do I exit vim?",
            sites=["stackoverflow", "askubuntu"],
            limit=3,
            use_duckduckgo=True,
        )

        async with mock_client(network) as client:
            questions = await searcher(request, client).search()

        assert [q.id for q in questions] == [11828270, 9171356, 24406]
        paths = sorted(r.url.path for r in network.requests if r.url.host != "duckduckgo.com")
        assert paths == ["/2.2/questions/11828270;9171356", "/2.2/questions/24406"]

    async def test_preserve_rank(self, mock_client, items_response, question_payload, fixture_html):
        network = FakeNetwork(
            items_response,
            html=fixture_html("exit-vim.html"),
            questions={
                "stackoverflow": [question_payload(11828270, 4000), question_payload(9171356, 2000)],
                "askubuntu": [question_payload(24406, 900)],
            },
        )
        request = SearchRequest(
            query="exit vim", sites=["stackoverflow", "askubuntu"], limit=3, use_duckduckgo=True
        )

        async with mock_client(network) as client:
            questions = await searcher(request, client, preserve_discovery_rank=True).search()

        assert [q.id for q in questions] == [11828270, 24406, 9171356]

    async def test_sites_without_candidates_are_skipped(
        self, mock_client, items_response, question_payload, fixture_html
    ):
        network = FakeNetwork(
            items_response,
            html=fixture_html("exit-vim.html"),
            questions={"stackoverflow": [question_payload(11828270, 1)]},
        )
        # askubuntu's result comes second; limit 1 stops before it
        request = SearchRequest(
            query="exit vim", sites=["stackoverflow", "askubuntu", "unix"], limit=1, use_duckduckgo=True
        )

        async with mock_client(network) as client:
            questions = await searcher(request, client).search()

        assert [q.id for q in questions] == [11828270]
        assert network.sites_requested("/2.2/questions") == ["stackoverflow"]

    async def test_blocked(self, mock_client, items_response, fixture_html):
        network = FakeNetwork(items_response, html=fixture_html("bad-user-agent.html"))
        request = SearchRequest(query="exit vim", use_duckduckgo=True)

        async with mock_client(network) as client:
            with pytest.raises(BlockedError):
                await searcher(request, client).search()

    async def test_empty_not_blocked(self, mock_client, items_response, fixture_html):
        network = FakeNetwork(items_response, html=fixture_html("bad-user-agent.html"))
        request = SearchRequest(query="exit vim", use_duckduckgo=True)

        async with mock_client(network) as client:
            result = await searcher(request, client, empty_is_blocked=False).search()

        assert result == []
        assert len(network.requests) == 1


class TestLuckySearch:
    async def test_returns_top_answer(self, mock_client, items_response, question_payload):
        network = FakeNetwork(
            items_response,
            search={"stackoverflow": [question_payload(1, 5, answers=[(10, 2), (11, 50)])]},
        )
        request = SearchRequest(query="exit vim", sites=["stackoverflow", "unix"], limit=10)

        async with mock_client(network) as client:
            body = await searcher(request, client).search_lucky()

        assert body == "Answer 11"
        # Only the first site is queried, for one result
        assert network.sites_requested("/2.2/search/advanced") == ["stackoverflow"]
        assert network.requests[0].url.params["pagesize"] == "1"
        # The caller's request is untouched
        assert request.limit == 10
        assert request.sites == ("stackoverflow", "unix")

    async def test_discovery_keeps_all_sites(
        self, mock_client, items_response, question_payload, fixture_html
    ):
        network = FakeNetwork(
            items_response,
            html=fixture_html("exit-vim.html"),
            questions={"stackoverflow": [question_payload(11828270, 1, answers=[(5, 1)])]},
        )
        request = SearchRequest(
            query="exit vim", sites=["stackoverflow", "askubuntu"], use_duckduckgo=True
        )

        async with mock_client(network) as client:
            body = await searcher(request, client).search_lucky()

        assert body == "Answer 5"
        ddg = network.requests[0]
        assert "site:askubuntu.com" in ddg.url.params["q"]

    async def test_no_results(self, mock_client, items_response):
        network = FakeNetwork(items_response, search={"stackoverflow": []})

        async with mock_client(network) as client:
            with pytest.raises(NoResultsError):
                await searcher(SearchRequest(query="zzz"), client).search_lucky()

    async def test_question_without_answers(self, mock_client, items_response, question_payload):
        network = FakeNetwork(items_response, search={"stackoverflow": [question_payload(7, 1)]})

        async with mock_client(network) as client:
            with pytest.raises(EmptyQuestionError) as exc_info:
                await searcher(SearchRequest(query="zzz"), client).search_lucky()

        assert exc_info.value.question_id == 7


class TestSearchMarkdown:
    async def test_parses_bodies(self, mock_client, items_response, question_payload):
        network = FakeNetwork(
            items_response,
            search={"stackoverflow": [question_payload(1, 5, answers=[(10, 2)])]},
        )

        async with mock_client(network) as client:
            [parsed] = await searcher(SearchRequest(query="vim"), client).search_md()

        assert isinstance(parsed, ParsedQuestion)
        assert parsed.body.markup == "Body of 1"
        assert parsed.answers[0].body.markup == "Answer 10"


class TestOwnClient:
    async def test_opens_temporary_client(self, monkeypatch, items_response):
        """Without an injected client a temporary one is created per search."""
        created = []
        real_client = httpx.AsyncClient

        def factory(**kwargs):
            network = FakeNetwork(items_response, search={"stackoverflow": []})
            client = real_client(transport=httpx.MockTransport(network))
            created.append(kwargs)
            return client

        monkeypatch.setattr(httpx, "AsyncClient", factory)
        planner = StackExchange(SearchRequest(query="vim"), {"stackoverflow": "stackoverflow.com"})

        assert await planner.search() == []
        assert created and created[0]["timeout"] == 30.0
