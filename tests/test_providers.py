"""
Unit tests for the provider registry.
"""

import asyncio

import pytest

from errors import UpstreamFailure
from models import SearchResult
from providers import ProviderRegistry, build_user_prompt, parse_completion, parse_serper_results


class _FakeResponse:
    def __init__(self, status, payload):
        self.status = status
        self.payload = payload

    async def json(self):
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def test_registry_without_configuration_has_only_placeholder():
    registry = ProviderRegistry()

    assert [p.name for p in registry.search_producers("q")] == ["local-placeholder"]
    assert registry.web_search_producers("q") == []
    assert registry.completion_producers("q", []) == []
    assert registry.describe() == {"webSearch": False, "aiCompletion": False}


def test_registry_with_keys_orders_producers():
    registry = ProviderRegistry(serper_api_key="key", ai_enabled=True, ai_api_key="secret")

    assert [p.name for p in registry.search_producers("q")] == ["serper", "local-placeholder"]
    assert [p.name for p in registry.completion_producers("q", [])] == ["ai-completion"]


def test_ai_flag_without_key_stays_disabled():
    registry = ProviderRegistry(ai_enabled=True, ai_api_key="")
    assert registry.completion_producers("q", []) == []


def test_placeholder_search():
    results = asyncio.run(ProviderRegistry.placeholder_search("tides"))
    assert len(results) == 1
    assert results[0].title == 'About "tides"'
    assert results[0].position == 1


def test_parse_serper_results_fills_defaults():
    data = {"organic": [{"title": "A", "link": "https://a", "snippet": "s"}, {"displayed_link": "https://b"}]}

    results = parse_serper_results(data)

    assert results[0] == SearchResult(title="A", url="https://a", snippet="s", position=1)
    assert results[1] == SearchResult(title="Result 2", url="https://b", snippet="", position=2)
    assert parse_serper_results({}) == []


def test_parse_completion():
    assert parse_completion({"choices": [{"message": {"content": " hi "}}]}) == "hi"
    assert parse_completion({"choices": []}) == ""


def test_build_user_prompt():
    assert build_user_prompt("q", []) == "q"
    prompt = build_user_prompt("q", [SearchResult("T", "https://t", "s", 1)])
    assert prompt.startswith("Context from web search:\n\n[1] T")
    assert prompt.endswith("User question: q")


def test_serper_search_posts_query():
    session = _FakeSession(_FakeResponse(200, {"organic": [{"title": "A", "link": "https://a"}]}))
    registry = ProviderRegistry(serper_api_key="key", session_factory=lambda: session)

    results = asyncio.run(registry.serper_search("tides"))

    assert [r.title for r in results] == ["A"]
    url, kwargs = session.calls[0]
    assert url == "https://google.serper.dev/search"
    assert kwargs["json"] == {"q": "tides", "num": 5}
    assert kwargs["headers"]["X-API-KEY"] == "key"


def test_serper_search_raises_on_http_error():
    session = _FakeSession(_FakeResponse(403, {}))
    registry = ProviderRegistry(serper_api_key="key", session_factory=lambda: session)

    with pytest.raises(UpstreamFailure):
        asyncio.run(registry.serper_search("tides"))


def test_complete_sends_system_prompt():
    session = _FakeSession(_FakeResponse(200, {"choices": [{"message": {"content": "Answer"}}]}))
    registry = ProviderRegistry(ai_enabled=True, ai_api_key="secret", session_factory=lambda: session)

    answer = asyncio.run(registry.complete("question", []))

    assert answer == "Answer"
    _, kwargs = session.calls[0]
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    messages = kwargs["json"]["messages"]
    assert messages[0]["role"] == "system"
    assert messages[1] == {"role": "user", "content": "question"}
