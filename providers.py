"""
Capability registry for optional search and AI completion providers.

The registry is built once from configuration and hands out ordered
producer lists for the fallback chains; request handlers never look at
environment flags themselves.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import aiohttp

import config
from errors import UpstreamFailure
from fallback import Producer
from formatter import format_search_context
from models import ChatTurn, Role, SearchResult

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "https://example.com"
PLACEHOLDER_SNIPPET = (
    "External search is not configured or temporarily unavailable. "
    "This is a local fallback summary."
)

SessionFactory = Callable[[], aiohttp.ClientSession]


def parse_serper_results(data: Dict[str, Any]) -> List[SearchResult]:
    results = []
    for idx, item in enumerate(data.get("organic") or []):
        results.append(
            SearchResult(
                title=item.get("title") or f"Result {idx + 1}",
                url=item.get("link") or item.get("displayed_link") or PLACEHOLDER_URL,
                snippet=item.get("snippet") or "",
                position=idx + 1,
            )
        )
    return results


def parse_completion(data: Dict[str, Any]) -> str:
    try:
        return (data["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError):
        return ""


def build_user_prompt(message: str, results: Sequence[SearchResult]) -> str:
    context = format_search_context(results)
    if not context:
        return message
    return f"Context from web search:\n\n{context}\n\nUser question: {message}"


class ProviderRegistry:
    """Ordered producer factories for the configured providers."""

    def __init__(
        self,
        serper_api_key: str = "",
        ai_enabled: bool = False,
        ai_api_key: str = "",
        ai_api_url: str = config.AI_API_URL,
        ai_model: str = config.AI_MODEL,
        timeout_seconds: int = config.PROVIDER_TIMEOUT_SECONDS,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.serper_api_key = serper_api_key
        self.ai_enabled = ai_enabled and bool(ai_api_key)
        self.ai_api_key = ai_api_key
        self.ai_api_url = ai_api_url
        self.ai_model = ai_model
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.session_factory = session_factory or aiohttp.ClientSession

    @classmethod
    def from_config(cls) -> "ProviderRegistry":
        registry = cls(
            serper_api_key=config.SERPER_API_KEY,
            ai_enabled=config.AI_ENABLED,
            ai_api_key=config.AI_API_KEY,
        )
        if config.AI_ENABLED and not config.AI_API_KEY:
            logger.warning("AI_ENABLED is set but AI_API_KEY is empty; AI completion disabled")
        return registry

    @property
    def has_search(self) -> bool:
        return bool(self.serper_api_key)

    def describe(self) -> Dict[str, bool]:
        return {"webSearch": self.has_search, "aiCompletion": self.ai_enabled}

    def web_search_producers(self, query: str) -> List[Producer[List[SearchResult]]]:
        """External search providers only, in priority order."""
        producers: List[Producer[List[SearchResult]]] = []
        if self.has_search:
            producers.append(Producer("serper", lambda: self.serper_search(query)))
        return producers

    def search_producers(self, query: str) -> List[Producer[List[SearchResult]]]:
        """External providers followed by the local placeholder."""
        producers = self.web_search_producers(query)
        producers.append(Producer("local-placeholder", lambda: self.placeholder_search(query)))
        return producers

    def completion_producers(
        self,
        message: str,
        results: Sequence[SearchResult],
    ) -> List[Producer[str]]:
        if not self.ai_enabled:
            return []
        return [Producer("ai-completion", lambda: self.complete(message, results))]

    async def serper_search(self, query: str, num: int = config.SEARCH_RESULT_COUNT) -> List[SearchResult]:
        headers = {"X-API-KEY": self.serper_api_key, "Content-Type": "application/json"}
        async with self.session_factory() as session:
            async with session.post(
                config.SERPER_URL,
                json={"q": query, "num": num},
                headers=headers,
                timeout=self.timeout,
            ) as response:
                if response.status != 200:
                    raise UpstreamFailure("serper", f"HTTP {response.status}")
                data = await response.json()
        return parse_serper_results(data)

    @staticmethod
    async def placeholder_search(query: str) -> List[SearchResult]:
        return [
            SearchResult(
                title=f'About "{query}"',
                url=PLACEHOLDER_URL,
                snippet=PLACEHOLDER_SNIPPET,
                position=1,
            )
        ]

    async def complete(self, message: str, results: Sequence[SearchResult]) -> str:
        messages = [
            {"role": "system", "content": config.SYSTEM_PROMPT},
            ChatTurn(role=Role.USER, content=build_user_prompt(message, results)).to_message(),
        ]
        payload = {
            "model": self.ai_model,
            "messages": messages,
            "temperature": config.AI_TEMPERATURE,
            "max_tokens": config.AI_MAX_TOKENS,
        }
        headers = {"Authorization": f"Bearer {self.ai_api_key}"}
        async with self.session_factory() as session:
            async with session.post(
                self.ai_api_url,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            ) as response:
                if response.status != 200:
                    raise UpstreamFailure("ai-completion", f"HTTP {response.status}")
                data = await response.json()
        return parse_completion(data)
