"""
Tavily web search exposed to the generation backend as its single tool.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from autogen_core.tools import FunctionTool
from tavily import TavilyClient

from .errors import ConfigurationError
from .model_registry import ProviderCredentials
from .schemas import SearchResponse, SearchResult

logger = logging.getLogger(__name__)

SEARCH_TOOL_NAME = "search_web"

# Fixed per-call parameters; callers may only choose how many results to keep.
SEARCH_OPTIONS: Dict[str, Any] = {
    "search_depth": "basic",
    "include_answer": True,
    "include_raw_content": False,
    "include_images": False,
}


class SearchCapability:
    """Normalises one Tavily search into a list of `SearchResult`."""

    def __init__(self, client: Any, *, default_max_results: int = 5) -> None:
        self._client = client
        self._default_max_results = default_max_results

    @classmethod
    def from_credentials(cls, credentials: ProviderCredentials) -> "SearchCapability":
        if not credentials.tavily_api_key:
            raise ConfigurationError("TAVILY_API_KEY environment variable is not set.")
        return cls(TavilyClient(api_key=credentials.tavily_api_key))

    def search(self, query: str, max_results: Optional[int] = None) -> List[SearchResult]:
        if not query or not query.strip():
            raise ValueError("Search query must be a non-empty string.")
        limit = self._default_max_results if max_results is None else max_results

        logger.info("Executing Tavily search for: %s", query)
        try:
            response = self._client.search(query=query, max_results=limit, **SEARCH_OPTIONS)
        except Exception:
            logger.exception("[search_web] Error searching for '%s'", query)
            raise

        entries = response.get("results") if isinstance(response, dict) else None
        if not isinstance(entries, list):
            entries = []

        results: List[SearchResult] = []
        for entry in entries[:limit]:
            if not isinstance(entry, dict):
                continue
            results.append(
                SearchResult(
                    title=entry.get("title") or "",
                    url=entry.get("url") or "",
                    content=entry.get("content") or "",
                )
            )
        logger.info("Tavily returned %d result(s) for: %s", len(results), query)
        return results

    def as_tool(self, failures: Optional[List[Exception]] = None) -> FunctionTool:
        """
        Wrap `search` as the function tool offered to the backend.

        The backend turns tool exceptions into error results for the model, so
        every raised exception is also appended to `failures` when given. The
        caller re-raises it once the run returns.
        """

        def search_web(query: str) -> SearchResponse:
            try:
                return SearchResponse(results=self.search(query))
            except Exception as exc:
                if failures is not None:
                    failures.append(exc)
                raise

        return FunctionTool(
            func=search_web,
            name=SEARCH_TOOL_NAME,
            description=(
                "Search the internet for information. Use this tool to find current and accurate "
                "information about any topic. Provide a focused query string."
            ),
        )
