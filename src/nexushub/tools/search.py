"""Web search through the Serper API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nexushub.protocols.registry import RegisteredTool
from nexushub.tools.errors import ConfigurationError, ToolError

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("search", "news", "images", "places")


class SerperSearch:
    """``serper_search`` — POSTs the query to Serper and returns its JSON."""

    def __init__(
        self,
        api_key: str | None,
        *,
        url: str = "https://google.serper.dev/search",
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._timeout = timeout

    def build_body(
        self,
        query: str,
        search_type: str = "search",
        num_results: int = 10,
        **options: Any,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "q": query,
            "gl": options.pop("gl", "us"),
            "hl": options.pop("hl", "en"),
            "num": num_results,
            **options,
        }
        if search_type != "search":
            if search_type not in SEARCH_TYPES:
                raise ToolError(f"Unsupported search_type: {search_type}")
            body["type"] = search_type
        return body

    async def search(
        self,
        query: str,
        search_type: str = "search",
        num_results: int = 10,
        **options: Any,
    ) -> Any:
        try:
            if not self._api_key:
                raise ConfigurationError("Serper API key is not configured")
            body = self.build_body(query, search_type, num_results, **options)
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json=body,
                    headers={"X-API-KEY": self._api_key, "Content-Type": "application/json"},
                )
            if resp.is_error:
                raise ToolError(f"Serper API error: {resp.status_code} {resp.reason_phrase}")
            return resp.json()
        except (ToolError, httpx.HTTPError, ValueError) as exc:
            logger.error("Error performing search: %s", exc)
            raise ToolError(f"Failed to perform search: {exc}") from exc

    def definitions(self) -> list[RegisteredTool]:
        return [
            RegisteredTool.from_function(
                self.search,
                name="serper_search",
                description="Performs a search using the Serper API.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "The search query"},
                        "search_type": {
                            "type": "string",
                            "description": "Type of search (search, news, images, etc.)",
                            "enum": list(SEARCH_TYPES),
                        },
                        "num_results": {
                            "type": "number",
                            "description": "Number of results to return",
                        },
                    },
                    "required": ["query"],
                },
            ),
        ]
