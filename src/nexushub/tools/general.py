"""General utility tools — curated library versions and URL fetching."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx

from nexushub import SERVER_NAME, __version__
from nexushub.protocols.registry import RegisteredTool
from nexushub.tools.errors import ToolError

logger = logging.getLogger(__name__)

USER_AGENT = f"{SERVER_NAME}/{__version__}"


class GeneralTools:
    """``get_latest_libs`` and ``fetch_url``."""

    def __init__(self, latest_libs_path: Path, *, default_timeout: float = 30.0) -> None:
        self._latest_libs_path = latest_libs_path
        self._default_timeout = default_timeout

    async def get_latest_libs(self) -> Any:
        """Return the curated package-version document."""
        try:
            raw = await asyncio.to_thread(self._latest_libs_path.read_text, encoding="utf-8")
            return json.loads(raw)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error getting latest libraries: %s", exc)
            raise ToolError(f"Failed to get latest libraries: {exc}") from exc

    async def fetch_url(self, url: str, timeout: float | None = None) -> str:
        """GET *url* and return its body for textual content types."""
        try:
            parsed = httpx.URL(url)
            if parsed.scheme not in ("http", "https"):
                raise ToolError(f"Unsupported URL scheme: {parsed.scheme or '(none)'}")

            async with httpx.AsyncClient(
                timeout=float(timeout or self._default_timeout),
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            ) as client:
                resp = await client.get(parsed)

            if resp.is_error:
                raise ToolError(f"HTTP error {resp.status_code}: {resp.reason_phrase}")

            content_type = resp.headers.get("content-type", "")
            if "text/" in content_type or "application/json" in content_type:
                return resp.text
            return f"[Binary content of type {content_type}]"
        except (ToolError, httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error("Error fetching URL: %s", exc)
            raise ToolError(f"Failed to fetch URL: {exc}") from exc

    def definitions(self) -> list[RegisteredTool]:
        return [
            RegisteredTool.from_function(
                self.get_latest_libs,
                name="get_latest_libs",
                description=(
                    "Returns a JSON object with latest secure/stable package versions for Python."
                ),
                input_schema={"type": "object", "properties": {}},
            ),
            RegisteredTool.from_function(
                self.fetch_url,
                name="fetch_url",
                description="Fetches content from a given URL.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "url": {"type": "string", "description": "The URL to fetch"},
                        "timeout": {
                            "type": "number",
                            "description": "Timeout in seconds (default: 30)",
                        },
                    },
                    "required": ["url"],
                },
            ),
        ]
