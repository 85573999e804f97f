"""NexusHub — a fixed catalogue of tools served over stdio and HTTP."""

from __future__ import annotations

__version__ = "1.0.0"

SERVER_NAME = "NexusHub MCP Server"
