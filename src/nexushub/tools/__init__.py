"""Tool collaborators and the default registry wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nexushub.protocols.registry import ToolRegistry
from nexushub.tools.database import ToolDatabase
from nexushub.tools.docker import DockerTools
from nexushub.tools.filesystem import FilesystemTools
from nexushub.tools.general import GeneralTools
from nexushub.tools.search import SerperSearch
from nexushub.tools.vector import VectorStore

if TYPE_CHECKING:
    from nexushub.config import ServerSettings

__all__ = [
    "DockerTools",
    "FilesystemTools",
    "GeneralTools",
    "SerperSearch",
    "ToolDatabase",
    "Toolbox",
    "VectorStore",
    "build_toolbox",
]


@dataclass
class Toolbox:
    """The registry plus the collaborators whose lifecycle the transports own."""

    registry: ToolRegistry
    database: ToolDatabase


def build_toolbox(settings: ServerSettings) -> Toolbox:
    """Build the default registry: general, filesystem, database, docker, search, vector."""
    database = ToolDatabase(settings.database_url)
    tools = [
        *GeneralTools(settings.latest_libs_path, default_timeout=settings.fetch_timeout).definitions(),
        *FilesystemTools(settings.shared_fs_path).definitions(),
        *database.definitions(),
        *DockerTools(settings.docker_binary).definitions(),
        *SerperSearch(settings.serper_api_key, url=settings.serper_url).definitions(),
        *VectorStore(database, settings.docs_source_dir).definitions(),
    ]
    return Toolbox(registry=ToolRegistry(tools, namespace=settings.tool_namespace), database=database)
