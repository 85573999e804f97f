"""Database tools over an async SQLAlchemy engine (SQLite by default)."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from nexushub.protocols.registry import RegisteredTool
from nexushub.tools.errors import QueryNotAllowedError, ToolError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

metadata = MetaData()


def _timestamps() -> list[Column[Any]]:
    return [
        Column("created_at", DateTime, server_default=func.current_timestamp()),
        Column("updated_at", DateTime, server_default=func.current_timestamp()),
    ]


api_keys = Table(
    "api_keys",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("service", String(255), nullable=False, unique=True),
    Column("key", String(255), nullable=False),
    *_timestamps(),
)

projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", String(255)),
    Column("path", String(255), nullable=False),
    *_timestamps(),
)

vector_documents = Table(
    "vector_documents",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("document_id", String(255), nullable=False, unique=True),
    Column("source_path", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("title", String(255), nullable=False),
    *_timestamps(),
)


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise QueryNotAllowedError(f"Invalid identifier: {name!r}")
    return name


class ToolDatabase:
    """Owns the async engine and implements the ``db_*`` tools.

    Usage::

        db = ToolDatabase("sqlite+aiosqlite:///data/mcp_server.db")
        await db.init()
        rows = await db.execute_query("SELECT * FROM projects")
        await db.dispose()
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._engine: AsyncEngine | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._ensure_sqlite_dir()
            self._engine = create_async_engine(self._url)
        return self._engine

    async def init(self) -> None:
        """Create the server tables if they do not exist yet."""
        logger.info("Connecting to database at %s", make_url(self._url).render_as_string())
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Database initialized")

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def execute_query(self, query: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run a read-only ``SELECT`` with named bind parameters."""
        try:
            if not query.strip().lower().startswith("select"):
                raise QueryNotAllowedError("Only SELECT queries are allowed")
            async with self.engine.connect() as conn:
                result = await conn.execute(text(query), params or {})
                return [dict(row._mapping) for row in result]
        except (SQLAlchemyError, ToolError) as exc:
            logger.error("Error executing query: %s", exc)
            raise ToolError(f"Failed to execute query: {exc}") from exc

    async def list_tables(self) -> list[str]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(
                    text(
                        "SELECT name FROM sqlite_master "
                        "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
                    )
                )
                return [row.name for row in result]
        except SQLAlchemyError as exc:
            logger.error("Error listing tables: %s", exc)
            raise ToolError(f"Failed to list tables: {exc}") from exc

    async def describe_table(self, table_name: str) -> list[dict[str, Any]]:
        try:
            name = _check_identifier(table_name)
            async with self.engine.connect() as conn:
                result = await conn.execute(text(f'PRAGMA table_info("{name}")'))
                columns = [
                    {
                        "name": row.name,
                        "type": row.type,
                        "notnull": bool(row.notnull),
                        "dflt_value": row.dflt_value,
                        "pk": bool(row.pk),
                    }
                    for row in result
                ]
        except (SQLAlchemyError, ToolError) as exc:
            logger.error("Error describing table: %s", exc)
            raise ToolError(f"Failed to describe table: {exc}") from exc
        if not columns:
            raise ToolError(f"Failed to describe table: no such table: {table_name}")
        return columns

    async def insert_data(self, table_name: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            name = _check_identifier(table_name)
            if not data:
                raise QueryNotAllowedError("No data to insert")
            columns = [_check_identifier(col) for col in data]
            binds = {f"p{i}": value for i, value in enumerate(data.values())}
            statement = 'INSERT INTO "{}" ({}) VALUES ({})'.format(
                name,
                ", ".join(f'"{col}"' for col in columns),
                ", ".join(f":{key}" for key in binds),
            )
            async with self.engine.begin() as conn:
                result = await conn.execute(text(statement), binds)
                row_id = result.lastrowid
        except (SQLAlchemyError, ToolError) as exc:
            logger.error("Error inserting data: %s", exc)
            raise ToolError(f"Failed to insert data: {exc}") from exc
        return {
            "success": True,
            "id": row_id,
            "message": f"Data inserted into {table_name} successfully",
        }

    def _ensure_sqlite_dir(self) -> None:
        url = make_url(self._url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    def definitions(self) -> list[RegisteredTool]:
        return [
            RegisteredTool.from_function(
                self.execute_query,
                name="db_execute_query",
                description="Executes a read-only SQL query against the database.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "The SQL query to execute"},
                        "params": {"type": "object", "description": "Query parameters"},
                    },
                    "required": ["query"],
                },
            ),
            RegisteredTool.from_function(
                self.list_tables,
                name="db_list_tables",
                description="Lists all tables in the database.",
                input_schema={"type": "object", "properties": {}},
            ),
            RegisteredTool.from_function(
                self.describe_table,
                name="db_describe_table",
                description="Describes the columns of a specific table.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "table_name": {
                            "type": "string",
                            "description": "The name of the table to describe",
                        },
                    },
                    "required": ["table_name"],
                },
            ),
            RegisteredTool.from_function(
                self.insert_data,
                name="db_insert_data",
                description="Inserts a single row into the specified table.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "table_name": {"type": "string", "description": "The name of the table"},
                        "data": {
                            "type": "object",
                            "description": "The data to insert (column/value pairs)",
                        },
                    },
                    "required": ["table_name", "data"],
                },
            ),
        ]
