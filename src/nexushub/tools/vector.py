"""Documentation store — Markdown ingestion and similarity search.

Chunks live in the ``vector_documents`` table.  Similarity is cosine over
term-frequency vectors, computed at query time; the corpus is expected to
be a project's docs folder, not a web-scale index.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from nexushub.protocols.registry import RegisteredTool
from nexushub.tools.database import vector_documents
from nexushub.tools.errors import ToolError

if TYPE_CHECKING:
    from nexushub.tools.database import ToolDatabase

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"[a-z0-9_]+")
_HEADING = re.compile(r"^#{1,6}\s+(.+?)\s*#*\s*$", re.MULTILINE)

STOPWORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "is", "it", "as", "was", "are", "be",
    "this", "that", "which", "has", "have", "had", "not", "no", "do",
    "can", "you", "we", "they", "its", "if", "then", "so", "into",
})


def tokenize(text: str) -> list[str]:
    return [t for t in _TOKEN.findall(text.lower()) if t not in STOPWORDS and len(t) > 1]


def cosine(a: Counter[str], b: Counter[str]) -> float:
    if not a or not b:
        return 0.0
    dot = sum(count * b[term] for term, count in a.items() if term in b)
    if not dot:
        return 0.0
    norm = math.sqrt(sum(v * v for v in a.values())) * math.sqrt(sum(v * v for v in b.values()))
    return dot / norm


def split_chunks(text: str, max_chars: int = 1500) -> list[str]:
    """Group blank-line separated paragraphs into chunks of at most *max_chars*."""
    chunks: list[str] = []
    current: list[str] = []
    size = 0
    for para in (p.strip() for p in re.split(r"\n\s*\n", text)):
        if not para:
            continue
        if current and size + len(para) > max_chars:
            chunks.append("\n\n".join(current))
            current, size = [], 0
        current.append(para)
        size += len(para)
    if current:
        chunks.append("\n\n".join(current))
    return chunks


class VectorStore:
    """``ingest_docs`` and ``vector_search``."""

    def __init__(self, database: ToolDatabase, docs_root: Path, *, max_chunk_chars: int = 1500) -> None:
        self._db = database
        self._docs_root = docs_root
        self._max_chunk_chars = max_chunk_chars

    async def ingest_docs(self, source_dir: str | None = None) -> dict[str, Any]:
        docs_dir = self._docs_root / source_dir if source_dir else self._docs_root
        try:
            files = await asyncio.to_thread(self._read_markdown, docs_dir)
            chunks_created = 0
            async with self._db.engine.begin() as conn:
                for rel_path, text in files:
                    title = self._title_for(rel_path, text)
                    await conn.execute(
                        delete(vector_documents).where(vector_documents.c.source_path == rel_path)
                    )
                    rows = [
                        {
                            "document_id": f"{rel_path}#{i}",
                            "source_path": rel_path,
                            "content": chunk,
                            "title": title,
                        }
                        for i, chunk in enumerate(split_chunks(text, self._max_chunk_chars))
                    ]
                    if rows:
                        await conn.execute(insert(vector_documents), rows)
                    chunks_created += len(rows)
        except (OSError, SQLAlchemyError) as exc:
            logger.error("Error ingesting docs: %s", exc)
            raise ToolError(f"Failed to ingest docs: {exc}") from exc

        logger.info("Ingested %d chunks from %d files in %s", chunks_created, len(files), docs_dir)
        return {
            "success": True,
            "message": f"Documentation ingested from {docs_dir}",
            "details": {
                "source_dir": str(docs_dir),
                "files_processed": len(files),
                "chunks_created": chunks_created,
            },
        }

    async def vector_search(self, query: str, n_results: int = 5) -> dict[str, Any]:
        try:
            async with self._db.engine.connect() as conn:
                result = await conn.execute(
                    select(
                        vector_documents.c.document_id,
                        vector_documents.c.source_path,
                        vector_documents.c.content,
                        vector_documents.c.title,
                    )
                )
                rows = result.all()
        except SQLAlchemyError as exc:
            logger.error("Error performing vector search: %s", exc)
            raise ToolError(f"Failed to perform vector search: {exc}") from exc

        query_vec = Counter(tokenize(query))
        scored = [(cosine(query_vec, Counter(tokenize(row.content))), row) for row in rows]
        scored = [item for item in scored if item[0] > 0]
        scored.sort(key=lambda item: item[0], reverse=True)

        return {
            "success": True,
            "query": query,
            "results": [
                {
                    "id": row.document_id,
                    "content": row.content,
                    "score": round(score, 4),
                    "metadata": {"source": row.source_path, "title": row.title},
                }
                for score, row in scored[: max(0, int(n_results))]
            ],
        }

    @staticmethod
    def _read_markdown(docs_dir: Path) -> list[tuple[str, str]]:
        if not docs_dir.is_dir():
            raise FileNotFoundError(f"Documentation directory not found: {docs_dir}")
        return [
            (str(path.relative_to(docs_dir)), path.read_text(encoding="utf-8"))
            for path in sorted(docs_dir.rglob("*.md"))
            if path.is_file()
        ]

    @staticmethod
    def _title_for(rel_path: str, text: str) -> str:
        match = _HEADING.search(text)
        return match.group(1) if match else Path(rel_path).stem

    def definitions(self) -> list[RegisteredTool]:
        return [
            RegisteredTool.from_function(
                self.ingest_docs,
                name="ingest_docs",
                description="Ingests Markdown documentation into the vector store.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "source_dir": {
                            "type": "string",
                            "description": (
                                "Source directory for documentation (relative to docs directory)"
                            ),
                        },
                    },
                },
            ),
            RegisteredTool.from_function(
                self.vector_search,
                name="vector_search",
                description="Performs a similarity search over ingested documentation.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "The search query"},
                        "n_results": {
                            "type": "number",
                            "description": "Number of results to return",
                        },
                    },
                    "required": ["query"],
                },
            ),
        ]
