"""Tests for Markdown ingestion and similarity search."""

from __future__ import annotations

from collections import Counter
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from nexushub.tools.database import ToolDatabase
from nexushub.tools.errors import ToolError
from nexushub.tools.vector import VectorStore, cosine, split_chunks, tokenize


@pytest.fixture
async def database(tmp_path: Path) -> AsyncIterator[ToolDatabase]:
    db = ToolDatabase(f"sqlite+aiosqlite:///{tmp_path / 'vectors.db'}")
    await db.init()
    yield db
    await db.dispose()


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    (root / "guides").mkdir(parents=True)
    (root / "install.md").write_text(
        "# Installation\n\nInstall the server with pip.\n\nThen configure the database path.\n"
    )
    (root / "guides" / "docker.md").write_text(
        "Docker containers can be started and stopped from the tools.\n"
    )
    (root / "ignored.txt").write_text("not markdown")
    return root


class TestHelpers:
    def test_tokenize_drops_stopwords_and_punctuation(self) -> None:
        assert tokenize("The Server, and THE database!") == ["server", "database"]

    def test_cosine(self) -> None:
        a = Counter(["docker", "container"])
        assert cosine(a, a) == pytest.approx(1.0)
        assert cosine(a, Counter(["python"])) == 0.0
        assert cosine(Counter(), a) == 0.0

    def test_split_chunks_respects_limit(self) -> None:
        text = "\n\n".join(["x" * 40] * 5)
        chunks = split_chunks(text, max_chars=100)
        assert len(chunks) == 3
        assert all(len(chunk.replace("\n\n", "")) <= 100 for chunk in chunks)

    def test_split_chunks_empty(self) -> None:
        assert split_chunks("   \n\n  ") == []


class TestVectorStore:
    async def test_ingest_reports_counts(self, database: ToolDatabase, docs: Path) -> None:
        result = await VectorStore(database, docs).ingest_docs()
        assert result["success"] is True
        assert result["details"]["files_processed"] == 2
        assert result["details"]["chunks_created"] == 2

    async def test_reingest_replaces_chunks(self, database: ToolDatabase, docs: Path) -> None:
        store = VectorStore(database, docs)
        await store.ingest_docs()
        await store.ingest_docs()
        rows = await database.execute_query("SELECT COUNT(*) AS n FROM vector_documents")
        assert rows == [{"n": 2}]

    async def test_ingest_subdirectory(self, database: ToolDatabase, docs: Path) -> None:
        result = await VectorStore(database, docs).ingest_docs("guides")
        assert result["details"]["files_processed"] == 1

    async def test_ingest_missing_directory(self, database: ToolDatabase, tmp_path: Path) -> None:
        with pytest.raises(ToolError, match="Failed to ingest docs"):
            await VectorStore(database, tmp_path / "nowhere").ingest_docs()

    async def test_search_ranks_relevant_chunk_first(
        self, database: ToolDatabase, docs: Path
    ) -> None:
        store = VectorStore(database, docs)
        await store.ingest_docs()

        result = await store.vector_search("docker containers", n_results=5)

        assert result["query"] == "docker containers"
        assert len(result["results"]) == 1
        top = result["results"][0]
        assert top["id"] == "guides/docker.md#0"
        assert top["metadata"] == {"source": "guides/docker.md", "title": "docker"}
        assert 0 < top["score"] <= 1

    async def test_title_from_heading(self, database: ToolDatabase, docs: Path) -> None:
        store = VectorStore(database, docs)
        await store.ingest_docs()
        result = await store.vector_search("install pip")
        assert result["results"][0]["metadata"]["title"] == "Installation"

    async def test_search_without_matches(self, database: ToolDatabase, docs: Path) -> None:
        store = VectorStore(database, docs)
        await store.ingest_docs()
        assert (await store.vector_search("kubernetes"))["results"] == []
