"""Shared test fixtures for embedsync."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

import pytest

from embedsync.embeddings.provider import Embedding, EmbeddingError
from embedsync.infrastructure.db import create_schema, open_db

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Iterator
    from pathlib import Path


class FakeProvider:
    """Deterministic embedding provider that records every call."""

    dimensions = 4

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail_on: str | None = None

    def embed(self, text: str) -> Embedding:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            msg = f"forced failure for {text[:20]!r}"
            raise EmbeddingError(msg)
        digest = hashlib.sha256(text.encode()).digest()
        vector = [b / 255 for b in digest[: self.dimensions]]
        return Embedding(vector=vector, token_count=len(text.split()))


@pytest.fixture()
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    """Catalog connection with schema created."""
    c = open_db(tmp_path / "catalog.db")
    create_schema(c)
    yield c
    c.close()


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal project structure for testing."""
    project = tmp_path / "proj"
    (project / "docs").mkdir(parents=True)
    return project
