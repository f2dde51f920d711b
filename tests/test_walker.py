"""Tests for embedsync.sources.walker — discovery and page hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from embedsync.sources.walker import SourceEntry, discover, walk

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def docs(tmp_path: Path) -> Path:
    root = tmp_path / "pages"
    (root / "guides" / "advanced").mkdir(parents=True)
    (root / "reference").mkdir()
    (root / "index.mdx").write_text("# Home\n")
    (root / "404.mdx").write_text("# Not found\n")
    (root / "guides.mdx").write_text("# Guides\n")
    (root / "guides" / "start.md").write_text("# Start\n")
    (root / "guides" / "advanced.md").write_text("# Advanced\n")
    (root / "guides" / "advanced" / "tuning.mdx").write_text("# Tuning\n")
    (root / "reference" / "api.md").write_text("# API\n")
    (root / "reference" / "logo.png").write_bytes(b"\x89PNG")
    return root


class TestWalk:
    def test_lists_all_files_relative(self, docs: Path) -> None:
        paths = [entry.path for entry in walk(docs)]
        assert "reference/logo.png" in paths
        assert "guides/advanced/tuning.mdx" in paths
        assert all(not p.startswith("/") for p in paths)

    def test_sibling_doc_becomes_parent(self, docs: Path) -> None:
        entries = {entry.path: entry for entry in walk(docs)}
        assert entries["guides/start.md"].parent_path == "guides.mdx"
        assert entries["guides/advanced/tuning.mdx"].parent_path == "guides/advanced.md"

    def test_no_sibling_inherits_parent(self, docs: Path) -> None:
        entries = {entry.path: entry for entry in walk(docs)}
        assert entries["reference/api.md"].parent_path is None
        assert entries["index.mdx"].parent_path is None

    def test_deterministic_order(self, docs: Path) -> None:
        assert walk(docs) == walk(docs)

    def test_directory_symlinks_are_not_followed(self, docs: Path) -> None:
        (docs / "guides" / "loop").symlink_to(docs, target_is_directory=True)
        paths = [entry.path for entry in walk(docs)]
        assert not any(path.startswith("guides/loop/") for path in paths)
        assert "guides/start.md" in paths

    def test_missing_root(self, tmp_path: Path) -> None:
        assert walk(tmp_path / "nope") == []


class TestDiscover:
    def test_filters_extensions_and_ignore_list(self, docs: Path) -> None:
        paths = {entry.path for entry in discover(docs)}
        assert "reference/logo.png" not in paths
        assert "404.mdx" not in paths
        assert "index.mdx" in paths
        assert "reference/api.md" in paths

    def test_custom_ignore_and_extensions(self, docs: Path) -> None:
        entries = discover(docs, extensions=[".md"], ignored=["guides/start.md"])
        assert SourceEntry("reference/api.md", None) in entries
        assert all(entry.path.endswith(".md") for entry in entries)
        assert "guides/start.md" not in {entry.path for entry in entries}

    def test_extension_match_is_case_insensitive(self, tmp_path: Path) -> None:
        (tmp_path / "README.MD").write_text("# Readme\n")
        assert [e.path for e in discover(tmp_path)] == ["README.MD"]
