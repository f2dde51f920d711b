"""Source enumerator: walk a documentation tree and keep the page hierarchy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

# File extensions treated as documentation pages.
MARKDOWN_EXTENSIONS: frozenset[str] = frozenset({".md", ".mdx"})

# Logical paths (relative to the docs root) never turned into pages.
DEFAULT_IGNORED_FILES: tuple[str, ...] = ("404.md", "404.mdx")


@dataclass(frozen=True)
class SourceEntry:
    """A discovered file and the page it hangs under."""

    path: str
    parent_path: str | None = None


def _rel(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def _walk_dir(
    directory: Path,
    root: Path,
    parent_path: str | None,
    entries: list[SourceEntry],
) -> None:
    # Files first, so a ``<dir>.md`` page is discovered before its children.
    children = sorted(directory.iterdir(), key=lambda p: (p.is_dir(), p.name))
    names = {child.name for child in children}
    for child in children:
        if child.is_symlink() and child.is_dir():
            # Linked directories may loop back into the tree.
            continue
        if child.is_dir():
            # A directory with a sibling ``<dir>.md`` nests under that page.
            sibling = next(
                (
                    f"{child.name}{ext}"
                    for ext in sorted(MARKDOWN_EXTENSIONS)
                    if f"{child.name}{ext}" in names
                ),
                None,
            )
            child_parent = _rel(directory / sibling, root) if sibling else parent_path
            _walk_dir(child, root, child_parent, entries)
        elif child.is_file():
            entries.append(SourceEntry(path=_rel(child, root), parent_path=parent_path))


def walk(root: Path) -> list[SourceEntry]:
    """Recursively list every file under *root*.

    Paths are POSIX-style and relative to *root*.  Within each directory,
    files come out in sorted order before any subdirectory is entered.
    """
    entries: list[SourceEntry] = []
    if root.is_dir():
        _walk_dir(root, root, None, entries)
    return entries


def discover(
    root: Path,
    *,
    extensions: Iterable[str] = MARKDOWN_EXTENSIONS,
    ignored: Iterable[str] = DEFAULT_IGNORED_FILES,
) -> list[SourceEntry]:
    """Walk *root* and keep Markdown-family files not on the ignore list."""
    allowed = {ext.lower() for ext in extensions}
    skip = set(ignored)
    return [
        entry
        for entry in walk(root)
        if _suffix(entry.path) in allowed and entry.path not in skip
    ]


def _suffix(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return name[dot:].lower() if dot > 0 else ""
