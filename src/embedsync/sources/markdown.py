"""Markdown source loader: checksum, front matter, and heading-based sections."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from pathlib import Path

    from embedsync.sources.walker import SourceEntry

# ``---`` delimited YAML block at the very top of the file.
_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

# ATX headings, levels 1-6; a closing hash run must follow whitespace.
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")

_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")

# Characters GitHub drops when building heading anchors.
_SLUG_STRIP_RE = re.compile(r"[^\w\- ]", re.UNICODE)


class SourceLoadError(Exception):
    """Raised when a source file cannot be read or parsed."""


@dataclass(frozen=True)
class Section:
    """One chunk of a page, keyed by its heading anchor."""

    slug: str
    heading: str
    content: str


@dataclass
class LoadedSource:
    """Everything the engine needs from one source file."""

    checksum: str
    meta: dict[str, Any] = field(default_factory=dict)
    sections: list[Section] = field(default_factory=list)


class Slugger:
    """GitHub-style heading anchors, unique within one document."""

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def slug(self, heading: str) -> str:
        base = _SLUG_STRIP_RE.sub("", heading.strip().lower()).replace(" ", "-")
        count = self._seen.get(base, 0)
        self._seen[base] = count + 1
        return base if count == 0 else f"{base}-{count}"


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Return ``(meta, body)`` with YAML front matter removed from *text*.

    Raises
    ------
    SourceLoadError
        If the front matter is not valid YAML or not a mapping.
    """
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        msg = f"Invalid front matter: {exc}"
        raise SourceLoadError(msg) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = "Front matter must be a mapping."
        raise SourceLoadError(msg)
    # YAML allows date or numeric keys; meta is stored as a JSON object.
    return {str(key): value for key, value in data.items()}, text[match.end():]


def split_sections(body: str) -> list[Section]:
    """Split Markdown *body* into sections at every heading.

    Text before the first heading becomes a section with an empty heading
    and slug.  Headings inside fenced code blocks are ignored.  Sections
    with no text are dropped.
    """
    slugger = Slugger()
    sections: list[Section] = []
    heading = ""
    slug = ""
    lines: list[str] = []
    in_fence = False

    def flush() -> None:
        content = "\n".join(lines).strip()
        if content:
            sections.append(Section(slug=slug, heading=heading, content=content))

    for line in body.splitlines():
        if _FENCE_RE.match(line):
            in_fence = not in_fence
        match = None if in_fence else _HEADING_RE.match(line)
        if match is not None:
            flush()
            heading = match.group(2).strip()
            slug = slugger.slug(heading)
            lines = [line]
        else:
            lines.append(line)
    flush()
    return sections


def _first_h1(body: str) -> str | None:
    in_fence = False
    for line in body.splitlines():
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        match = None if in_fence else _HEADING_RE.match(line)
        if match is not None and len(match.group(1)) == 1:
            return match.group(2).strip()
    return None


class MarkdownSource:
    """A Markdown/MDX file under the docs root."""

    type = "markdown"

    def __init__(self, root: Path, entry: SourceEntry, *, source: str = "markdown") -> None:
        self.root = root
        self.path = entry.path
        self.parent_path = entry.parent_path
        self.source = source

    def __repr__(self) -> str:
        return f"MarkdownSource({self.path!r}, parent={self.parent_path!r})"

    def load(self) -> LoadedSource:
        """Read the file and compute checksum, metadata, and sections.

        Raises
        ------
        SourceLoadError
            On I/O, decoding, or front matter errors.
        """
        file_path = self.root / self.path
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Cannot read {self.path}: {exc}"
            raise SourceLoadError(msg) from exc

        checksum = hashlib.sha256(text.encode()).hexdigest()
        meta, body = split_front_matter(text)
        if "title" not in meta:
            title = _first_h1(body)
            if title:
                meta["title"] = title

        return LoadedSource(checksum=checksum, meta=meta, sections=split_sections(body))
