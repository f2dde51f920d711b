"""Sources domain — documentation tree discovery and Markdown loading."""

from embedsync.sources.markdown import (
    LoadedSource,
    MarkdownSource,
    Section,
    SourceLoadError,
    split_front_matter,
    split_sections,
)
from embedsync.sources.walker import (
    DEFAULT_IGNORED_FILES,
    MARKDOWN_EXTENSIONS,
    SourceEntry,
    discover,
    walk,
)

__all__ = [
    "DEFAULT_IGNORED_FILES",
    "MARKDOWN_EXTENSIONS",
    "LoadedSource",
    "MarkdownSource",
    "Section",
    "SourceEntry",
    "SourceLoadError",
    "discover",
    "split_front_matter",
    "split_sections",
    "walk",
]
