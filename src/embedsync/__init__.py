"""embedsync - incremental embedding catalog for Markdown documentation."""

__version__ = "0.1.0"
