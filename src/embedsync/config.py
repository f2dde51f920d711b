"""Run configuration: ``.embedsync/config.yml`` merged with CLI overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from embedsync.embeddings.provider import DEFAULT_MODEL
from embedsync.sources.walker import DEFAULT_IGNORED_FILES, MARKDOWN_EXTENSIONS

CONFIG_DIR = ".embedsync"
CONFIG_FILE = "config.yml"
DEFAULT_DB_NAME = "embeddings.db"
DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"


class ConfigError(Exception):
    """Raised when the run configuration is incomplete or malformed."""


@dataclass(frozen=True)
class RunConfig:
    """Everything one embedding refresh needs."""

    docs_root: Path
    db_path: Path
    api_key: str
    should_refresh: bool = False
    model: str = DEFAULT_MODEL
    extensions: tuple[str, ...] = tuple(sorted(MARKDOWN_EXTENSIONS))
    ignored_files: tuple[str, ...] = DEFAULT_IGNORED_FILES
    api_key_env: str = field(default=DEFAULT_API_KEY_ENV, compare=False)


def read_config_file(project_root: Path) -> dict[str, Any]:
    """Read ``.embedsync/config.yml``; empty dict when absent.

    Raises
    ------
    ConfigError
        If the file is not valid YAML or not a mapping.
    """
    config_path = project_root / CONFIG_DIR / CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        msg = f"Invalid {config_path}: {exc}"
        raise ConfigError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{config_path} must contain a mapping."
        raise ConfigError(msg)
    return data


def _str_list(raw: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"Config key '{key}' must be a list of strings."
        raise ConfigError(msg)
    return tuple(value)


def load_config(
    project_root: Path,
    *,
    docs_root: Path | None = None,
    db_path: Path | None = None,
    api_key: str | None = None,
    model: str | None = None,
    should_refresh: bool = False,
) -> RunConfig:
    """Build a :class:`RunConfig` for *project_root*.

    Explicit arguments win over ``config.yml``, which wins over defaults.
    The API key falls back to the environment variable named by
    ``api_key_env`` (``OPENAI_API_KEY`` by default).

    Raises
    ------
    ConfigError
        If the docs directory does not exist or no API key is available.
    """
    raw = read_config_file(project_root)

    if docs_root is None:
        docs_dir = raw.get("docs_dir")
        if isinstance(docs_dir, str) and docs_dir:
            docs_root = project_root / docs_dir
        else:
            docs_root = project_root / "docs"
    if not docs_root.is_dir():
        msg = f"Docs directory not found: {docs_root}"
        raise ConfigError(msg)

    if db_path is None:
        db_value = raw.get("db_path")
        if isinstance(db_value, str) and db_value:
            db_path = project_root / db_value
        else:
            db_path = project_root / CONFIG_DIR / DEFAULT_DB_NAME

    api_key_env = str(raw.get("api_key_env") or DEFAULT_API_KEY_ENV)
    if not api_key:
        api_key = os.environ.get(api_key_env, "")
    if not api_key:
        msg = f"API key not found. Pass --openai-key or set environment variable: {api_key_env}"
        raise ConfigError(msg)

    return RunConfig(
        docs_root=docs_root,
        db_path=db_path,
        api_key=api_key,
        should_refresh=should_refresh,
        model=model or str(raw.get("model") or DEFAULT_MODEL),
        extensions=_str_list(raw, "extensions", tuple(sorted(MARKDOWN_EXTENSIONS))),
        ignored_files=_str_list(raw, "ignore", DEFAULT_IGNORED_FILES),
        api_key_env=api_key_env,
    )
