"""Embedding provider: text → vector via the OpenAI embeddings API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

DEFAULT_MODEL = "text-embedding-ada-002"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


class EmbeddingError(Exception):
    """Raised when an embedding request fails or returns an unusable body."""


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding provider configuration."""

    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 60.0


@dataclass(frozen=True)
class Embedding:
    """A vector plus what it cost to compute."""

    vector: list[float]
    token_count: int


class EmbeddingProvider(Protocol):
    def embed(self, text: str) -> Embedding: ...


def normalize_input(text: str) -> str:
    """Collapse every newline into a single space before embedding."""
    return text.replace("\n", " ")


def _parse_response(data: dict[str, Any]) -> Embedding:
    try:
        vector = data["data"][0]["embedding"]
        token_count = data["usage"]["total_tokens"]
    except (KeyError, IndexError, TypeError) as exc:
        msg = f"Malformed embedding response: {exc!r}"
        raise EmbeddingError(msg) from exc
    return Embedding(vector=[float(v) for v in vector], token_count=int(token_count))


class OpenAIEmbeddingProvider:
    """Calls ``POST {base_url}/embeddings`` once per section."""

    def __init__(self, config: EmbeddingConfig) -> None:
        if not config.api_key:
            msg = "Embedding provider requires an API key."
            raise EmbeddingError(msg)
        self.config = config

    def embed(self, text: str) -> Embedding:
        """Embed *text* and return its vector and token usage.

        Raises
        ------
        EmbeddingError
            On transport errors, non-200 responses, or malformed bodies.
        """
        try:
            response = httpx.post(
                f"{self.config.base_url.rstrip('/')}/embeddings",
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
                json={"model": self.config.model, "input": text},
                timeout=self.config.timeout,
            )
        except httpx.HTTPError as exc:
            msg = f"Embedding request failed: {exc}"
            raise EmbeddingError(msg) from exc

        if response.status_code != 200:
            msg = f"Embedding API error {response.status_code}: {response.text}"
            raise EmbeddingError(msg)

        try:
            data = response.json()
        except ValueError as exc:
            msg = "Embedding API returned a non-JSON body."
            raise EmbeddingError(msg) from exc

        return _parse_response(data)
