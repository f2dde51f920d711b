"""Tests for embedsync.embeddings.provider module."""

from __future__ import annotations

import unittest.mock

import httpx
import pytest

from embedsync.embeddings.provider import (
    Embedding,
    EmbeddingConfig,
    EmbeddingError,
    OpenAIEmbeddingProvider,
    normalize_input,
)


def _mock_response(data: object, status_code: int = 200) -> unittest.mock.MagicMock:
    """Create a mock httpx response for the embeddings endpoint."""
    resp = unittest.mock.MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    resp.text = str(data)
    return resp


def _ok_body(vector: list[float], tokens: int) -> dict[str, object]:
    return {
        "object": "list",
        "data": [{"object": "embedding", "index": 0, "embedding": vector}],
        "usage": {"prompt_tokens": tokens, "total_tokens": tokens},
    }


class TestNormalizeInput:
    def test_newlines_become_spaces(self) -> None:
        assert normalize_input("a\nb\n\nc") == "a b  c"

    def test_no_newlines(self) -> None:
        assert normalize_input("plain text") == "plain text"


class TestOpenAIEmbeddingProvider:
    def test_requires_api_key(self) -> None:
        with pytest.raises(EmbeddingError, match="API key"):
            OpenAIEmbeddingProvider(EmbeddingConfig(api_key=""))

    def test_success(self) -> None:
        provider = OpenAIEmbeddingProvider(EmbeddingConfig(api_key="sk-test-123"))

        with unittest.mock.patch(
            "embedsync.embeddings.provider.httpx.post",
            return_value=_mock_response(_ok_body([0.1, 0.2, 0.3], 7)),
        ) as mock_post:
            result = provider.embed("hello world")

        assert result == Embedding(vector=[0.1, 0.2, 0.3], token_count=7)
        mock_post.assert_called_once()
        call_args = mock_post.call_args
        assert call_args.args[0] == "https://api.openai.com/v1/embeddings"
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer sk-test-123"
        assert call_args.kwargs["json"] == {
            "model": "text-embedding-ada-002",
            "input": "hello world",
        }

    def test_custom_model_and_base_url(self) -> None:
        provider = OpenAIEmbeddingProvider(
            EmbeddingConfig(api_key="k", model="text-embedding-3-small", base_url="http://x/v1/")
        )
        with unittest.mock.patch(
            "embedsync.embeddings.provider.httpx.post",
            return_value=_mock_response(_ok_body([1.0], 1)),
        ) as mock_post:
            provider.embed("x")

        assert mock_post.call_args.args[0] == "http://x/v1/embeddings"
        assert mock_post.call_args.kwargs["json"]["model"] == "text-embedding-3-small"

    def test_non_200_status(self) -> None:
        provider = OpenAIEmbeddingProvider(EmbeddingConfig(api_key="k"))
        with (
            unittest.mock.patch(
                "embedsync.embeddings.provider.httpx.post",
                return_value=_mock_response({"error": "rate limited"}, status_code=429),
            ),
            pytest.raises(EmbeddingError, match="429"),
        ):
            provider.embed("x")

    def test_transport_error(self) -> None:
        provider = OpenAIEmbeddingProvider(EmbeddingConfig(api_key="k"))
        with (
            unittest.mock.patch(
                "embedsync.embeddings.provider.httpx.post",
                side_effect=httpx.ConnectError("connection refused"),
            ),
            pytest.raises(EmbeddingError, match="connection refused"),
        ):
            provider.embed("x")

    def test_malformed_body(self) -> None:
        provider = OpenAIEmbeddingProvider(EmbeddingConfig(api_key="k"))
        with (
            unittest.mock.patch(
                "embedsync.embeddings.provider.httpx.post",
                return_value=_mock_response({"data": []}),
            ),
            pytest.raises(EmbeddingError, match="Malformed"),
        ):
            provider.embed("x")

    def test_non_json_body(self) -> None:
        provider = OpenAIEmbeddingProvider(EmbeddingConfig(api_key="k"))
        resp = _mock_response(None)
        resp.json.side_effect = ValueError("not json")
        with (
            unittest.mock.patch("embedsync.embeddings.provider.httpx.post", return_value=resp),
            pytest.raises(EmbeddingError, match="non-JSON"),
        ):
            provider.embed("x")
