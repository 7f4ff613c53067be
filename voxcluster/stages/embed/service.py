"""Embedding service boundary: the OpenAI-compatible client and response normalization."""

import math
import os
from typing import Any, Protocol

import openai
from dotenv import load_dotenv
from langchain_openai.embeddings import OpenAIEmbeddings

from voxcluster.errors import TerminalEmbeddingError, TransientEmbeddingError
from voxcluster.stages.embed.config import EmbedConfig

load_dotenv()

TRANSIENT_API_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


class EmbeddingService(Protocol):
    """Anything that turns a batch of texts into one vector per text."""

    async def embed_texts(self, texts: list[str]) -> Any:
        ...


class OpenAIEmbeddingService:
    """Embedding service backed by an OpenAI-compatible embeddings endpoint.

    Connection settings come from the config or environment variables:
        - EMBEDD_BASE_URL: Server URL (default: the OpenAI API)
        - EMBEDD_API_KEY / OPENAI_API_KEY: API key
        - EMBEDD_MODEL: Model name (default: "text-embedding-3-small")
    """

    def __init__(self, config: EmbedConfig):
        self.model_name = config.embedding_model
        # Retries and timeouts are handled per batch by the caller
        self.model = OpenAIEmbeddings(
            base_url=config.base_url,
            api_key=os.getenv("EMBEDD_API_KEY") or os.getenv("OPENAI_API_KEY"),
            model=config.embedding_model,
            tiktoken_enabled=config.tiktoken_enabled,
            max_retries=0,
            request_timeout=config.timeout_seconds,
        )

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed one batch of texts.

        Raises:
            TransientEmbeddingError: Network failure, timeout, rate limit or server error
            TerminalEmbeddingError: Request rejected by the service
        """
        try:
            return await self.model.aembed_documents(texts)
        except TRANSIENT_API_ERRORS as e:
            raise TransientEmbeddingError(str(e), batch_size=len(texts)) from e
        except openai.APIError as e:
            raise TerminalEmbeddingError(str(e), batch_size=len(texts)) from e


def normalize_embedding_response(response: Any, expected_count: int) -> list[tuple[float, ...]]:
    """Map any accepted embedding response shape to one vector per input text.

    Accepted shapes:
        - a list of vectors (lists, tuples or numpy arrays)
        - a 2D numpy array
        - an OpenAI-style payload, as a dict or an object, whose ``data``
          holds items with ``embedding`` and optional ``index``

    Args:
        response: Raw value returned by the embedding service
        expected_count: Number of texts in the batch

    Returns:
        List of float tuples, in batch order

    Raises:
        TerminalEmbeddingError: If the response is malformed
    """
    items = _extract_items(response, expected_count)

    if len(items) != expected_count:
        raise TerminalEmbeddingError(
            f"Malformed embedding response: expected {expected_count} vectors, got {len(items)}",
            batch_size=expected_count,
        )

    vectors = []
    for item in items:
        try:
            vector = tuple(float(v) for v in item)
        except (TypeError, ValueError) as e:
            raise TerminalEmbeddingError(
                f"Malformed embedding response: non-numeric vector ({e})",
                batch_size=expected_count,
            ) from e
        if not vector or not all(math.isfinite(v) for v in vector):
            raise TerminalEmbeddingError(
                "Malformed embedding response: empty or non-finite vector",
                batch_size=expected_count,
            )
        vectors.append(vector)

    if len({len(v) for v in vectors}) > 1:
        raise TerminalEmbeddingError(
            "Malformed embedding response: vectors differ in length",
            batch_size=expected_count,
        )

    return vectors


def _extract_items(response: Any, expected_count: int) -> list:
    if response is None:
        return []

    data = None
    if isinstance(response, dict):
        data = response.get("data")
    elif hasattr(response, "data") and not hasattr(response, "tolist"):
        data = response.data

    if data is not None:
        return _order_data_items(data, expected_count)

    if hasattr(response, "tolist"):
        response = response.tolist()

    if isinstance(response, (list, tuple)):
        return [item.tolist() if hasattr(item, "tolist") else item for item in response]

    raise TerminalEmbeddingError(
        f"Malformed embedding response of type {type(response).__name__}",
        batch_size=expected_count,
    )


def _order_data_items(data: Any, expected_count: int) -> list:
    """Put OpenAI-style ``data`` items in batch order using their ``index``.

    Items without an index keep their position. The indices must be ints
    covering ``range(len(data))`` exactly once.
    """
    if not isinstance(data, (list, tuple)):
        raise TerminalEmbeddingError(
            f"Malformed embedding response: data is a {type(data).__name__}, not a list",
            batch_size=expected_count,
        )

    ordered = [None] * len(data)
    for position, item in enumerate(data):
        if isinstance(item, dict):
            index, embedding = item.get("index", position), item.get("embedding")
        else:
            index, embedding = getattr(item, "index", position), getattr(item, "embedding", None)

        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(data):
            raise TerminalEmbeddingError(
                f"Malformed embedding response: invalid item index {index!r}",
                batch_size=expected_count,
            )
        if ordered[index] is not None:
            raise TerminalEmbeddingError(
                f"Malformed embedding response: duplicate item index {index}",
                batch_size=expected_count,
            )
        ordered[index] = embedding if embedding is not None else []

    return ordered
