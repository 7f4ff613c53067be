"""Generate embeddings for comments using an OpenAI-compatible API."""

import asyncio
import logging
from typing import Iterable, Optional

from cachetools import TTLCache
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tqdm import tqdm

from voxcluster.errors import EmbeddingServiceError, TerminalEmbeddingError, TransientEmbeddingError
from voxcluster.schemas import Comment, EmbeddedComment
from voxcluster.stages.embed.config import EmbedConfig
from voxcluster.stages.embed.service import (
    EmbeddingService,
    OpenAIEmbeddingService,
    normalize_embedding_response,
)

# Process-wide embedding cache, keyed by (model, text). Advisory only.
_embedding_cache: Optional[TTLCache] = None


def get_embedding_cache(maxsize: int = 10_000, ttl: int = 24 * 60 * 60) -> TTLCache:
    """Get or create the shared embedding cache.

    The first call fixes the size and TTL; later calls return the same instance.
    """
    global _embedding_cache

    if _embedding_cache is None:
        _embedding_cache = TTLCache(maxsize=maxsize, ttl=ttl)

    return _embedding_cache


def clear_embedding_cache() -> None:
    if _embedding_cache is not None:
        _embedding_cache.clear()


class EmbeddingGenerator:
    """Turn comments into embedded comments, one per input and in input order.

    Texts are sent in batches with a bounded number of requests in flight.
    Transient batch failures are retried with exponential backoff. A batch
    that still fails yields empty embeddings for its comments instead of
    failing the whole call.
    """

    def __init__(
        self,
        service: Optional[EmbeddingService] = None,
        config: Optional[EmbedConfig] = None,
        cache: Optional[TTLCache] = None,
    ):
        """Initialize the generator.

        Args:
            service: Embedding service; defaults to OpenAIEmbeddingService
            config: Batching, retry and cache parameters
            cache: Cache to use instead of the process-wide one
        """
        self.config = config or EmbedConfig()
        self.service = service or OpenAIEmbeddingService(self.config)
        self.model_name = getattr(self.service, "model_name", self.config.embedding_model)
        self.cache = cache if cache is not None else get_embedding_cache(
            maxsize=self.config.cache_size, ttl=self.config.cache_ttl_seconds
        )

    def generate_embeddings(self, comments: Iterable[Comment]) -> list[EmbeddedComment]:
        """Blocking wrapper around ``agenerate_embeddings``.

        Must not be called from inside a running event loop.
        """
        return asyncio.run(self.agenerate_embeddings(comments))

    async def agenerate_embeddings(self, comments: Iterable[Comment]) -> list[EmbeddedComment]:
        """Generate embeddings for all comments.

        Args:
            comments: Comments with non-empty text; duplicates allowed

        Returns:
            EmbeddedComment per input comment, in input order. Comments whose
            batch failed carry an empty embedding.
        """
        comments = list(comments)
        vectors: list[tuple[float, ...]] = [()] * len(comments)

        # Identical texts are requested once and fanned out afterwards
        pending: dict[str, list[int]] = {}
        cache_hits = 0
        for index, comment in enumerate(comments):
            cached = self.cache.get(self._cache_key(comment.text))
            if cached is not None:
                vectors[index] = cached
                cache_hits += 1
            else:
                pending.setdefault(comment.text, []).append(index)

        unique_texts = list(pending)
        batch_size = self.config.batch_size
        batches = [
            unique_texts[i:i + batch_size]
            for i in range(0, len(unique_texts), batch_size)
        ]

        logging.info(
            f"Embedding {len(comments)} comments: {cache_hits} cached, "
            f"{len(unique_texts)} unique texts in {len(batches)} batches"
        )

        if batches:
            semaphore = asyncio.Semaphore(self.config.max_concurrency)
            progress = tqdm(
                total=len(batches),
                desc="Generating embeddings",
                ncols=75,
                disable=not self.config.show_progress,
            )

            async def run_batch(batch: list[str]) -> list[tuple[float, ...]]:
                async with semaphore:
                    result = await self._embed_batch(batch)
                progress.update(1)
                return result

            try:
                results = await asyncio.gather(*(run_batch(batch) for batch in batches))
            finally:
                progress.close()

            # Reassemble by original index, not by completion order
            for batch, batch_vectors in zip(batches, results):
                for text, vector in zip(batch, batch_vectors):
                    if vector:
                        self.cache[self._cache_key(text)] = vector
                    for index in pending[text]:
                        vectors[index] = vector

        missing = sum(1 for vector in vectors if not vector)
        if missing:
            logging.warning(f"{missing}/{len(comments)} comments have no embedding")

        return [
            EmbeddedComment(**{**comment.model_dump(), "embedding": vector})
            for comment, vector in zip(comments, vectors)
        ]

    async def _embed_batch(self, texts: list[str]) -> list[tuple[float, ...]]:
        """Embed one batch, retrying transient failures.

        Returns:
            One vector per text, or one empty tuple per text if the batch failed
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.max_attempts),
                wait=wait_exponential(
                    multiplier=self.config.backoff_multiplier,
                    min=self.config.backoff_min,
                    max=self.config.backoff_max,
                ),
                retry=retry_if_exception_type(TransientEmbeddingError),
                reraise=True,
            ):
                with attempt:
                    return await self._call_service(texts)
        except EmbeddingServiceError as e:
            kind = "transient" if e.transient else "terminal"
            logging.warning(
                f"Embedding batch of {len(texts)} texts failed ({kind}): {e.message}"
            )
        return [()] * len(texts)

    async def _call_service(self, texts: list[str]) -> list[tuple[float, ...]]:
        try:
            response = await asyncio.wait_for(
                self.service.embed_texts(texts), timeout=self.config.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise TransientEmbeddingError(
                f"Timed out after {self.config.timeout_seconds}s", batch_size=len(texts)
            ) from e
        except EmbeddingServiceError:
            raise
        except (ConnectionError, OSError) as e:
            raise TransientEmbeddingError(str(e), batch_size=len(texts)) from e
        except Exception as e:
            logging.error(f"Unexpected embedding service error: {e!r}")
            raise TerminalEmbeddingError(str(e), batch_size=len(texts)) from e

        return normalize_embedding_response(response, len(texts))

    def _cache_key(self, text: str) -> tuple[str, str]:
        return (self.model_name, text)
