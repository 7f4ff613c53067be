import asyncio

import numpy as np
import pytest
from cachetools import TTLCache

from voxcluster.schemas import (
    Cluster,
    ClusterResult,
    Comment,
    CommentAnalysis,
    EmbeddedComment,
    MultiLevelClusters,
)
from voxcluster.stages.embed import EmbedConfig, EmbeddingGenerator


class FakeEmbeddingService:
    """In-process stand-in for the embedding endpoint.

    Args:
        vectors: Mapping from text to vector; unknown texts get a vector
            derived from the text itself
        fail_when: Optional callable (texts, call_number) -> exception or None
        delay_for: Optional callable (texts) -> seconds to sleep before answering
    """

    model_name = "fake-embedder"

    def __init__(self, vectors=None, fail_when=None, delay_for=None):
        self.vectors = vectors or {}
        self.fail_when = fail_when
        self.delay_for = delay_for
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed_texts(self, texts):
        self.calls.append(list(texts))
        call_number = len(self.calls)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_for(texts) if self.delay_for else 0)
            if self.fail_when is not None:
                error = self.fail_when(texts, call_number)
                if error is not None:
                    raise error
            return [self.vector_for(text) for text in texts]
        finally:
            self.in_flight -= 1

    def vector_for(self, text):
        if text in self.vectors:
            return list(self.vectors[text])
        codes = [ord(c) for c in text]
        return [float(len(text)), float(sum(codes) % 97) + 1.0, float(codes[0]), 1.0]


def make_generator(service, **config):
    """EmbeddingGenerator with a private cache and no backoff delays."""
    defaults = {
        "batch_size": 10,
        "max_concurrency": 3,
        "timeout_seconds": 5.0,
        "show_progress": False,
        "max_attempts": 3,
        "backoff_min": 0,
        "backoff_max": 0,
    }
    defaults.update(config)
    return EmbeddingGenerator(
        service=service,
        config=EmbedConfig(**defaults),
        cache=TTLCache(maxsize=1000, ttl=3600),
    )


def make_comments(texts):
    return [Comment(text=text, author_name=f"user{i}") for i, text in enumerate(texts)]


def near_duplicate_scenario():
    """8 near-duplicate vectors (indices 0-7) followed by 4 mutually orthogonal ones."""
    dim = 16
    vectors = []
    for i in range(8):
        v = np.zeros(dim)
        v[0] = 1.0
        v[5 + i] = 0.05
        vectors.append(v.tolist())
    for i in range(4):
        v = np.zeros(dim)
        v[1 + i] = 1.0
        vectors.append(v.tolist())
    return vectors


def random_vectors(n, dim=8, seed=0):
    rng = np.random.default_rng(seed)
    return rng.normal(size=(n, dim)).tolist()


@pytest.fixture
def fake_service():
    return FakeEmbeddingService()


def make_analysis(texts, valid_indices, fine_groups, coarse_groups):
    """Hand-built CommentAnalysis; groups hold positions into valid_indices."""

    def result(groups):
        return ClusterResult(
            clusters=tuple(
                Cluster(id=i, member_indices=tuple(members), confidence=0.8)
                for i, members in enumerate(groups)
            ),
            n_items=len(valid_indices),
        )

    comments = tuple(
        EmbeddedComment(text=text, embedding=(1.0, 0.0) if i in valid_indices else ())
        for i, text in enumerate(texts)
    )
    return CommentAnalysis(
        comments=comments,
        valid_indices=tuple(valid_indices),
        clusters=MultiLevelClusters(fine=result(fine_groups), coarse=result(coarse_groups)),
    )
