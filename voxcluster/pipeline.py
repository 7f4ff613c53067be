"""Main orchestration: embed comments, then cluster them at two granularities."""

import asyncio
import logging
from collections import Counter
from typing import Iterable, Optional

from voxcluster.errors import AnalysisCancelledError, EmptyInputError
from voxcluster.schemas import Comment, CommentAnalysis, EmbeddedComment
from voxcluster.stages.cluster import ClusterConfig, get_multi_level_clusters
from voxcluster.stages.embed import EmbeddingGenerator


class CommentAnalyzer:
    """Runs the Vectorizer and the multi-level clustering for one comment set."""

    def __init__(self, embedding_generator: EmbeddingGenerator, config: Optional[ClusterConfig] = None):
        """Initialize the analyzer.

        Args:
            embedding_generator: Produces embeddings for the comments
            config: Clustering parameters
        """
        self.embedding_generator = embedding_generator
        self.config = config or ClusterConfig()

    async def run(
        self,
        comments: Iterable[Comment],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CommentAnalysis:
        """Execute the analysis.

        Steps:
            1. Embed every comment (failed batches give empty embeddings)
            2. Keep only comments with an embedding
            3. Cluster the kept vectors at fine and coarse granularity

        Args:
            comments: Comments to analyze
            cancel_event: When set before clustering starts, the run stops

        Returns:
            CommentAnalysis whose ``valid_indices`` map cluster members back
            to the input comments

        Raises:
            EmptyInputError: If no comment could be embedded
            AnalysisCancelledError: If ``cancel_event`` was set
        """
        comments = list(comments)
        if not comments:
            raise EmptyInputError("Nothing to cluster: no comments")

        # ====== EMBEDDING ======
        logging.info(f"Generating embeddings for {len(comments)} comments...")
        embedded = await self.embedding_generator.agenerate_embeddings(comments)

        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError("Analysis cancelled before clustering")

        valid_indices = _indices_to_cluster(embedded)
        if not valid_indices:
            raise EmptyInputError()
        if len(valid_indices) < len(embedded):
            logging.warning(
                f"Clustering {len(valid_indices)}/{len(embedded)} comments; "
                f"{len(embedded) - len(valid_indices)} had no usable embedding"
            )

        # ====== CLUSTERING ======
        logging.info("Clustering comments...")
        vectors = [embedded[i].embedding for i in valid_indices]
        clusters = get_multi_level_clusters(vectors, self.config)

        return CommentAnalysis(
            comments=tuple(embedded),
            valid_indices=tuple(valid_indices),
            clusters=clusters,
        )


def _indices_to_cluster(embedded: list[EmbeddedComment]) -> list[int]:
    """Indices of comments whose embedding can be clustered together.

    Vector lengths can differ between batches or cache hits. Only the most
    common length is kept; ties go to the length seen first.
    """
    lengths = Counter(len(c.embedding) for c in embedded if c.has_embedding)
    if not lengths:
        return []

    dimension, _ = lengths.most_common(1)[0]
    if len(lengths) > 1:
        dropped = sum(lengths.values()) - lengths[dimension]
        logging.warning(
            f"Embeddings have mixed lengths {sorted(lengths)}; "
            f"dropping {dropped} comments not of length {dimension}"
        )
    return [i for i, c in enumerate(embedded) if len(c.embedding) == dimension]


async def analyze_comments(
    comments: Iterable[Comment],
    embedding_generator: EmbeddingGenerator,
    config: Optional[ClusterConfig] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> CommentAnalysis:
    """Analyze a comment set with a one-off CommentAnalyzer."""
    analyzer = CommentAnalyzer(embedding_generator, config)
    return await analyzer.run(comments, cancel_event=cancel_event)
