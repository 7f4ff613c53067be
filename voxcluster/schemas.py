"""Pydantic schemas for data structures used throughout the pipeline."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Comment(BaseModel):
    """Single comment entering the pipeline.

    Attributes:
        text: Comment body
        author_name: Display name of the author
        author_profile_image_url: Optional avatar URL
        like_count: Number of likes
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    author_name: str = ""
    author_profile_image_url: Optional[str] = None
    like_count: int = Field(0, ge=0)


class EmbeddedComment(Comment):
    """Comment with vector embedding added.

    An empty embedding means no vector could be produced for the comment.

    Attributes:
        embedding: Dense vector representation
    """

    embedding: tuple[float, ...] = ()

    @property
    def has_embedding(self) -> bool:
        return len(self.embedding) > 0


class Cluster(BaseModel):
    """Group of related comments identified by clustering.

    Attributes:
        id: Cluster identifier, unique within one ClusterResult
        member_indices: Sorted indices into the clustered vector sequence
        confidence: Cohesion of the group in [0, 1]
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0)
    member_indices: tuple[int, ...] = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)

    @field_validator("member_indices")
    @classmethod
    def _sorted_unique(cls, value):
        if len(set(value)) != len(value):
            raise ValueError("member_indices must not repeat")
        return tuple(sorted(value))

    @property
    def size(self) -> int:
        return len(self.member_indices)


class ClusterResult(BaseModel):
    """Output of one partitioning pass.

    The clusters partition ``[0, n_items)``: every index appears in exactly
    one cluster.

    Attributes:
        clusters: Clusters in the order they survived partitioning
        n_items: Number of clustered vectors
    """

    model_config = ConfigDict(frozen=True)

    clusters: tuple[Cluster, ...]
    n_items: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_partition(self):
        seen = [index for cluster in self.clusters for index in cluster.member_indices]
        if sorted(seen) != list(range(self.n_items)):
            raise ValueError("clusters must partition every index exactly once")
        ids = [cluster.id for cluster in self.clusters]
        if len(set(ids)) != len(ids):
            raise ValueError("cluster ids must be unique")
        return self

    def __len__(self) -> int:
        return len(self.clusters)

    def labels(self) -> list[int]:
        """Return the cluster id of every index, in index order."""
        labels = [0] * self.n_items
        for cluster in self.clusters:
            for index in cluster.member_indices:
                labels[index] = cluster.id
        return labels


class MultiLevelClusters(BaseModel):
    """Fine and coarse partitions over the same index space."""

    model_config = ConfigDict(frozen=True)

    fine: ClusterResult
    coarse: ClusterResult

    @model_validator(mode="after")
    def _same_index_space(self):
        if self.fine.n_items != self.coarse.n_items:
            raise ValueError("fine and coarse results must cover the same items")
        return self

    def get(self, level: str) -> ClusterResult:
        if level == "fine":
            return self.fine
        if level == "coarse":
            return self.coarse
        raise ValueError(f"Unknown cluster level: {level}")


class CommentAnalysis(BaseModel):
    """Embedded comments together with their multi-level clustering.

    Cluster member indices are positions into ``valid_indices``, which maps
    each clustered vector back to the index of its comment in ``comments``.

    Attributes:
        comments: Embedded comments in input order (including failed ones)
        valid_indices: Original index of each clustered comment
        clusters: Fine and coarse results over the valid comments
    """

    model_config = ConfigDict(frozen=True)

    comments: tuple[EmbeddedComment, ...]
    valid_indices: tuple[int, ...]
    clusters: MultiLevelClusters

    @model_validator(mode="after")
    def _check_mapping(self):
        if len(self.valid_indices) != self.clusters.fine.n_items:
            raise ValueError("valid_indices must match the clustered item count")
        for index in self.valid_indices:
            if not 0 <= index < len(self.comments):
                raise ValueError(f"valid index {index} out of range")
        return self

    @property
    def degraded_count(self) -> int:
        return len(self.comments) - len(self.valid_indices)

    def original_indices(self, cluster: Cluster) -> list[int]:
        """Map a cluster's members back to indices into ``comments``."""
        return [self.valid_indices[i] for i in cluster.member_indices]

    def texts(self, cluster: Cluster) -> list[str]:
        return [self.comments[i].text for i in self.original_indices(cluster)]


class ClusterName(BaseModel):
    """Human-readable label for a cluster, as returned by the naming service."""

    cluster_id: int
    name: str
    confidence: float = Field(..., ge=0.0, le=1.0)
