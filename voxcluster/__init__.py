from .errors import (
    AnalysisCancelledError,
    ContractViolationError,
    EmbeddingServiceError,
    EmptyInputError,
    TerminalEmbeddingError,
    TransientEmbeddingError,
    VoxClusterError,
)
from .pipeline import CommentAnalyzer, analyze_comments
from .schemas import (
    Cluster,
    ClusterName,
    ClusterResult,
    Comment,
    CommentAnalysis,
    EmbeddedComment,
    MultiLevelClusters,
)

__all__ = [
    "AnalysisCancelledError",
    "ContractViolationError",
    "EmbeddingServiceError",
    "EmptyInputError",
    "TerminalEmbeddingError",
    "TransientEmbeddingError",
    "VoxClusterError",
    "CommentAnalyzer",
    "analyze_comments",
    "Cluster",
    "ClusterName",
    "ClusterResult",
    "Comment",
    "CommentAnalysis",
    "EmbeddedComment",
    "MultiLevelClusters",
]
