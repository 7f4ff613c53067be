"""Exception types raised by the clustering engine."""

from typing import Optional


class VoxClusterError(Exception):
    """Base class for all engine errors."""


class EmbeddingServiceError(VoxClusterError):
    """A batch request to the embedding service failed.

    Attributes:
        transient: True if the same request may succeed when retried
    """

    transient = False

    def __init__(self, message: str, batch_size: Optional[int] = None):
        self.message = message
        self.batch_size = batch_size
        super().__init__(message)


class TransientEmbeddingError(EmbeddingServiceError):
    """Network error, timeout, rate limit or server error."""

    transient = True


class TerminalEmbeddingError(EmbeddingServiceError):
    """Rejected or malformed request/response; retrying will not help."""


class EmptyInputError(VoxClusterError):
    """There are no valid embedded comments to cluster."""

    def __init__(self, message: str = "Nothing to cluster: no valid embeddings"):
        super().__init__(message)


class ContractViolationError(VoxClusterError, ValueError):
    """A caller passed vectors that break the clustering preconditions."""


class AnalysisCancelledError(VoxClusterError):
    """The analysis was cancelled before clustering started."""
