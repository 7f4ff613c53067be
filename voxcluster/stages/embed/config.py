import os
from dataclasses import dataclass, field
from typing import Optional

# Upper bound on texts per embedding request
MAX_BATCH_SIZE = 100


@dataclass
class EmbedConfig:
    # Embedding service params
    embedding_model: str = field(
        default_factory=lambda: os.getenv("EMBEDD_MODEL", "text-embedding-3-small")
    )
    base_url: Optional[str] = field(default_factory=lambda: os.getenv("EMBEDD_BASE_URL"))
    tiktoken_enabled: bool = True

    # Batching params
    batch_size: int = MAX_BATCH_SIZE
    max_concurrency: int = 4
    timeout_seconds: float = 30.0
    show_progress: bool = True

    # Retry params
    max_attempts: int = 4
    backoff_multiplier: float = 1.0
    backoff_min: float = 1.0
    backoff_max: float = 10.0

    # Process-wide cache params
    cache_size: int = 10_000
    cache_ttl_seconds: int = 24 * 60 * 60

    def __post_init__(self):
        # Never exceed what the service accepts in one call
        self.batch_size = max(1, min(self.batch_size, MAX_BATCH_SIZE))
        self.max_concurrency = max(1, self.max_concurrency)
        self.max_attempts = max(1, self.max_attempts)

    @classmethod
    def from_dict(cls, config_dict):
        # Creates config from dict, using defaults for missing keys.
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})
