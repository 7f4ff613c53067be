from .config import EmbedConfig
from .embedding_generator import EmbeddingGenerator, clear_embedding_cache, get_embedding_cache
from .service import OpenAIEmbeddingService, normalize_embedding_response

__all__ = [
    "EmbedConfig",
    "EmbeddingGenerator",
    "OpenAIEmbeddingService",
    "normalize_embedding_response",
    "get_embedding_cache",
    "clear_embedding_cache",
]
