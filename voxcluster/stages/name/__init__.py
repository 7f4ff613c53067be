from .naming import (
    FALLBACK_NAME,
    NamingConfig,
    build_naming_payload,
    fallback_names,
    format_naming_prompt,
    generate_cluster_names,
    parse_cluster_names,
)

__all__ = [
    "FALLBACK_NAME",
    "NamingConfig",
    "build_naming_payload",
    "fallback_names",
    "format_naming_prompt",
    "generate_cluster_names",
    "parse_cluster_names",
]
