from link_preview.schemas.metadata import (
    CacheStats,
    IconStats,
    Metadata,
    ResolutionConfig,
    ResolveRequest,
    ServiceStats,
)

__all__ = [
    "CacheStats",
    "IconStats",
    "Metadata",
    "ResolutionConfig",
    "ResolveRequest",
    "ServiceStats",
]
