from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from link_preview.config import settings


class Metadata(BaseModel):
    """Display-ready preview record for a single URL."""

    url: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    image: Optional[str] = None
    icon_ref: Optional[str] = None
    site_name: Optional[str] = None
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ResolutionConfig(BaseModel):
    timeout_ms: int = Field(default_factory=lambda: settings.request_timeout_ms, ge=0)
    max_concurrent: int = Field(
        default_factory=lambda: settings.max_concurrent_requests, ge=1
    )
    show_icon: bool = True
    # Presentation hints; carried through but not consumed by resolution.
    include_description: bool = True
    http_errors_are_warnings: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")


class ResolveRequest(BaseModel):
    url: str = Field(min_length=1)
    config: Optional[ResolutionConfig] = None


class CacheStats(BaseModel):
    size: int
    capacity: int
    hits: int
    misses: int
    evictions: int
    hit_rate: float


class IconStats(BaseModel):
    entries: int
    oldest_timestamp: Optional[int] = None


class ServiceStats(BaseModel):
    cache: CacheStats
    icon: IconStats
