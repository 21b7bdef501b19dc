from link_preview.services.enrichment.base import (
    EnrichmentContext,
    MetadataDraft,
    MetadataHandler,
    RequestExecutor,
)
from link_preview.services.enrichment.google_search import GoogleSearchMetadataHandler
from link_preview.services.enrichment.linkedin import LinkedInMetadataHandler
from link_preview.services.enrichment.pipeline import EnrichmentPipeline
from link_preview.services.enrichment.reddit import RedditMetadataHandler
from link_preview.services.enrichment.twitter import TwitterMetadataHandler
from link_preview.services.enrichment.wikipedia import WikipediaMetadataHandler


def create_default_handlers() -> list[MetadataHandler]:
    return [
        WikipediaMetadataHandler(),
        RedditMetadataHandler(),
        GoogleSearchMetadataHandler(),
        TwitterMetadataHandler(),
        LinkedInMetadataHandler(),
    ]


__all__ = [
    "EnrichmentContext",
    "EnrichmentPipeline",
    "MetadataDraft",
    "MetadataHandler",
    "RequestExecutor",
    "create_default_handlers",
]
