from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from link_preview.api.deps import get_resolution_service
from link_preview.schemas import Metadata, ResolveRequest, ServiceStats
from link_preview.services.metadata import MetadataResolutionService

router = APIRouter(prefix="/previews", tags=["previews"])

Service = Annotated[MetadataResolutionService, Depends(get_resolution_service)]


@router.post("/resolve", response_model=Metadata)
async def resolve_preview(payload: ResolveRequest, service: Service) -> Metadata:
    """Resolve a URL into preview metadata.

    Network and content failures are reported in the ``error`` field, not as
    HTTP errors.
    """
    return await service.resolve(payload.url, payload.config)


@router.get("/stats", response_model=ServiceStats)
async def get_stats(service: Service) -> ServiceStats:
    """Snapshot of the metadata cache and the icon cache."""
    return service.stats()


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_caches(service: Service) -> Response:
    """Empty the metadata cache and the persistent icon cache."""
    await service.clear_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
