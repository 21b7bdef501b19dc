from fastapi import HTTPException, Request, status

from link_preview.services.metadata import MetadataResolutionService


async def get_resolution_service(request: Request) -> MetadataResolutionService:
    """Get the resolution service created during application startup."""
    service = getattr(request.app.state, "resolution_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Resolution service not initialized",
        )
    return service
