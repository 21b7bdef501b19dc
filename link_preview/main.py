import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from link_preview.api import api_router
from link_preview.config import settings
from link_preview.database import dispose_engine, get_session_factory, init_db
from link_preview.logging_config import configure_logging
from link_preview.services.metadata import MetadataResolutionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    configure_logging(settings.log_format, settings.log_level)
    await init_db()
    service = MetadataResolutionService.from_settings(get_session_factory())
    await service.start()
    app.state.resolution_service = service
    logger.info("%s started", settings.app_name)
    yield
    # Shutdown
    await service.aclose()
    await dispose_engine()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(api_router)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok", "app": settings.app_name}
