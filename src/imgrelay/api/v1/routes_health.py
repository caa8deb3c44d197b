"""Health check endpoint for the image relay service."""

from fastapi import APIRouter

from imgrelay.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Report service identity and configured backends.

    Does not touch storage, so it stays fast during startup.
    """
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "object_store": settings.OBJECT_STORE_BACKEND,
        "metadata": settings.METADATA_BACKEND,
    }
