"""Health check endpoints"""

from fastapi import APIRouter

from approvalflow.config import settings

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/")
async def health_check() -> dict[str, str]:
    return {
        "status": "healthy",
        "service": settings.app_name,
    }


@router.get("/version")
async def version_info() -> dict[str, str]:
    return {
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.env,
    }
