from fastapi import APIRouter

from yoon.core.config import settings

router = APIRouter()


@router.get("/health")
def healthcheck() -> dict:
    return {"status": "ok", "service": settings.app_name, "environment": settings.environment}
