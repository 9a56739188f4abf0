import logging

from fastapi import APIRouter

from src.dependencies import SessionStoreDep, SettingsDep
from src.schemas.api.status import HealthResponse, StatusResponse

router = APIRouter(tags=["status"])
logger = logging.getLogger(__name__)


@router.get("/")
async def welcome():
    return {"message": "Welcome to the Flashcards API"}


@router.get("/status", response_model=StatusResponse)
async def api_status(settings: SettingsDep):
    return StatusResponse(status="online", version=settings.app_version)


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep, store: SessionStoreDep):
    """Check the session backend."""
    services = {}
    try:
        services["session_store"] = "ok" if await store.ping() else "unreachable"
    except Exception as e:
        logger.error(f"Session store health check failed: {e}")
        services["session_store"] = f"error: {e}"

    overall = "ok" if all(v == "ok" for v in services.values()) else "degraded"
    return HealthResponse(status=overall, version=settings.app_version, services=services)
