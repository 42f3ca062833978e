"""
Health API Routes
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.dependencies import get_app_settings
from app.config import Settings
from app.database import database_health
from app.services.workflow_bridge import REQUIRED_SETTINGS

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_app_settings)) -> JSONResponse:
    """Setting presence and database health"""
    presence = settings.presence()
    db = database_health(settings)
    bridge_ready = all(presence[key] for key in REQUIRED_SETTINGS)
    ok = bridge_ready and bool(db.get("ok"))
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if ok else "degraded",
            "bridge": {"ready": bridge_ready, "dialect": settings.n8n_dialect},
            "database": db,
            "settings": presence,
            "missing": [key for key, present in presence.items() if not present],
        },
    )
