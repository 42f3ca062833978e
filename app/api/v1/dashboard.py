from fastapi import APIRouter, Depends

from app.api.dependencies import get_app_settings
from app.api.routes.n8n_proxy import PROXY_PATH
from app.config import Settings
from app.core.exceptions import ConfigurationError

router = APIRouter()


@router.get("/config")
async def dashboard_config(settings: Settings = Depends(get_app_settings)) -> dict:
    """Public connection details the browser dashboard needs to read the log table."""
    presence = settings.presence()
    flags = {key: presence[key] for key in ("SUPABASE_URL", "SUPABASE_ANON_KEY")}
    if not all(flags.values()):
        raise ConfigurationError(
            "Missing Supabase configuration. Environment variables not found.",
            details=flags,
        )
    return {
        "supabase_url": settings.supabase_url,
        "supabase_anon_key": settings.supabase_anon_key.get_secret_value(),
        "email_log_limit": settings.email_log_limit,
        "proxy_path": f"{settings.api_v1_prefix}{PROXY_PATH}",
    }
