"""
Email Log Dashboard - FastAPI Application
Workflow bridge to n8n plus the read side of the sent-email log
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from datetime import datetime, timezone
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.config import Settings, get_settings
from app.core.exceptions import BridgeError
from app.database import init_db
from app.middleware import ScopedCORSMiddleware
from app.api.routes import health, n8n_proxy
from app.api.v1 import dashboard, email_logs

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting %s...", settings.app_name)

    if settings.database_url:
        try:
            init_db(settings)
            logger.info("Database initialized")
        except Exception as e:
            logger.error(f"Database initialization failed: {str(e)}")
    else:
        logger.warning("DATABASE_URL is not set; email log endpoints will report a configuration error")

    missing = [key for key, present in settings.presence().items() if not present]
    if missing:
        logger.warning("Missing settings: %s", ", ".join(missing))
    logger.info(f"API running on {settings.app_env} environment, n8n dialect {settings.n8n_dialect}")
    yield
    logger.info("Shutting down %s...", settings.app_name)


async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Backend API for the email log dashboard",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.n8n_client = None

    # Respect forwarded proto/host when running behind a proxy.
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

    app.add_middleware(
        ScopedCORSMiddleware,
        exempt_suffixes=(n8n_proxy.PROXY_PATH,),
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Client-Info", "Apikey", "X-N8N-API-KEY"],
    )

    app.add_exception_handler(BridgeError, bridge_error_handler)

    @app.get("/")
    async def root() -> dict:
        return {
            "name": settings.app_name,
            "environment": settings.app_env,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(health.router, prefix=settings.api_v1_prefix, tags=["Health"])
    # Same path the browser used for the hosted edge function.
    app.include_router(n8n_proxy.router, prefix="/functions/v1", tags=["Workflow"])
    app.include_router(n8n_proxy.router, prefix=settings.api_v1_prefix, tags=["Workflow"])
    app.include_router(
        email_logs.router,
        prefix=f"{settings.api_v1_prefix}/email-logs",
        tags=["Email Logs"],
    )
    app.include_router(
        dashboard.router,
        prefix=f"{settings.api_v1_prefix}/dashboard",
        tags=["Dashboard"],
    )
    return app


app = create_app()
