"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.database import get_session_factory
from app.services.email_logs import EmailLogStore
from app.services.workflow_bridge import WorkflowBridge


def get_app_settings(request: Request) -> Settings:
    """Settings built once at startup and stored on the app."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_workflow_bridge(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> WorkflowBridge:
    # A shared client is only set by tests or embedding code; otherwise each run opens its own.
    return WorkflowBridge(settings, client=getattr(request.app.state, "n8n_client", None))


def get_email_log_store(settings: Settings = Depends(get_app_settings)) -> EmailLogStore:
    return EmailLogStore(get_session_factory(settings), max_limit=settings.email_log_limit)


__all__ = ["get_app_settings", "get_workflow_bridge", "get_email_log_store"]
