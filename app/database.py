"""
Database connection and session management.
"""
from __future__ import annotations

from typing import Any

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.config import Settings, get_settings
from app.core.exceptions import ConfigurationError

load_dotenv()

_engines: dict[str, Engine] = {}


def get_engine(settings: Settings | None = None) -> Engine:
    """
    Return the engine for the configured DATABASE_URL, creating it on first use.
    """
    settings = settings or get_settings()
    url = settings.database_url
    if not url:
        raise ConfigurationError(
            "Missing database configuration. Environment variables not found.",
            details={"DATABASE_URL": False},
        )
    engine = _engines.get(url)
    if engine is None:
        options: dict[str, Any] = {"pool_pre_ping": True, "echo": False}
        if url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
        else:
            options.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
        engine = create_engine(url, **options)
        _engines[url] = engine
    return engine


def get_session_factory(settings: Settings | None = None) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine(settings))


def init_db(settings: Settings | None = None) -> None:
    """
    Create the email log table when it does not exist yet.
    """
    from app.models import Base

    Base.metadata.create_all(bind=get_engine(settings))


def database_health(settings: Settings | None = None) -> dict[str, Any]:
    """
    Return structured database health details.
    """
    try:
        engine = get_engine(settings)
    except ConfigurationError as exc:
        return {"ok": False, "configured": False, "error": exc.message}

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return {"ok": True, "configured": True, "dialect": engine.dialect.name}
    except SQLAlchemyError as exc:
        return {
            "ok": False,
            "configured": True,
            "error": str(exc),
        }
