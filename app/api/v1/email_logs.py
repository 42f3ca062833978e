from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, Depends, Query
from sse_starlette.sse import EventSourceResponse

from app.api.dependencies import get_app_settings, get_email_log_store
from app.config import Settings
from app.schemas.email_log import EmailLogEntry, EmailLogList
from app.services.email_logs import EmailLogStore, LogFeed, status_predicate

router = APIRouter()


def _dump(entries: list[EmailLogEntry]) -> list[dict]:
    return [entry.model_dump(mode="json") for entry in entries]


@router.get("", response_model=EmailLogList)
def list_email_logs(
    limit: int | None = Query(default=None, ge=1),
    store: EmailLogStore = Depends(get_email_log_store),
) -> EmailLogList:
    logs = store.latest(limit)
    return EmailLogList(logs=logs, count=len(logs))


@router.get("/stream")
async def stream_email_logs(
    status: str | None = None,
    store: EmailLogStore = Depends(get_email_log_store),
    settings: Settings = Depends(get_app_settings),
):
    """Snapshot of the newest entries, then one event per insert.

    Every ``insert`` event carries the new entry and the updated window, so a
    client can render ``logs`` as is.
    """
    predicate = status_predicate(status)
    # Baseline first: rows landing between the two queries arrive as inserts.
    last_id = await asyncio.to_thread(store.max_id)
    snapshot = await asyncio.to_thread(store.latest)
    feed = LogFeed(
        [entry for entry in snapshot if entry.id <= last_id and (predicate is None or predicate(entry))],
        limit=settings.email_log_limit,
    )

    async def event_generator():
        yield {"event": "snapshot", "data": json.dumps(_dump(feed.snapshot()))}
        async for entry in store.subscribe(
            predicate,
            poll_seconds=settings.email_log_poll_seconds,
            after_id=last_id,
        ):
            feed.push(entry)
            yield {
                "event": "insert",
                "data": json.dumps({"entry": entry.model_dump(mode="json"), "logs": _dump(feed.snapshot())}),
            }

    return EventSourceResponse(event_generator())
