"""Read side of the sent-email log: latest window plus a polling insert feed."""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Callable, Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from app.models import EmailLog
from app.schemas.email_log import EmailLogEntry

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50

Predicate = Callable[[EmailLogEntry], bool]


class EmailLogStore:
    """Queries over ``email_logs``. Rows are only ever read here."""

    def __init__(self, session_factory: sessionmaker, max_limit: int = DEFAULT_LIMIT):
        self.session_factory = session_factory
        self.max_limit = max_limit

    def _clamp(self, limit: int | None) -> int:
        if limit is None:
            return self.max_limit
        return max(1, min(limit, self.max_limit))

    def latest(self, limit: int | None = None) -> list[EmailLogEntry]:
        """Newest entries first."""
        query = (
            select(EmailLog)
            .order_by(EmailLog.timestamp.desc(), EmailLog.id.desc())
            .limit(self._clamp(limit))
        )
        with self.session_factory() as db:
            return [EmailLogEntry.model_validate(row) for row in db.scalars(query)]

    def inserted_after(self, last_id: int) -> list[EmailLogEntry]:
        """Entries with an id above ``last_id``, oldest first."""
        query = select(EmailLog).where(EmailLog.id > last_id).order_by(EmailLog.id.asc())
        with self.session_factory() as db:
            return [EmailLogEntry.model_validate(row) for row in db.scalars(query)]

    def max_id(self) -> int:
        with self.session_factory() as db:
            return db.scalar(select(func.max(EmailLog.id))) or 0

    async def subscribe(
        self,
        predicate: Predicate | None = None,
        poll_seconds: float = 5.0,
        after_id: int | None = None,
    ) -> AsyncIterator[EmailLogEntry]:
        """Yield entries with an id above ``after_id``, until the consumer stops iterating.

        ``after_id`` defaults to the newest id at subscription time.
        """
        last_id = after_id if after_id is not None else await asyncio.to_thread(self.max_id)
        while True:
            rows = await asyncio.to_thread(self.inserted_after, last_id)
            if rows:
                logger.debug("Email log feed picked up %s new rows after id %s", len(rows), last_id)
            for entry in rows:
                last_id = max(last_id, entry.id)
                if predicate is None or predicate(entry):
                    yield entry
            await asyncio.sleep(poll_seconds)


class LogFeed:
    """Newest-first window of log entries, bounded to ``limit``."""

    def __init__(self, entries: Iterable[EmailLogEntry] = (), limit: int = DEFAULT_LIMIT):
        self.limit = limit
        self._entries: deque[EmailLogEntry] = deque(maxlen=limit)
        # Input is newest first; extending in reverse keeps the newest at the left.
        for entry in reversed(list(entries)[:limit]):
            self._entries.appendleft(entry)

    def push(self, entry: EmailLogEntry) -> None:
        self._entries.appendleft(entry)

    def snapshot(self) -> list[EmailLogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def status_predicate(status: str | None) -> Predicate | None:
    if not status:
        return None
    return lambda entry: entry.status == status
