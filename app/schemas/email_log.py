from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class EmailLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient: str
    email_type: str | None = None
    subject: str | None = None
    body: str | None = None
    variables: dict[str, Any] | None = None
    target_date: date
    status: str
    note: str | None = None
    timestamp: datetime


class EmailLogList(BaseModel):
    logs: list[EmailLogEntry]
    count: int
