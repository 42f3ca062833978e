"""
SQLAlchemy models for the email log dashboard.
"""
from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Column, Date, DateTime, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class EmailLog(Base):
    """One email sent by the external sender workflow. Never written here."""

    __tablename__ = "email_logs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    recipient = Column(Text, nullable=False)
    email_type = Column(Text)
    subject = Column(Text)
    body = Column(Text)
    variables = Column(JSON().with_variant(JSONB, "postgresql"))
    target_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False)
    note = Column(Text)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


__all__ = ["Base", "EmailLog"]
