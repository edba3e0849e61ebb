"""SQLAlchemy ORM models for the short link service.

Data Model Layout
=================
::
    links table
    ├─ id (INTEGER PRIMARY KEY)
    ├─ code (VARCHAR(8) UNIQUE, INDEXED)
    ├─ target (TEXT NOT NULL)
    ├─ clicks (INTEGER NOT NULL DEFAULT 0)
    ├─ last_clicked (TIMESTAMPTZ NULL)
    ├─ created_at (TIMESTAMPTZ NOT NULL)
    └─ updated_at (TIMESTAMPTZ NOT NULL)

Key Behaviours
===============
- The UNIQUE constraint on ``code`` is the authority for code uniqueness;
  application pre-checks only give a friendlier error earlier.
- ``code`` and ``target`` are never updated after insert.
- ``clicks``, ``last_clicked`` and ``updated_at`` are only written by the
  redirect tally update.
- Timestamps are set on the Python side so ordering by ``created_at`` keeps
  sub-second resolution on every backend.

Classes:
    Link:  A short code mapped to its target URL with click tracking.
"""

import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shortlinks.database import Base

__all__ = ["Link", "utcnow"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(8), unique=True, index=True, nullable=False)
    target: Mapped[str] = mapped_column(Text, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_clicked: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, code='{self.code}', clicks={self.clicks})>"
