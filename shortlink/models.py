"""SQLAlchemy ORM model for the links table.

Data Model Layout
=================
::
    links table
    ├─ id (BIGSERIAL PRIMARY KEY)
    ├─ code (VARCHAR(8) UNIQUE NOT NULL)
    ├─ destination (TEXT NOT NULL)
    ├─ click_count (BIGINT NOT NULL DEFAULT 0)
    ├─ last_clicked (TIMESTAMPTZ, NULL until first click)
    └─ created_at (TIMESTAMPTZ NOT NULL DEFAULT NOW())

Key Behaviours
===============
- The unique constraint on ``code`` is what makes a claim exclusive; nothing
  in application code checks for an existing row before inserting.
- ``click_count`` and ``last_clicked`` are only ever written by the atomic
  resolve statement in ``shortlink.store``.
- ``id`` is a surrogate key used to break ties between links created within
  the same timestamp tick.

Classes:
    Link:  A short code mapped to a destination URL, with click telemetry.
"""

import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shortlink.database import Base

__all__ = ["Link", "utcnow"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    code: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)
    destination: Mapped[str] = mapped_column(Text, nullable=False)
    click_count: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0", nullable=False)
    last_clicked: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Link(code='{self.code}', click_count={self.click_count})>"
