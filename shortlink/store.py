"""Link store: the authoritative, race-free mapping of code to destination.

Every operation is a single SQL statement in its own short transaction, so
correctness under concurrent requests comes from the database rather than
from application-level locking.

Flow Diagram — Claim
====================
::
    ┌──────────────────┐
    │ claim(code, url) │
    └────────┬─────────┘
             ▼
    ┌──────────────────────────────┐
    │ INSERT ... ON CONFLICT (code)│
    │ DO NOTHING RETURNING *       │
    └────────┬─────────────────────┘
      row?   │
    ┌────────┴────────┐
    │ YES             │ NO
    ▼                 ▼
┌─────────┐     ┌──────────┐
│ Ok(link)│     │ Conflict │
└─────────┘     └──────────┘

Flow Diagram — Resolve (redirect hot path)
==========================================
::
    ┌────────────────────────────┐
    │ resolve_and_record_click() │
    └────────┬───────────────────┘
             ▼
    ┌─────────────────────────────────┐
    │ UPDATE links                    │
    │ SET click_count = click_count+1,│
    │     last_clicked = now()        │
    │ WHERE code = :code              │
    │ RETURNING destination           │
    └────────┬────────────────────────┘
      row?   │
    ┌────────┴────────┐
    │ YES             │ NO
    ▼                 ▼
┌────────────┐  ┌──────────┐
│ Ok(dest)   │  │ NotFound │
└────────────┘  └──────────┘

How to Use
===========
**Step 1 — Build from a database handle**::
    store = LinkStore(database)

**Step 2 — Claim and resolve**::
    match await store.claim("promo24", "https://example.com/sale"):
        case Ok(link):
            print(link.created_at)
        case Conflict():
            ...

    outcome = await store.resolve_and_record_click("promo24")

Key Behaviours
===============
- ``claim`` relies solely on the unique constraint on ``links.code``; there is
  no read before the insert.
- ``resolve_and_record_click`` increments and reads in one statement, so N
  concurrent resolves add exactly N clicks.
- A delete racing a resolve serialises on the row lock: the resolve either
  sees the row (and the delete removes it afterwards) or sees nothing.
- ``last_clicked`` comes from the database clock on PostgreSQL and from the
  application clock on SQLite.
- Connectivity failures surface as ``StorageUnavailable``; the store never
  retries them.

Classes:
    LinkStore:  Claim, resolve, lookup, list and delete operations.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import InterfaceError, OperationalError

from shortlink.database import Database
from shortlink.errors import StorageUnavailable
from shortlink.models import Link, utcnow
from shortlink.outcomes import Conflict, NotFound, Ok
from shortlink.schemas import LinkRecord

__all__ = ["LinkStore"]

logger = logging.getLogger("shortlink.store")

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

LIKE_ESCAPE = "/"


def _contains_pattern(term: str) -> str:
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


class LinkStore:
    """Durable link operations backed by the ``links`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database
        try:
            self._insert = _UPSERT_INSERTS[database.dialect_name]
        except KeyError:
            raise ValueError(f"Unsupported database dialect: {database.dialect_name}") from None

    def _click_timestamp(self):
        # SQLite CURRENT_TIMESTAMP only has one-second precision.
        if self._db.dialect_name == "postgresql":
            return func.now()
        return utcnow()

    @asynccontextmanager
    async def _round_trip(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except (OperationalError, InterfaceError, OSError) as exc:
            logger.error(f"Storage failure during {operation}: {exc}")
            raise StorageUnavailable(operation, str(exc)) from exc

    async def claim(self, code: str, destination: str) -> Ok[LinkRecord] | Conflict:
        stmt = (
            self._insert(Link)
            .values(code=code, destination=destination)
            .on_conflict_do_nothing(index_elements=["code"])
            .returning(Link)
        )
        async with self._round_trip("claim"):
            async with self._db.session() as session, session.begin():
                link = (await session.scalars(stmt)).one_or_none()
                record = LinkRecord.model_validate(link) if link is not None else None

        if record is None:
            logger.debug(f"Code already claimed: {code}")
            return Conflict(code)
        return Ok(record)

    async def resolve_and_record_click(self, code: str) -> Ok[str] | NotFound:
        stmt = (
            update(Link)
            .where(Link.code == code)
            .values(click_count=Link.click_count + 1, last_clicked=self._click_timestamp())
            .returning(Link.destination)
            .execution_options(synchronize_session=False)
        )
        async with self._round_trip("resolve"):
            async with self._db.session() as session, session.begin():
                destination = (await session.execute(stmt)).scalar_one_or_none()

        if destination is None:
            return NotFound(code)
        return Ok(destination)

    async def lookup(self, code: str) -> Ok[LinkRecord] | NotFound:
        async with self._round_trip("lookup"):
            async with self._db.session() as session:
                link = (await session.scalars(select(Link).where(Link.code == code))).one_or_none()
                record = LinkRecord.model_validate(link) if link is not None else None

        if record is None:
            return NotFound(code)
        return Ok(record)

    async def list_links(self, search: str | None = None) -> list[LinkRecord]:
        stmt = select(Link).order_by(Link.created_at.desc(), Link.id.desc())
        if search:
            pattern = _contains_pattern(search)
            stmt = stmt.where(
                or_(
                    Link.code.ilike(pattern, escape=LIKE_ESCAPE),
                    Link.destination.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        async with self._round_trip("list"):
            async with self._db.session() as session:
                links = (await session.scalars(stmt)).all()
                return [LinkRecord.model_validate(link) for link in links]

    async def delete(self, code: str) -> bool:
        stmt = (
            delete(Link)
            .where(Link.code == code)
            .returning(Link.code)
            .execution_options(synchronize_session=False)
        )
        async with self._round_trip("delete"):
            async with self._db.session() as session, session.begin():
                deleted = (await session.execute(stmt)).scalar_one_or_none()
        return deleted is not None
