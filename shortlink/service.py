"""Link service layer: orchestrates allocation, storage, logging and metrics.

Architecture Overview
=====================
::
    ┌─────────────────────────────────────────────────┐
    │                  LinkService                    │
    │  ┌───────────────┐        ┌──────────────────┐  │
    │  │ CodeAllocator │──────▶ │ claim_with_retry │  │
    │  └───────────────┘        └────────┬─────────┘  │
    │                                    ▼            │
    │                          ┌──────────────────┐   │
    │                          │    LinkStore     │   │
    │                          └────────┬─────────┘   │
    └───────────────────────────────────┼─────────────┘
                                        ▼
                               ┌─────────────────┐
                               │   PostgreSQL    │
                               └─────────────────┘

How to Use
===========
**Step 1 — Build per request**::
    service = LinkService.from_context(ctx, store)

**Step 2 — Call from a route**::
    outcome = await service.create_link(payload)
    outcome = await service.resolve(code)

Key Behaviours
===============
- Returns the store's typed outcomes unchanged; the route decides the HTTP
  status.
- Every call is timed and counted in Prometheus, labelled by outcome.
- ``StorageUnavailable`` is logged and re-raised, never retried here.

Classes:
    LinkService:  Request-scoped facade over the allocator and the store.
"""

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram

from shortlink.allocator import CodeAllocator, claim_with_retry
from shortlink.enums import RequestStatus
from shortlink.errors import StorageUnavailable
from shortlink.outcomes import AllocationExhausted, Conflict, NotFound, Ok
from shortlink.schemas import LinkCreate, LinkRecord
from shortlink.store import LinkStore

if TYPE_CHECKING:
    from shortlink.dependencies import RequestContext

__all__ = ["LinkService"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

LINK_CREATION_REQUESTS_TOTAL = Counter(
    "shortlink_creation_requests_total",
    "Total link creation requests",
    ["status"],
)
LINK_REDIRECT_REQUESTS_TOTAL = Counter(
    "shortlink_redirect_requests_total",
    "Total redirect (resolve) requests",
    ["status"],
)
LINK_DELETE_REQUESTS_TOTAL = Counter(
    "shortlink_delete_requests_total",
    "Total link delete requests",
    ["status"],
)

LINK_CREATION_DURATION = Histogram(
    "shortlink_creation_duration_seconds",
    "Time taken to create links",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
LINK_RESOLVE_DURATION = Histogram(
    "shortlink_resolve_duration_seconds",
    "Time taken to resolve a code and record the click",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
)


def _status_of(outcome: object) -> RequestStatus:
    match outcome:
        case Ok():
            return RequestStatus.SUCCESS
        case Conflict():
            return RequestStatus.CONFLICT
        case NotFound():
            return RequestStatus.NOT_FOUND
        case AllocationExhausted():
            return RequestStatus.EXHAUSTED
    return RequestStatus.ERROR


class LinkService:
    """Request-scoped operations on links.

    Example:
        >>> service = LinkService.from_context(ctx, store)
        >>> outcome = await service.create_link(LinkCreate(long_url="https://example.com"))
    """

    def __init__(self, store: LinkStore, allocator: CodeAllocator, logger, max_attempts: int = 5) -> None:
        self._store = store
        self._allocator = allocator
        self._logger = logger
        self._max_attempts = max_attempts

    @classmethod
    def from_context(cls, ctx: "RequestContext", store: LinkStore) -> "LinkService":
        return cls(
            store,
            CodeAllocator(ctx.settings.SHORT_CODE_LENGTH),
            ctx.logger,
            max_attempts=ctx.settings.CODE_ALLOCATION_MAX_ATTEMPTS,
        )

    async def create_link(self, payload: LinkCreate) -> Ok[LinkRecord] | Conflict | AllocationExhausted:
        start_time = time.perf_counter()
        self._logger.info(f"Creating link for: {payload.long_url}")
        try:
            outcome = await claim_with_retry(
                self._store,
                self._allocator,
                payload.long_url,
                preferred=payload.custom_code,
                max_attempts=self._max_attempts,
            )
        except StorageUnavailable as exc:
            LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Link creation failed: {exc}")
            raise
        finally:
            LINK_CREATION_DURATION.observe(time.perf_counter() - start_time)

        status = _status_of(outcome)
        LINK_CREATION_REQUESTS_TOTAL.labels(status=status).inc()
        match outcome:
            case Ok(record):
                self._logger.info(f"Link created: {record.code}")
            case Conflict(code):
                self._logger.warning(f"Short code already exists: {code}")
            case AllocationExhausted(attempts):
                self._logger.error(f"No free code after {attempts} attempts")
        return outcome

    async def resolve(self, code: str) -> Ok[str] | NotFound:
        start_time = time.perf_counter()
        try:
            outcome = await self._store.resolve_and_record_click(code)
        except StorageUnavailable as exc:
            LINK_REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Redirect failed for {code}: {exc}")
            raise
        finally:
            LINK_RESOLVE_DURATION.observe(time.perf_counter() - start_time)

        LINK_REDIRECT_REQUESTS_TOTAL.labels(status=_status_of(outcome)).inc()
        if isinstance(outcome, NotFound):
            self._logger.warning(f"Redirect failed - short code not found: {code}")
        return outcome

    async def get_link(self, code: str) -> Ok[LinkRecord] | NotFound:
        outcome = await self._store.lookup(code)
        if isinstance(outcome, NotFound):
            self._logger.warning(f"Stats not found for short code: {code}")
        return outcome

    async def list_links(self, search: str | None = None) -> list[LinkRecord]:
        search = search.strip() if search else None
        links = await self._store.list_links(search or None)
        self._logger.debug(f"Listed {len(links)} links (search={search!r})")
        return links

    async def delete_link(self, code: str) -> bool:
        deleted = await self._store.delete(code)
        status = RequestStatus.SUCCESS if deleted else RequestStatus.NOT_FOUND
        LINK_DELETE_REQUESTS_TOTAL.labels(status=status).inc()
        if deleted:
            self._logger.info(f"Link deleted: {code}")
        else:
            self._logger.warning(f"Delete failed - short code not found: {code}")
        return deleted
