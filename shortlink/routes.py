"""HTTP routes for the shortlink service.

Flow Diagram — Redirect
=======================
::
    ┌─────────────┐
    │  GET /:code │
    └──────┬──────┘
           ▼
    ┌─────────────┐   no
    │ code format │──────▶ 404
    │ valid?      │
    └──────┬──────┘
           ▼ yes
    ┌─────────────┐
    │ resolve and │
    │ record click│
    │ (1 UPDATE)  │
    └──────┬──────┘
    found? │
    ┌──────┴──────┐
    │ YES         │ NO
    ▼             ▼
  302 to        404
  destination

How to Use
===========
    POST   /api/links            {"long_url": "https://example.com", "custom_code": "promo24"}
    GET    /api/links?q=promo
    GET    /api/links/promo24
    DELETE /api/links/promo24
    GET    /promo24
    GET    /healthz

Key Behaviours
===============
- Input is validated by ``LinkCreate`` before the service is called; bad
  input is a 422 and never reaches the store.
- Redirect codes that cannot be valid short codes are rejected without a
  database round-trip.
- ``StorageUnavailable`` is mapped to 503 by the handler in ``main``.

Endpoints:
    /healthz:  Liveness plus a database probe.
    /api/links:  Create and list links.
    /api/links/:code:  Stats and deletion.
    /:code:  Redirect, counting the click.
"""

import datetime
import time

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from shortlink.database import Database
from shortlink.dependencies import RequestContext, get_database, get_link_service, get_request_context
from shortlink.enums import HealthStatus
from shortlink.outcomes import AllocationExhausted, Conflict, NotFound, Ok
from shortlink.schemas import HealthResponse, LinkCreate, LinkResponse
from shortlink.service import LinkService
from shortlink.validation import is_valid_code

__all__ = ["router"]

router = APIRouter()

NOT_FOUND_TEXT = "Short link not found."


@router.get("/healthz", response_model=HealthResponse, tags=["health"])
async def health_check(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    database: Database = Depends(get_database),
) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await database.ping()
    except Exception as exc:
        ctx.logger.error(f"Database health check failed: {exc}")
        db_status = HealthStatus.UNHEALTHY

    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return HealthResponse(
        ok=db_status is HealthStatus.HEALTHY,
        uptime=time.monotonic() - started_at,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
        database=db_status,
    )


@router.post("/api/links", response_model=LinkResponse, status_code=201, tags=["links"])
async def create_link(
    payload: LinkCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    match await service.create_link(payload):
        case Ok(record):
            return LinkResponse.from_record(record, ctx.settings.BASE_URL)
        case Conflict():
            raise HTTPException(status_code=409, detail="Short code already exists")
        case AllocationExhausted():
            raise HTTPException(status_code=500, detail="Failed to generate unique short code")


@router.get("/api/links", response_model=list[LinkResponse], tags=["links"])
async def list_links(
    q: str | None = None,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> list[LinkResponse]:
    records = await service.list_links(q)
    return [LinkResponse.from_record(record, ctx.settings.BASE_URL) for record in records]


@router.get("/api/links/{code}", response_model=LinkResponse, tags=["links"])
async def get_link(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    outcome = await service.get_link(code)
    if isinstance(outcome, NotFound):
        raise HTTPException(status_code=404, detail="Not found")
    return LinkResponse.from_record(outcome.value, ctx.settings.BASE_URL)


@router.delete("/api/links/{code}", status_code=204, tags=["links"])
async def delete_link(
    code: str,
    service: LinkService = Depends(get_link_service),
) -> Response:
    if not await service.delete_link(code):
        raise HTTPException(status_code=404, detail="Not found")
    return Response(status_code=204)


@router.get("/{code}", tags=["redirect"])
async def redirect_to_destination(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> Response:
    if not is_valid_code(code):
        ctx.logger.debug(f"Rejected malformed code: {code!r}")
        return PlainTextResponse(NOT_FOUND_TEXT, status_code=404)

    outcome = await service.resolve(code)
    if isinstance(outcome, NotFound):
        return PlainTextResponse(NOT_FOUND_TEXT, status_code=404)

    ctx.logger.info(
        f"Redirect successful: {code} -> {outcome.value}",
        extra={"operation": "redirect", "short_code": code, "duration_ms": ctx.get_duration()},
    )
    return RedirectResponse(url=outcome.value, status_code=302)
