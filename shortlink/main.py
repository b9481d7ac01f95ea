"""FastAPI application entry point for the shortlink service.

Application Lifecycle Diagram
=============================
::
    ┌──────────────────┐
    │  uvicorn startup │
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │ lifespan():      │
    │ setup_logger()   │
    │ Database(...)    │
    │ create_all()     │
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │ Serve requests   │
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │ lifespan():      │
    │ database.close() │
    └──────────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn shortlink.main:app --host 0.0.0.0 --port 3000

**Step 2 — Make API calls**::
    curl -X POST http://localhost:3000/api/links \
         -H "Content-Type: application/json" \
         -d '{"long_url": "https://example.com/sale", "custom_code": "promo24"}'

    curl -i http://localhost:3000/promo24

Key Behaviours
===============
- The database handle is created at startup, stored on ``app.state`` and
  disposed at shutdown.
- ``StorageUnavailable`` becomes a 503 JSON response.
- Prometheus metrics are exposed at ``/metrics``; the route is registered
  before the catch-all redirect route so it is not shadowed.
"""

__all__ = ["app", "create_app"]

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from shortlink.config import Settings, get_settings
from shortlink.database import Database
from shortlink.dependencies import setup_logger
from shortlink.errors import StorageUnavailable
from shortlink.routes import router


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger = setup_logger(settings.LOG_LEVEL)
        database = Database.from_settings(settings)
        await database.create_all()
        app.state.database = database
        app.state.started_at = time.monotonic()
        logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")
        yield
        await database.close()
        logger.info(f"{settings.APP_NAME} stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Short links with atomic click tracking",
        lifespan=lifespan,
    )

    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailable) -> JSONResponse:
        return JSONResponse(status_code=503, content={"error": "Service temporarily unavailable"})

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
    ).instrument(app).expose(app)

    app.include_router(router)
    return app


app = create_app()
