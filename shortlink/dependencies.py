"""Dependency injection for the shortlink API.

The database handle is created in the application lifespan and stored on
``app.state``; dependencies pull it from the current request instead of a
module-level singleton, so tests can swap it with ``dependency_overrides``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from shortlink.config import Settings
from shortlink.database import Database
from shortlink.service import LinkService
from shortlink.store import LinkStore

LOGGER_NAME = "shortlink"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``shortlink`` logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking data and shared settings.

    Attributes:
        settings: Application settings
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    settings: Settings
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=time.time)

    @property
    def logger(self) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(
            logging.getLogger(LOGGER_NAME),
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_link_store(database: Database = Depends(get_database)) -> LinkStore:
    return LinkStore(database)


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        settings=request.app.state.settings,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def get_link_service(
    ctx: RequestContext = Depends(get_request_context),
    store: LinkStore = Depends(get_link_store),
) -> LinkService:
    return LinkService.from_context(ctx, store)
