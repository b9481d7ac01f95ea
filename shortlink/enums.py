"""Shared enums for the shortlink service.

Using enums instead of string literals keeps metric labels and health
payloads consistent across the codebase.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Request status values for metrics labels."""

    SUCCESS = "success"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"
    ERROR = "error"
