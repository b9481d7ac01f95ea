"""Exceptions raised by the shortlink core.

Only failures that the core cannot turn into a meaningful outcome are raised;
see ``shortlink.outcomes`` for conflict and not-found results.
"""

__all__ = ["ShortlinkError", "StorageUnavailable"]


class ShortlinkError(Exception):
    """Base class for shortlink errors."""


class StorageUnavailable(ShortlinkError):
    """The database could not be reached or dropped the connection mid-call."""

    def __init__(self, operation: str, message: str = "database unavailable") -> None:
        self.operation = operation
        super().__init__(f"{operation}: {message}")
