"""Format checks shared by the request schemas and the redirect route."""

import re
from urllib.parse import urlsplit

import validators

__all__ = [
    "ALLOWED_SCHEMES",
    "CODE_PATTERN",
    "RESERVED_CODES",
    "is_reserved_code",
    "is_valid_code",
    "is_valid_destination",
]

CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{6,8}$")
ALLOWED_SCHEMES = frozenset({"http", "https"})

# Top-level paths served by routes registered ahead of the ``/{code}`` redirect.
RESERVED_CODES = frozenset({"healthz", "metrics"})


def is_valid_code(code: str) -> bool:
    return bool(CODE_PATTERN.fullmatch(code))


def is_reserved_code(code: str) -> bool:
    return code in RESERVED_CODES


def is_valid_destination(candidate: str) -> bool:
    if not validators.url(candidate):
        return False
    return urlsplit(candidate).scheme.lower() in ALLOWED_SCHEMES
