"""Pydantic schemas for request validation and link serialization.

Schema Hierarchy
=================
::
    LinkCreate (Input)
    ├─ long_url: str (http/https URL, trimmed)
    └─ custom_code: str | None (6-8 alphanumerics, trimmed, not a reserved path)

    LinkRecord (Store value)
    ├─ code: str
    ├─ destination: str
    ├─ click_count: int
    ├─ last_clicked: datetime | None
    └─ created_at: datetime

    LinkResponse (Output)
    └─ LinkRecord fields + short_link (computed)

    HealthResponse (Output)
    ├─ ok: bool
    ├─ uptime: float
    ├─ timestamp: datetime
    └─ database: HealthStatus

How to Use
===========
**Step 1 — Input validation**::
    payload = LinkCreate(long_url="https://example.com", custom_code="promo24")

**Step 2 — Response serialization**::
    LinkResponse.from_record(record, settings.BASE_URL)

Key Behaviours
===============
- Invalid input raises ``pydantic.ValidationError``; FastAPI turns it into a
  422 before anything reaches the store.
- An empty or whitespace-only ``custom_code`` means "generate one for me".
- ``LinkRecord`` is frozen; it is a snapshot of the row at the time of the
  store call.

Classes:
    LinkCreate:  Input schema for link creation.
    LinkRecord:  Immutable snapshot of a stored link.
    LinkResponse:  Output schema for created and listed links.
    HealthResponse:  Output schema for the health check.
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shortlink.enums import HealthStatus
from shortlink.validation import is_reserved_code, is_valid_code, is_valid_destination

__all__ = [
    "LinkCreate",
    "LinkRecord",
    "LinkResponse",
    "HealthResponse",
]


class LinkCreate(BaseModel):
    long_url: str = Field(..., description="Destination URL, e.g. 'https://example.com/sale'")
    custom_code: str | None = Field(None, description="Optional 6-8 character alphanumeric code")

    @field_validator("long_url")
    @classmethod
    def validate_long_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("long_url is required")
        if not is_valid_destination(v):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator("custom_code")
    @classmethod
    def validate_custom_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not is_valid_code(v):
            raise ValueError("custom_code must match [A-Za-z0-9]{6,8}")
        if is_reserved_code(v):
            raise ValueError(f"custom_code '{v}' is reserved")
        return v


class LinkRecord(BaseModel):
    code: str
    destination: str
    click_count: int
    last_clicked: datetime.datetime | None = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)


class LinkResponse(LinkRecord):
    short_link: str

    @classmethod
    def from_record(cls, record: LinkRecord, base_url: str) -> "LinkResponse":
        return cls(
            **record.model_dump(),
            short_link=f"{base_url.rstrip('/')}/{record.code}",
        )


class HealthResponse(BaseModel):
    ok: bool
    uptime: float
    timestamp: datetime.datetime
    database: HealthStatus
