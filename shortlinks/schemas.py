"""Pydantic schemas for request/response serialization.

Schema Hierarchy
=================
::
    LinkCreate (Input)
    ├─ target: Any (checked by shortlinks.codes)
    └─ code: Any (checked by shortlinks.codes)

    LinkResponse (Output, camelCase on the wire)
    ├─ code: str
    ├─ target: str
    ├─ clicks: int
    ├─ lastClicked: datetime | None
    ├─ createdAt: datetime
    ├─ updatedAt: datetime
    └─ shortUrl: str | None

    DeleteResponse (Output)
    └─ message: str

    HealthResponse (Output)
    ├─ ok: bool
    ├─ version: str
    ├─ status: HealthStatus
    └─ database: HealthStatus

Key Behaviours
===============
- ``LinkCreate`` accepts any JSON value, strings or not. Target and code
  rules live in ``shortlinks.codes`` so that violations surface as 400 with a specific
  reason instead of a generic 422.
- Output models read ORM objects and SQL rows through ``from_attributes``.
- Field names are snake_case in Python and camelCase in JSON.
"""

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shortlinks.enums import HealthStatus

__all__ = [
    "LinkCreate",
    "LinkResponse",
    "DeleteResponse",
    "HealthResponse",
]


class LinkCreate(BaseModel):
    target: Any = Field(None, description="Absolute URL to redirect to, e.g. 'https://example.com'")
    code: Any = Field(None, description="Optional custom code, 6-8 alphanumeric characters")


class LinkResponse(BaseModel):
    code: str
    target: str
    clicks: int
    last_clicked: datetime.datetime | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    short_url: str | None = None

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def from_record(cls, record: object, base_url: str) -> "LinkResponse":
        response = cls.model_validate(record)
        response.short_url = f"{base_url.rstrip('/')}/{response.code}"
        return response


class DeleteResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    ok: bool
    version: str
    status: HealthStatus
    database: HealthStatus
