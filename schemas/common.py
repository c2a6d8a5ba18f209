"""
schemas/common.py

- Shared schemas used across the project
- Pydantic v2
- Contents:
  1) Error response standard: ErrorDetail, ErrorResponse
  2) Success envelope: SuccessEnvelope[T], ok()
  3) Common field types: DateStr, TimeStr, DateQuery
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Generic, Optional, TypeVar

from fastapi import Query
from pydantic import BaseModel, Field, ConfigDict


# =========================================================
# 1) Error response standard
# =========================================================

class ErrorDetail(BaseModel):
    """Error code/message pair"""
    code: str = Field(..., description="error code (e.g. NOT_FOUND, SCHOOL_REQUIRED)")
    message: str = Field(..., description="human readable message (Arabic)")
    redirect: Optional[str] = Field(default=None, description="where the client should go (401 only)")

    model_config = ConfigDict(extra="ignore")


class ErrorResponse(BaseModel):
    """
    Standard error body returned by the global error handlers
    (middlewares/error_handler.py).
    """
    success: bool = False
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="response time (UTC)"
    )

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 2) Success envelope
# =========================================================

T = TypeVar("T")


class SuccessEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: T
    message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    """{"success": True, "data": ..., "message": ...}"""
    return {"success": True, "data": data, "message": message}


# =========================================================
# 3) Common field types
# =========================================================

# dates travel as YYYY-MM-DD strings and are compared lexically
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
DateStr = Annotated[str, Field(pattern=DATE_PATTERN, examples=["2024-05-01"])]
TimeStr = Annotated[str, Field(pattern=r"^\d{2}:\d{2}$", examples=["08:30"])]
# same rule for query parameters
DateQuery = Annotated[str, Query(pattern=DATE_PATTERN)]


def dump(schema, obj):
    """ORM row(s) → plain dict(s) through an output schema."""
    if isinstance(obj, (list, tuple)):
        return [schema.model_validate(o).model_dump() for o in obj]
    return schema.model_validate(obj).model_dump()
