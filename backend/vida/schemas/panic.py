"""Panic Schemas — alert activation payload.

Invariants:
    - Coordinate ranges are checked in panic_service (INVALID_LOCATION), so an
      out-of-range reading yields the domain error code
"""

from pydantic import BaseModel, Field


class PanicActivateRequest(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = Field(None, ge=0)
    message: str | None = Field(None, max_length=500)
