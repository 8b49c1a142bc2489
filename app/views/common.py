"""Common response schemas."""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: Optional[str] = None
    kind: Optional[str] = None
    details: Optional[dict[str, Any]] = None

