from __future__ import annotations

from pydantic import BaseModel, Field


class OperationLimit(BaseModel):
    """Configured budget of one rate limited operation."""

    operation: str
    window_seconds: float = Field(..., description="Window length, counted from the first request")
    max_requests: int = Field(..., description="Requests allowed per window and user")


class RateLimitStatus(BaseModel):
    """Outcome of consuming one unit of an operation's budget."""

    operation: str
    allowed: bool
    limit: int
    remaining: int = Field(..., description="Requests left in the current window")
    reset_at: float = Field(..., description="UNIX epoch seconds when the window ends")
