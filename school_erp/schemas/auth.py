"""Authentication related schemas."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """Payload data extracted from access tokens."""

    sub: str = Field(min_length=1)
    exp: datetime
    type: str
    role: str | None = None
    school_id: str | None = None


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller as supplied by the auth layer."""

    user_id: str
    role: str | None = None
    school_id: str | None = None
