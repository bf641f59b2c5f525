"""
YelpCamp Backend - Request Identity Models
============================================

What:  The principal bound to a request and the context handed to handlers.
How:   Principal is an immutable snapshot of the signed-in user. Handlers get
       a RequestContext(principal, flash) instead of reading ambient session
       state, which keeps services callable from tests and scripts.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from app.auth.flash import FlashSink


class Principal(BaseModel):
    """Authenticated user resolved from the session cookie."""

    id: UUID
    username: str

    model_config = {"frozen": True}


@dataclass(frozen=True)
class RequestContext:
    """Explicit per-request context: who is acting and where notices go."""

    principal: Optional[Principal]
    flash: FlashSink

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None
