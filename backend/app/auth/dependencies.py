"""
YelpCamp Backend - Session Identity Dependencies
==================================================

What:  Resolves the principal for a request and builds its RequestContext.
How:   The signed session cookie (Starlette SessionMiddleware) stores only the
       user id. get_principal loads that user fresh on every request; a
       stale id (user gone) is dropped from the session and the request is
       treated as anonymous.

Usage:
    @router.post("/campgrounds")
    async def create(ctx: RequestContext = Depends(get_request_context)):
        ...
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request

from app.auth.flash import FlashSink
from app.auth.models import Principal, RequestContext
from app.dependencies import get_store
from app.models.user import User
from app.services.store import ResourceStore

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_RETURN_KEY = "return_to"


def get_flash(request: Request) -> FlashSink:
    return FlashSink(request.session)


async def get_principal(
    request: Request,
    store: ResourceStore = Depends(get_store),
) -> Optional[Principal]:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    user = await store.get_user(user_id)
    if user is None:
        logger.info("Dropping session for unknown user id %s", user_id)
        request.session.pop(SESSION_USER_KEY, None)
        return None
    return Principal(id=user.id, username=user.username)


async def get_request_context(
    principal: Optional[Principal] = Depends(get_principal),
    flash: FlashSink = Depends(get_flash),
) -> RequestContext:
    return RequestContext(principal=principal, flash=flash)


def login_user(request: Request, user: User) -> str:
    """
    Bind `user` to the session and return where to send them next.

    The remembered return path is consumed here; it falls back to /campgrounds.
    """
    request.session[SESSION_USER_KEY] = str(user.id)
    return request.session.pop(SESSION_RETURN_KEY, None) or "/campgrounds"


def logout_user(request: Request) -> None:
    request.session.pop(SESSION_USER_KEY, None)
    request.session.pop(SESSION_RETURN_KEY, None)


def remember_return_path(request: Request) -> None:
    """
    Remember the path of a GET that hit the login wall.

    Only GET requests are remembered, and never /login or /register
    themselves, so logging in cannot redirect back into the login form.
    """
    if request.method != "GET":
        return
    if request.url.path in ("/login", "/register"):
        return
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    request.session[SESSION_RETURN_KEY] = target


def page_context(ctx: RequestContext) -> Dict[str, Any]:
    """Fields every JSON page carries: drained notices and the current user."""
    current_user = None
    if ctx.principal is not None:
        current_user = {"id": str(ctx.principal.id), "username": ctx.principal.username}
    return {"messages": ctx.flash.consume(), "current_user": current_user}
