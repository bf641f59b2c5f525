"""
YelpCamp Backend - Account Route Handlers
===========================================

What:  Registration, login and logout.
How:   The session cookie holds only the user id (see app/auth/dependencies.py).
       Login consumes the remembered return path, if any, so a visitor bounced
       from /campgrounds/new lands back there after signing in.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from app.auth.dependencies import (
    get_request_context,
    login_user,
    logout_user,
    page_context,
)
from app.auth.models import RequestContext
from app.dependencies import get_user_service
from app.routes.forms import read_payload
from app.schemas.pages import FormPage
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.get("/register", response_model=FormPage)
async def register_form(ctx: RequestContext = Depends(get_request_context)) -> dict:
    return {**page_context(ctx), "form": "register"}


@router.post("/register", status_code=303)
async def register(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: UserService = Depends(get_user_service),
) -> RedirectResponse:
    payload, _ = await read_payload(request)
    user = await service.register(payload)
    login_user(request, user)
    ctx.flash.success("Welcome to Yelp Camp!")
    return RedirectResponse(url="/campgrounds", status_code=303)


@router.get("/login", response_model=FormPage)
async def login_form(ctx: RequestContext = Depends(get_request_context)) -> dict:
    return {**page_context(ctx), "form": "login"}


@router.post("/login", status_code=303)
async def login(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: UserService = Depends(get_user_service),
) -> RedirectResponse:
    payload, _ = await read_payload(request)
    user = await service.authenticate(payload)
    target = login_user(request, user)
    ctx.flash.success("Welcome Back!")
    logger.info("User %s signed in, redirecting to %s", user.username, target)
    return RedirectResponse(url=target, status_code=303)


@router.api_route("/logout", methods=["GET", "POST"], status_code=303)
async def logout(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
) -> RedirectResponse:
    logout_user(request)
    ctx.flash.success("Goodbye!")
    return RedirectResponse(url="/campgrounds", status_code=303)
