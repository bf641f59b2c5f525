"""
YelpCamp Backend - Campground Route Handlers
==============================================

What:  Campground pages (list, detail, new/edit forms) and mutations.
How:   Routes stay thin: run the request's guards, decode the body, call
       CampgroundService, then answer with a JSON page or a 303 redirect.
       Guards run before decoding, so an anonymous or foreign request with a
       broken body is still answered with a redirect, never a 400.
       Guard failures, validation errors and missing campgrounds surface as
       exceptions and are turned into responses by the handlers in main.py.

Route Inventory:
    GET    /                         → 303 /campgrounds
    GET    /campgrounds              list page + cluster map FeatureCollection
    GET    /campgrounds/new          new form (signed in)
    POST   /campgrounds              create → 303 /campgrounds/{id}
    GET    /campgrounds/{id}         detail page
    GET    /campgrounds/{id}/edit    edit form (author only)
    PUT    /campgrounds/{id}         update → 303 /campgrounds/{id}
    DELETE /campgrounds/{id}         delete + cascade → 303 /campgrounds
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from app.auth.dependencies import get_request_context, page_context
from app.auth.guards import enforce, is_author, is_logged_in
from app.auth.models import RequestContext
from app.dependencies import get_campground_service, get_store
from app.routes.forms import read_payload
from app.schemas.pages import (
    CampgroundFormPage,
    CampgroundListPage,
    CampgroundPage,
    ErrorResponse,
)
from app.services.campground_service import CampgroundService
from app.services.presentation import feature_collection, serialize_campground
from app.services.store import ResourceStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Campgrounds"])

_ERRORS = {
    303: {"description": "Redirect with a flash notice (guard failure or unknown campground)"},
    400: {"description": "Invalid payload", "model": ErrorResponse},
}


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


@router.get("/", include_in_schema=False)
async def home() -> RedirectResponse:
    return _redirect("/campgrounds")


@router.get("/campgrounds", response_model=CampgroundListPage, summary="List campgrounds")
async def index(
    ctx: RequestContext = Depends(get_request_context),
    service: CampgroundService = Depends(get_campground_service),
) -> dict:
    campgrounds = await service.list_campgrounds()
    users = await service.store.get_users([c.author_id for c in campgrounds])
    return {
        **page_context(ctx),
        "campgrounds": [
            serialize_campground(c, author=users.get(str(c.author_id))) for c in campgrounds
        ],
        "map": feature_collection(campgrounds),
    }


@router.get("/campgrounds/new", response_model=CampgroundFormPage, responses=_ERRORS)
async def new_form(
    ctx: RequestContext = Depends(get_request_context),
    store: ResourceStore = Depends(get_store),
) -> dict:
    await enforce([is_logged_in], ctx, store)
    return {**page_context(ctx), "campground": None}


@router.post("/campgrounds", status_code=303, responses=_ERRORS, summary="Create a campground")
async def create_campground(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: CampgroundService = Depends(get_campground_service),
) -> RedirectResponse:
    """
    Accepts `campground[...]` form fields (or a JSON body) plus up to
    MAX_IMAGES_PER_REQUEST files in the `image` field.
    The login check runs before the body is decoded.
    """
    await enforce([is_logged_in], ctx, service.store)
    payload, uploads = await read_payload(request)
    campground = await service.create(ctx, payload, uploads)
    return _redirect(f"/campgrounds/{campground.id}")


@router.get(
    "/campgrounds/{campground_id}",
    response_model=CampgroundPage,
    responses=_ERRORS,
    summary="Campground detail with reviews",
)
async def show(
    campground_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: CampgroundService = Depends(get_campground_service),
) -> dict:
    campground = await service.show(campground_id)
    return {**page_context(ctx), "campground": campground}


@router.get(
    "/campgrounds/{campground_id}/edit",
    response_model=CampgroundFormPage,
    responses=_ERRORS,
)
async def edit_form(
    campground_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: CampgroundService = Depends(get_campground_service),
) -> dict:
    campground = await service.get_for_edit(ctx, campground_id)
    author = await service.store.get_user(campground.author_id)
    return {**page_context(ctx), "campground": serialize_campground(campground, author=author)}


@router.put("/campgrounds/{campground_id}", status_code=303, responses=_ERRORS)
async def update_campground(
    campground_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: CampgroundService = Depends(get_campground_service),
) -> RedirectResponse:
    await enforce([is_logged_in, is_author(campground_id)], ctx, service.store)
    payload, uploads = await read_payload(request)
    campground = await service.update(ctx, campground_id, payload, uploads)
    return _redirect(f"/campgrounds/{campground.id}")


@router.delete("/campgrounds/{campground_id}", status_code=303, responses=_ERRORS)
async def delete_campground(
    campground_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: CampgroundService = Depends(get_campground_service),
) -> RedirectResponse:
    report = await service.delete(ctx, campground_id)
    if not report.complete:
        logger.warning(
            "Campground %s deleted with %d orphaned reviews left behind",
            campground_id,
            len(report.leftover_ids),
        )
    return _redirect("/campgrounds")
