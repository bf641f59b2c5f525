"""
YelpCamp Backend - Review Route Handlers
==========================================

What:  Handles POST /campgrounds/{id}/reviews and
       DELETE /campgrounds/{id}/reviews/{review_id}.
How:   Checks the login before decoding `review[body]`/`review[rating]`,
       delegates to ReviewService and redirects back to the campground page.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from app.auth.dependencies import get_request_context
from app.auth.guards import enforce, is_logged_in
from app.auth.models import RequestContext
from app.dependencies import get_review_service
from app.routes.forms import read_payload
from app.schemas.pages import ErrorResponse
from app.services.review_service import ReviewService

router = APIRouter(prefix="/campgrounds/{campground_id}/reviews", tags=["Reviews"])


@router.post(
    "",
    status_code=303,
    responses={400: {"description": "Invalid review", "model": ErrorResponse}},
    summary="Review a campground",
)
async def create_review(
    campground_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: ReviewService = Depends(get_review_service),
) -> RedirectResponse:
    await enforce([is_logged_in], ctx, service.store)
    payload, _ = await read_payload(request)
    await service.create(ctx, campground_id, payload)
    return RedirectResponse(url=f"/campgrounds/{campground_id}", status_code=303)


@router.delete("/{review_id}", status_code=303, summary="Delete a review")
async def delete_review(
    campground_id: str,
    review_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ReviewService = Depends(get_review_service),
) -> RedirectResponse:
    await service.delete(ctx, campground_id, review_id)
    return RedirectResponse(url=f"/campgrounds/{campground_id}", status_code=303)
