"""
YelpCamp Backend - Review Service
===================================

What:  Create and delete reviews attached to a campground.
How:
    POST   /campgrounds/{id}/reviews        is_logged_in → validate
                                            → campground exists → write review
                                            → append id to campground.reviews
    DELETE /campgrounds/{id}/reviews/{rid}  is_logged_in → is_review_author
                                            → cascade.delete_review
"""

import logging
from typing import Any

from app.auth.guards import enforce, is_logged_in, is_review_author
from app.auth.models import RequestContext
from app.exceptions import NotFoundError
from app.models.review import Review
from app.services import cascade
from app.services.cascade import CascadeReport
from app.services.mutations import MutationRun
from app.services.store import ResourceStore
from app.services.validation import validate_payload

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, store: ResourceStore):
        self.store = store

    async def create(self, ctx: RequestContext, campground_id: str, raw: Any) -> Review:
        """
        Store the review, then append its id to the campground.

        If the append fails the review just written is deleted again, so no
        review is left without a parent.
        """
        with MutationRun("POST /campgrounds/{id}/reviews") as run:
            await enforce([is_logged_in], ctx, self.store)
            run.authorized()

            payload = validate_payload("review", raw)
            run.validated()

            if await self.store.get_campground(campground_id) is None:
                raise NotFoundError(resource="campground", resource_id=campground_id)

            run.assert_writable()
            review = Review(
                body=payload.review.body,
                rating=payload.review.rating,
                author_id=ctx.principal.id,
            )
            await self.store.add_review(review)
            review_id = review.id

            try:
                pushed = await self.store.push_review(campground_id, review_id)
            except Exception:
                await self.store.rollback()
                await self.store.delete_review(review_id)
                raise
            if not pushed:
                await self.store.delete_review(review_id)
                raise NotFoundError(resource="campground", resource_id=campground_id)
            run.persisted()

            logger.info(
                "Review %s (%d stars) added to campground %s by %s",
                review.id,
                review.rating,
                campground_id,
                ctx.principal.username,
            )
            ctx.flash.success("Successfully created the review!")
        return review

    async def delete(
        self,
        ctx: RequestContext,
        campground_id: str,
        review_id: str,
    ) -> CascadeReport:
        with MutationRun("DELETE /campgrounds/{id}/reviews/{review_id}") as run:
            run.validated()
            await enforce(
                [is_logged_in, is_review_author(campground_id, review_id)],
                ctx,
                self.store,
            )
            run.authorized()

            run.assert_writable()
            report = await cascade.delete_review(self.store, campground_id, review_id)
            run.persisted()
            run.cascaded()

            ctx.flash.success("Successfully deleted the review!")
        return report
