"""
YelpCamp Backend - Campground Service (Mutation Orchestrator)
===============================================================

What:  Create, update, delete and read campgrounds.
How:   Each mutation runs inside a MutationRun and composes, in the
       endpoint's order, the guards, the payload validator, the geocoder,
       image storage, the store and (for deletes) the cascade rule.
Who:   Called by app/routes/campgrounds.py with an explicit RequestContext.

Endpoint Orchestration:
    POST   /campgrounds       is_logged_in → validate → geocode → images → write
    PUT    /campgrounds/{id}  is_logged_in → is_author → validate
                              → geocode (location changed) → images → write
    DELETE /campgrounds/{id}  is_logged_in → is_author → cascade delete
                              → remove stored image files (best effort)

Nothing is written until the run has been both validated and authorized;
a rejected request never touches the store.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from app.auth.guards import enforce, is_author, is_logged_in
from app.auth.models import RequestContext
from app.exceptions import NotFoundError
from app.models.campground import Campground
from app.services import cascade
from app.services.cascade import CascadeReport
from app.services.file_service import FileService, ImageUpload
from app.services.geocoding_base import GeocodingService
from app.services.mutations import MutationRun
from app.services.presentation import serialize_campground, serialize_review
from app.services.store import ResourceStore
from app.services.validation import campground_fields, validate_payload

logger = logging.getLogger(__name__)


class CampgroundService:
    """
    Business logic for campground listings.

    Stateless apart from its collaborators; one instance per request.
    """

    def __init__(
        self,
        store: ResourceStore,
        geocoder: GeocodingService,
        files: FileService,
    ):
        self.store = store
        self.geocoder = geocoder
        self.files = files

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_campgrounds(self) -> List[Campground]:
        return await self.store.list_campgrounds()

    async def get(self, campground_id: str) -> Campground:
        campground = await self.store.get_campground(campground_id)
        if campground is None:
            raise NotFoundError(resource="campground", resource_id=campground_id)
        return campground

    async def show(self, campground_id: str) -> Dict[str, Any]:
        """
        Detail page payload with the author and each review's author populated.

        Review ids with no document behind them are skipped.
        """
        campground = await self.get(campground_id)
        reviews = await self.store.get_reviews(campground.reviews or [])
        users = await self.store.get_users(
            [campground.author_id, *(r.author_id for r in reviews)]
        )
        if len(reviews) != len(campground.reviews or []):
            logger.warning(
                "Campground %s lists %d review ids, %d resolved",
                campground.id,
                len(campground.reviews or []),
                len(reviews),
            )
        return serialize_campground(
            campground,
            author=users.get(str(campground.author_id)),
            reviews=[serialize_review(r, users.get(str(r.author_id))) for r in reviews],
        )

    async def get_for_edit(self, ctx: RequestContext, campground_id: str) -> Campground:
        """Edit form data; only the author may open it."""
        await enforce([is_logged_in, is_author(campground_id)], ctx, self.store)
        return await self.get(campground_id)

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(
        self,
        ctx: RequestContext,
        raw: Any,
        uploads: Sequence[ImageUpload] = (),
    ) -> Campground:
        with MutationRun("POST /campgrounds") as run:
            await enforce([is_logged_in], ctx, self.store)
            run.authorized()

            payload = validate_payload("campground", raw)
            self.files.validate_uploads(list(uploads))
            run.validated()

            fields = campground_fields(payload)
            geometry = await self.geocoder.forward(fields["location"])

            run.assert_writable()
            images = await self.files.save_images(list(uploads))
            campground = Campground(
                **fields,
                images=images,
                geometry=geometry,
                author_id=ctx.principal.id,
                reviews=[],
            )
            try:
                await self.store.add_campground(campground)
            except Exception:
                await self.files.remove_images(images)
                raise
            run.persisted()

            logger.info(
                "Campground %s created by %s with %d images",
                campground.id,
                ctx.principal.username,
                len(images),
            )
            ctx.flash.success("Successfully made a new campground!")
        return campground

    async def update(
        self,
        ctx: RequestContext,
        campground_id: str,
        raw: Any,
        uploads: Sequence[ImageUpload] = (),
    ) -> Campground:
        """
        Apply an edit. Fields omitted from the payload (description) keep
        their stored value. New uploads are appended, then every image whose
        filename is listed in deleteImages is removed from the campground and
        its stored file deleted.
        """
        with MutationRun("PUT /campgrounds/{id}") as run:
            await enforce([is_logged_in, is_author(campground_id)], ctx, self.store)
            run.authorized()

            payload = validate_payload("campground", raw)
            self.files.validate_uploads(list(uploads))
            run.validated()

            campground = await self.get(campground_id)
            fields = campground_fields(payload)
            geometry: Optional[Dict[str, Any]] = None
            if fields["location"] != campground.location:
                geometry = await self.geocoder.forward(fields["location"])

            run.assert_writable()
            new_images = await self.files.save_images(list(uploads))
            doomed = set(payload.delete_images)
            removed = [i for i in campground.images or [] if i.get("filename") in doomed]

            campground.title = fields["title"]
            campground.price = fields["price"]
            campground.location = fields["location"]
            if "description" in payload.campground.model_fields_set:
                campground.description = fields["description"]
            if geometry is not None:
                campground.geometry = geometry
            campground.images = [
                i for i in [*(campground.images or []), *new_images]
                if i.get("filename") not in doomed
            ]
            try:
                await self.store.save_campground(campground)
            except Exception:
                await self.files.remove_images(new_images)
                raise
            run.persisted()

            await self.files.remove_images(removed)
            logger.info(
                "Campground %s updated by %s (+%d/-%d images)",
                campground.id,
                ctx.principal.username,
                len(new_images),
                len(removed),
            )
            ctx.flash.success("Successfully updated the campground!")
        return campground

    async def delete(self, ctx: RequestContext, campground_id: str) -> CascadeReport:
        with MutationRun("DELETE /campgrounds/{id}") as run:
            run.validated()
            await enforce([is_logged_in, is_author(campground_id)], ctx, self.store)
            run.authorized()

            run.assert_writable()
            report = await cascade.delete_campground(self.store, campground_id)
            if not report.primary_deleted:
                raise NotFoundError(resource="campground", resource_id=campground_id)
            run.persisted()
            run.cascaded()

            await self.files.remove_images(report.snapshot.images or [])
            ctx.flash.success("Successfully deleted the campground!")
        return report
