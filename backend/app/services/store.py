"""
YelpCamp Backend - Resource Store
===================================

What:  Document-style persistence for users, campgrounds and reviews.
How:   Thin async wrapper around an AsyncSession. Every write commits on its
       own, so each call is atomic for one document and nothing more.
Who:   Used by guards (lookups), the cascade helper and the services.

Id Handling:
    Ids arrive from URL paths as strings. parse_id() turns anything that is
    not a UUID into None, and every lookup treats None as "no such document".
    A malformed id is therefore a not-found condition, never a crash.

Error Handling:
    SQLAlchemy failures are logged, the session is rolled back and a
    DatabaseError is raised with the operation name in its context.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.campground import Campground
from app.models.review import Review
from app.models.user import User

logger = logging.getLogger(__name__)


def parse_id(value: object) -> Optional[uuid.UUID]:
    """Return the UUID for `value`, or None when it is not a valid id."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def _parse_ids(values: Iterable[object]) -> List[uuid.UUID]:
    return [uid for uid in (parse_id(v) for v in values) if uid is not None]


def canonical_id(value: object) -> str:
    """Lowercase hyphenated form of a valid id; anything else is returned as str()."""
    uid = parse_id(value)
    return str(uid) if uid is not None else str(value)


class ResourceStore:
    """
    Per-request view of the three collections.

    Reads return None (or skip entries) for missing documents; writes commit
    immediately. There is no transaction spanning two documents.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Internals ─────────────────────────────────────────────────────────

    async def _commit(self, operation: str, **context) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Store %s failed: %s | %s", operation, e, context)
            raise DatabaseError(
                context={"operation": operation, "error_type": type(e).__name__, **context},
            ) from e

    async def _scalar(self, operation: str, stmt):
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Store %s failed: %s", operation, e)
            raise DatabaseError(
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    async def _scalars(self, operation: str, stmt) -> list:
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Store %s failed: %s", operation, e)
            raise DatabaseError(
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    async def rollback(self) -> None:
        await self.session.rollback()

    # ── Users ─────────────────────────────────────────────────────────────

    async def get_user(self, user_id: object) -> Optional[User]:
        uid = parse_id(user_id)
        if uid is None:
            return None
        return await self._scalar("get_user", select(User).where(User.id == uid))

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._scalar(
            "get_user_by_username", select(User).where(User.username == username)
        )

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._scalar(
            "get_user_by_email", select(User).where(User.email == email)
        )

    async def get_users(self, user_ids: Iterable[object]) -> Dict[str, User]:
        """Map of str(id) -> User for every id that exists."""
        uids = _parse_ids(user_ids)
        if not uids:
            return {}
        users = await self._scalars("get_users", select(User).where(User.id.in_(uids)))
        return {str(u.id): u for u in users}

    async def add_user(self, user: User) -> User:
        self.session.add(user)
        await self._commit("add_user", username=user.username)
        return user

    # ── Campgrounds ───────────────────────────────────────────────────────

    async def get_campground(self, campground_id: object) -> Optional[Campground]:
        cid = parse_id(campground_id)
        if cid is None:
            return None
        return await self._scalar(
            "get_campground", select(Campground).where(Campground.id == cid)
        )

    async def list_campgrounds(self) -> List[Campground]:
        return await self._scalars(
            "list_campgrounds", select(Campground).order_by(Campground.created_at)
        )

    async def add_campground(self, campground: Campground) -> Campground:
        self.session.add(campground)
        await self._commit("add_campground", title=campground.title)
        logger.debug("Campground %s stored", campground.id)
        return campground

    async def save_campground(self, campground: Campground) -> Campground:
        """Persist field changes made on a loaded campground."""
        await self._commit("save_campground", campground_id=str(campground.id))
        return campground

    async def delete_campground(self, campground_id: object) -> Optional[Campground]:
        """
        Delete one campground document.

        Returns the deleted object (its `reviews` list still readable) or
        None when nothing matched.
        """
        campground = await self.get_campground(campground_id)
        if campground is None:
            return None
        await self.session.delete(campground)
        await self._commit("delete_campground", campground_id=str(campground.id))
        return campground

    async def delete_all_campgrounds(self) -> int:
        try:
            result = await self.session.execute(delete(Campground))
        except SQLAlchemyError as e:
            raise DatabaseError(context={"operation": "delete_all_campgrounds"}) from e
        await self._commit("delete_all_campgrounds")
        return result.rowcount or 0

    async def push_review(self, campground_id: object, review_id: object) -> bool:
        """Append `review_id` to the campground's review list."""
        campground = await self.get_campground(campground_id)
        if campground is None:
            return False
        rid = canonical_id(review_id)
        campground.reviews = [*(campground.reviews or []), rid]
        await self._commit("push_review", campground_id=str(campground.id), review_id=rid)
        return True

    async def pull_review(self, campground_id: object, review_id: object) -> bool:
        """
        Remove every occurrence of `review_id` from the campground's list.
        Ids are compared in canonical form, so "ABCD..." matches "abcd...".

        Returns False when the campground no longer exists.
        """
        campground = await self.get_campground(campground_id)
        if campground is None:
            return False
        rid = canonical_id(review_id)
        campground.reviews = [r for r in (campground.reviews or []) if r != rid]
        await self._commit("pull_review", campground_id=str(campground.id), review_id=rid)
        return True

    # ── Reviews ───────────────────────────────────────────────────────────

    async def get_review(self, review_id: object) -> Optional[Review]:
        rid = parse_id(review_id)
        if rid is None:
            return None
        return await self._scalar("get_review", select(Review).where(Review.id == rid))

    async def get_reviews(self, review_ids: Sequence[object]) -> List[Review]:
        """
        Load reviews in the order given, skipping ids with no document.

        Dangling ids left by an interrupted cascade are dropped silently here.
        """
        uids = _parse_ids(review_ids)
        if not uids:
            return []
        found = await self._scalars("get_reviews", select(Review).where(Review.id.in_(uids)))
        by_id = {r.id: r for r in found}
        return [by_id[uid] for uid in uids if uid in by_id]

    async def add_review(self, review: Review) -> Review:
        self.session.add(review)
        await self._commit("add_review")
        return review

    async def delete_review(self, review_id: object) -> bool:
        review = await self.get_review(review_id)
        if review is None:
            return False
        await self.session.delete(review)
        await self._commit("delete_review", review_id=str(review.id))
        return True

    async def delete_reviews(self, review_ids: Iterable[object]) -> int:
        """Delete every review in `review_ids`; returns how many existed."""
        uids = _parse_ids(review_ids)
        if not uids:
            return 0
        try:
            result = await self.session.execute(delete(Review).where(Review.id.in_(uids)))
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(
                context={"operation": "delete_reviews", "count": len(uids)},
            ) from e
        await self._commit("delete_reviews", count=len(uids))
        return result.rowcount or 0

    async def delete_all_reviews(self) -> int:
        try:
            result = await self.session.execute(delete(Review))
        except SQLAlchemyError as e:
            raise DatabaseError(context={"operation": "delete_all_reviews"}) from e
        await self._commit("delete_all_reviews")
        return result.rowcount or 0
