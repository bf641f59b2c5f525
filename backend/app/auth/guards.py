"""
YelpCamp Backend - Authorization Guards
=========================================

What:  Predicates run before a mutation handler to decide whether the
       current principal may act on the target resource.
How:   Each guard is an async callable (ctx, store) -> GuardResult whose
       decision is ALLOW, DENY or NOT_FOUND. enforce() runs an ordered list
       of guards and raises on the first non-ALLOW result; ALLOW has no
       side effect. Guards only read from the store.
Who:   Called by CampgroundService / ReviewService and the edit-form route.

Decision → Exception:
    DENY, no principal       → AuthenticationRequired  (303 /login)
    DENY, principal present  → AuthorizationDenied     (303 resource page)
    NOT_FOUND                → NotFoundError           (303 /campgrounds)

Check order inside a guard: authentication, then existence, then ownership.
A missing or malformed id is NOT_FOUND even for a non-owner.

Example:
    await enforce([is_logged_in, is_author(campground_id)], ctx, store)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from app.auth.models import RequestContext
from app.exceptions import AuthenticationRequired, AuthorizationDenied, NotFoundError
from app.services.store import ResourceStore

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "You must be signed in first!"
NOT_AUTHORIZED = "You are not authorized to do that!"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class GuardResult:
    decision: Decision
    reason: str = ""
    redirect_to: Optional[str] = None
    resource: Optional[str] = None
    resource_id: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW


ALLOW = GuardResult(Decision.ALLOW)

Guard = Callable[[RequestContext, ResourceStore], Awaitable[GuardResult]]


def _deny_anonymous() -> GuardResult:
    return GuardResult(Decision.DENY, reason=NOT_SIGNED_IN, redirect_to="/login")


def _not_found(resource: str, resource_id: str) -> GuardResult:
    return GuardResult(
        Decision.NOT_FOUND,
        reason=f"Cannot find that {resource}!",
        redirect_to="/campgrounds",
        resource=resource,
        resource_id=resource_id,
    )


# ── Guards ────────────────────────────────────────────────────────────────

async def is_logged_in(ctx: RequestContext, store: ResourceStore) -> GuardResult:
    if ctx.principal is None:
        return _deny_anonymous()
    return ALLOW


def is_author(campground_id: str) -> Guard:
    """Guard allowing only the author of campground `campground_id`."""

    async def guard(ctx: RequestContext, store: ResourceStore) -> GuardResult:
        if ctx.principal is None:
            return _deny_anonymous()
        campground = await store.get_campground(campground_id)
        if campground is None:
            return _not_found("campground", campground_id)
        if campground.author_id != ctx.principal.id:
            return GuardResult(
                Decision.DENY,
                reason=NOT_AUTHORIZED,
                redirect_to=f"/campgrounds/{campground_id}",
            )
        return ALLOW

    guard.__name__ = "is_author"
    return guard


def is_review_author(campground_id: str, review_id: str) -> Guard:
    """
    Guard allowing only the author of review `review_id` under `campground_id`.

    The review must exist AND be listed by that campground; a review id used
    under the wrong campground is NOT_FOUND, so the pull step of the cascade
    can never target a campground the review does not belong to.
    """

    async def guard(ctx: RequestContext, store: ResourceStore) -> GuardResult:
        if ctx.principal is None:
            return _deny_anonymous()
        review = await store.get_review(review_id)
        if review is None:
            return _not_found("review", review_id)
        campground = await store.get_campground(campground_id)
        if campground is None or str(review.id) not in (campground.reviews or []):
            return _not_found("review", review_id)
        if review.author_id != ctx.principal.id:
            return GuardResult(
                Decision.DENY,
                reason=NOT_AUTHORIZED,
                redirect_to=f"/campgrounds/{campground_id}",
            )
        return ALLOW

    guard.__name__ = "is_review_author"
    return guard


# ── Composition ───────────────────────────────────────────────────────────

async def enforce(
    guards: Sequence[Guard],
    ctx: RequestContext,
    store: ResourceStore,
) -> None:
    """
    Evaluate `guards` in order, short-circuiting on the first refusal.

    Raises:
        AuthenticationRequired: a guard denied and no principal is bound
        AuthorizationDenied:    a guard denied an authenticated principal
        NotFoundError:          a guard could not find its target
    """
    for guard in guards:
        result = await guard(ctx, store)
        if result.allowed:
            continue

        name = getattr(guard, "__name__", repr(guard))
        actor = ctx.principal.username if ctx.principal else "anonymous"

        if result.decision is Decision.NOT_FOUND:
            logger.info("Guard %s: %s %s not found (actor=%s)",
                        name, result.resource, result.resource_id, actor)
            raise NotFoundError(
                resource=result.resource or "campground",
                resource_id=result.resource_id,
                redirect_to=result.redirect_to or "/campgrounds",
            )

        if ctx.principal is None:
            logger.info("Guard %s: denied anonymous request", name)
            raise AuthenticationRequired(message=result.reason or NOT_SIGNED_IN)

        logger.warning("Guard %s: denied %s -> %s", name, actor, result.redirect_to)
        raise AuthorizationDenied(
            redirect_to=result.redirect_to or "/campgrounds",
            message=result.reason or NOT_AUTHORIZED,
            context={"principal_id": str(ctx.principal.id)},
        )
