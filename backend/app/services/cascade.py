"""
YelpCamp Backend - Cascade Consistency Rule
=============================================

What:  Keeps campgrounds and reviews referentially consistent on delete,
       without foreign keys or multi-document transactions.
How:   Two steps, each its own single-document commit:

    delete_campground(id):
        1. delete the campground, capturing its `reviews` id list
        2. delete every review named in that list

    delete_review(campground_id, review_id):
        1. delete the review
        2. pull review_id out of the parent's `reviews` list

    Step 1 always deletes the thing the user asked to delete; step 2 cleans
    up afterwards. If step 2 fails the primary delete stands: the failure is
    logged at ERROR with the ids left behind, the session is rolled back,
    and the call returns a CascadeReport with complete=False instead of
    raising. Nothing retries and nothing sweeps later.

Failure Residue:
    campground delete, step 2 fails → orphaned review documents (unreachable)
    review delete, step 2 fails     → dangling id in the parent's list
                                      (skipped when the page is rendered)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from app.services.store import ResourceStore, canonical_id

logger = logging.getLogger(__name__)


@dataclass
class CascadeReport:
    primary_deleted: bool
    dependents_removed: int = 0
    complete: bool = True
    leftover_ids: List[str] = field(default_factory=list)
    snapshot: Optional[object] = None


async def delete_campground(store: ResourceStore, campground_id: str) -> CascadeReport:
    """
    Delete a campground, then every review it lists.

    `snapshot` on the report is the deleted Campground (images included) so
    the caller can clean up files it owned.
    """
    campground = await store.delete_campground(campground_id)
    if campground is None:
        return CascadeReport(primary_deleted=False, complete=True)

    review_ids = list(campground.reviews or [])
    report = CascadeReport(primary_deleted=True, snapshot=campground)
    if not review_ids:
        logger.info("Deleted campground %s (no reviews)", campground.id)
        return report

    try:
        report.dependents_removed = await store.delete_reviews(review_ids)
    except Exception:
        await store.rollback()
        report.complete = False
        report.leftover_ids = review_ids
        logger.error(
            "Cascade incomplete: campground %s deleted but its reviews were not; "
            "orphaned review ids=%s",
            campground.id,
            review_ids,
            exc_info=True,
        )
        return report

    logger.info(
        "Deleted campground %s and %d/%d reviews",
        campground.id,
        report.dependents_removed,
        len(review_ids),
    )
    return report


async def delete_review(
    store: ResourceStore,
    campground_id: str,
    review_id: str,
) -> CascadeReport:
    """Delete a review, then remove its id from the parent campground."""
    deleted = await store.delete_review(review_id)
    report = CascadeReport(primary_deleted=deleted)

    try:
        pulled = await store.pull_review(campground_id, review_id)
    except Exception:
        await store.rollback()
        report.complete = False
        report.leftover_ids = [canonical_id(review_id)]
        logger.error(
            "Cascade incomplete: review %s deleted but still listed by campground %s",
            review_id,
            campground_id,
            exc_info=True,
        )
        return report

    report.dependents_removed = 1 if pulled else 0
    logger.info("Deleted review %s from campground %s", review_id, campground_id)
    return report
