"""
YelpCamp Backend - Campground SQLAlchemy Model
================================================

What:  ORM model for the `campgrounds` table.
Why:   A campground is a self-contained document: it embeds its images and
       geometry, and lists its reviews by id in display order.
How:   JSON columns hold the embedded arrays. There are no foreign keys;
       `author_id` and `reviews` are weak references maintained by the
       application (see app/services/cascade.py).
Who:   Written by CampgroundService and the cascade helper; read everywhere.

Field Invariants:
    author_id:  Set once at creation, never reassigned.
    reviews:    Ordered list of review ids (strings). Insertion order is
                display order. Every id should name an existing review;
                a failed cascade can leave a dangling id behind, which
                readers skip.
    images:     [{"url": ..., "filename": ...}], owned by this campground.
    geometry:   {"type": "Point", "coordinates": [lon, lat]}

Mutating JSON columns:
    Plain JSON columns do not track in-place changes. Always assign a new
    list (`campground.reviews = [*campground.reviews, rid]`), never append.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Float, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Campground(Base):
    """
    A campground listing owned by exactly one user.

    Lifecycle:
        1. Created by a signed-in user (author fixed at this point)
        2. Fields, images and the review list change while it lives
        3. Deleted by its author only; its reviews are deleted right after
    """

    __tablename__ = "campgrounds"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Free-text location as typed by the author; geometry is derived from it
    location: Mapped[str] = mapped_column(String(255), nullable=False)

    price: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Nightly price, never negative",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    images: Mapped[List[Dict[str, str]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Embedded image references: url + storage filename",
    )

    geometry: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="GeoJSON Point, coordinates are [longitude, latitude]",
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        comment="Owning user id; weak reference, no foreign key",
    )

    reviews: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Review ids in display order; weak references, no foreign key",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("idx_campgrounds_author_id", "author_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Campground(id={self.id}, title='{self.title}', "
            f"reviews={len(self.reviews or [])})>"
        )
