"""
YelpCamp Backend - Review SQLAlchemy Model
============================================

What:  ORM model for the `reviews` table.
How:   A review does not store its parent. The parent is whichever campground
       lists this review's id in its `reviews` column; there is exactly one
       for the review's whole life.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )

    body: Mapped[str] = mapped_column(Text, nullable=False)

    # 1..5, enforced by the validation layer
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        comment="Owning user id; weak reference, no foreign key",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, rating={self.rating})>"
