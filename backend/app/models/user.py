"""
YelpCamp Backend - User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table (registered identities).
How:   Username and email are unique; the credential is stored only as a
       PBKDF2 hash produced by app.auth.passwords.
Who:   Written by UserService.register(); read by the session dependency,
       the detail page (author names) and the login flow.

Users are never deleted. Campgrounds and reviews refer to them by id only.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        comment="Login-independent contact address, unique across users",
    )

    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        comment="Public handle shown next to campgrounds and reviews",
    )

    # Format: pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
