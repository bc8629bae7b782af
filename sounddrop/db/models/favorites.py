"""SQLAlchemy ORM model for user favorites.

A favorite is a bookmark linking one user to one sample.  The unique
constraint on ``(user_id, sample_id)`` is the backstop for concurrent
favorite requests that both pass the service-level duplicate check.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import Base, Sample, User, new_id, utcnow


class Favorite(Base):
    """Association row that links a user to a sample they bookmarked."""

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "sample_id", name="uq_favorites_user_sample"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sample_id: Mapped[str] = mapped_column(
        ForeignKey("samples.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

    user: Mapped[User] = relationship("User")
    sample: Mapped[Sample] = relationship("Sample", back_populates="favorites")
