from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    validates,
)


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def library_name_key(name: str) -> str:
    """Normalise a library name for per-owner uniqueness comparisons."""
    return name.strip().lower()


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        doc="Matches the principal identifier forwarded by the identity gateway.",
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    libraries: Mapped[list[Library]] = relationship(
        "Library", back_populates="user", passive_deletes=True
    )


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    slug: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default="FolderOpen")
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    display_order: Mapped[int] = mapped_column(
        "order", Integer, nullable=False, default=0, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    libraries: Mapped[list[Library]] = relationship("Library", back_populates="category")


class Library(Base):
    __tablename__ = "libraries"
    __table_args__ = (
        UniqueConstraint("user_id", "name_key", name="uq_libraries_user_name_key"),
        Index("ix_libraries_public_created", "is_public", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    name_key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc=(
            "Trimmed, lower-cased copy of ``name`` backing the per-owner unique"
            " constraint so concurrent creates cannot slip past the pre-check."
        ),
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    icon_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="1"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship("User", back_populates="libraries")
    category: Mapped[Category] = relationship("Category", back_populates="libraries")
    samples: Mapped[list[Sample]] = relationship(
        "Sample",
        back_populates="library",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Sample.created_at.desc()",
    )

    @validates("name")
    def _sync_name_key(self, key: str, value: str) -> str:
        self.name_key = library_name_key(value)
        return value


class Sample(Base):
    __tablename__ = "samples"
    __table_args__ = (
        CheckConstraint("play_count >= 0", name="ck_samples_play_count_non_negative"),
        Index("ix_samples_library_created", "library_id", "created_at"),
        Index("ix_samples_play_count", "play_count"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mime_type: Mapped[str] = mapped_column(String(64), nullable=False)
    library_id: Mapped[str] = mapped_column(
        ForeignKey("libraries.id", ondelete="CASCADE"), nullable=False
    )
    play_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    library: Mapped[Library] = relationship("Library", back_populates="samples")
    favorites: Mapped[list[Favorite]] = relationship(
        "Favorite",
        back_populates="sample",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# Imported late to avoid circular dependency with favorites module.
from .favorites import Favorite  # noqa: E402

__all__ = [
    "Base",
    "Category",
    "Favorite",
    "Library",
    "Sample",
    "User",
    "library_name_key",
    "new_id",
    "utcnow",
]
