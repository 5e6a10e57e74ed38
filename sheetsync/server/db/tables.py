"""SQLAlchemy ORM models for PostgreSQL.

Three tables: users, their opaque session tokens, and one content record
per user.  The content record is the remote mirror of the editor's
document (text + layout preferences) and nothing more.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from sheetsync.models.document import (
    DEFAULT_COLUMNS,
    DEFAULT_FONT_SIZE,
    MAX_COLUMNS,
    MAX_FONT_SIZE,
    MIN_COLUMNS,
    MIN_FONT_SIZE,
)

TZDateTime = DateTime(timezone=True)


class Base(DeclarativeBase):
    """Declarative base with naming convention for constraints."""

    pass


# Apply naming convention to the metadata for deterministic constraint names.
Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(primary_key=True)
    github_id: Mapped[str | None] = mapped_column(unique=True)
    username: Mapped[str]
    display_name: Mapped[str | None]
    avatar_url: Mapped[str | None]
    email: Mapped[str | None]
    created_at: Mapped[datetime] = mapped_column(TZDateTime, server_default=func.now())
    last_login: Mapped[datetime] = mapped_column(TZDateTime, server_default=func.now())


class AuthSession(Base):
    __tablename__ = "auth_sessions"
    __table_args__ = (Index("ix_auth_sessions_user_id", "user_id"),)

    token: Mapped[str] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.user_id", ondelete="CASCADE"))
    created_at: Mapped[datetime] = mapped_column(TZDateTime, server_default=func.now())


class Content(Base):
    __tablename__ = "contents"
    __table_args__ = (
        CheckConstraint(f"column_count BETWEEN {MIN_COLUMNS} AND {MAX_COLUMNS}", name="column_count_range"),
        CheckConstraint(f"font_size BETWEEN {MIN_FONT_SIZE} AND {MAX_FONT_SIZE}", name="font_size_range"),
    )

    # One record per user: the user id is the key.
    user_id: Mapped[str] = mapped_column(ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    column_count: Mapped[int] = mapped_column(default=DEFAULT_COLUMNS, server_default=str(DEFAULT_COLUMNS))
    font_size: Mapped[int] = mapped_column(default=DEFAULT_FONT_SIZE, server_default=str(DEFAULT_FONT_SIZE))
    updated_at: Mapped[datetime] = mapped_column(TZDateTime, server_default=func.now(), onupdate=func.now())
