"""SQLAlchemy ORM models for recipebox.

Tables:
- users: People who signed in through an external provider
- sessions: Server-side login sessions referenced by an opaque cookie token
- accounts: Provider accounts (GitHub) linked to a user, with OAuth tokens
- verifications: Short-lived verification challenges (email/token flows)
- recipes: Owner-scoped recipes
- grocery_items: Shared grocery list
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Text,
    Integer,
    Boolean,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .core.clock import utcnow
from .db import Base


# Largest value an INTEGER primary key can hold (Postgres int4).
MAX_INT_ID = 2**31 - 1


def generate_uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


class User(TimestampMixin, Base):
    """A person known to the app. Created on first successful external login."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sessions: Mapped[list["AuthSession"]] = relationship(
        "AuthSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    accounts: Mapped[list["LinkedAccount"]] = relationship(
        "LinkedAccount", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    recipes: Mapped[list["Recipe"]] = relationship(
        "Recipe", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class AuthSession(TimestampMixin, Base):
    """Login session. The token travels in a cookie (or bearer header)."""
    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_user_id", "user_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="sessions")


class LinkedAccount(TimestampMixin, Base):
    """External provider account linked to a user."""
    __tablename__ = "accounts"
    __table_args__ = (
        Index("ix_accounts_user_id", "user_id"),
        UniqueConstraint("provider_id", "account_id", name="uq_accounts_provider_account"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    provider_id: Mapped[str] = mapped_column(String(50), nullable=False)  # "github"
    account_id: Mapped[str] = mapped_column(String(255), nullable=False)

    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    access_token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    scope: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="accounts")


class VerificationChallenge(TimestampMixin, Base):
    """Single-use verification value for a subject (e.g. an email address)."""
    __tablename__ = "verifications"
    __table_args__ = (
        Index("ix_verifications_identifier", "identifier"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    identifier: Mapped[str] = mapped_column(String(320), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Recipe(TimestampMixin, Base):
    """Recipe owned by exactly one user."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    ingredients: Mapped[str] = mapped_column(Text, nullable=False)
    instructions: Mapped[str] = mapped_column(Text, nullable=False)
    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="recipes")


class GroceryItem(Base):
    """Grocery list entry. Shared, not owner-scoped."""
    __tablename__ = "grocery_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
