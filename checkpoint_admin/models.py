from __future__ import annotations

"""
EMBED_SUMMARY: Core data models for checkpoint locations, scan events, country/locale reference data, users and reset tokens.
EMBED_TAGS: models, checkpoints, locations, scans, countries, reset tokens, schema
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from .database import Base


class Country(Base):
    __tablename__ = "countries"
    """
    EMBED_SUMMARY: Country reference data; display names for report and flyer country codes.
    EMBED_TAGS: countries, reference, locales
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(16), unique=True, index=True, nullable=False)

    locales: Mapped[list["Locale"]] = relationship(
        "Locale",
        back_populates="country",
        order_by="Locale.name",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class Locale(Base):
    __tablename__ = "locales"
    """
    EMBED_SUMMARY: Sub-national locale (region, city) inside a country.
    EMBED_TAGS: locales, reference
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    country_id: Mapped[int] = mapped_column(Integer, ForeignKey("countries.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(32), nullable=False)

    country: Mapped[Country] = relationship(Country, back_populates="locales")

    __table_args__ = (
        UniqueConstraint("country_id", "code", name="uq_locale_country_code"),
    )


class Location(Base):
    __tablename__ = "locations"
    """
    EMBED_SUMMARY: One physical checkpoint location, keyed by its checkpoint key; never updated.
    EMBED_TAGS: locations, checkpoints, registry
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    checkpoint_key: Mapped[str] = mapped_column(String(96), unique=True, index=True, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    locale: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Checkpoint(Base):
    __tablename__ = "checkpoints"
    """
    EMBED_SUMMARY: Append-only scan log uploaded by devices; references a location by key string only.
    EMBED_TAGS: scans, checkpoints, append-only
    """

    # Autoincrement id preserves arrival order. No FK: scans outlive their location.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    checkpoint_key: Mapped[str] = mapped_column(String(96), index=True, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_checkpoints_timestamp", "timestamp"),
    )


class User(Base):
    __tablename__ = "users"
    """
    EMBED_SUMMARY: Admin principal with capability flags gating checkpoint, report and country endpoints.
    EMBED_TAGS: users, capabilities, auth
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    api_token_hash: Mapped[Optional[str]] = mapped_column(String(64), unique=True, index=True, nullable=True)
    can_upload_checkpoints: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_create_checkpoints: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_manage_users: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_access_reports: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_manage_countries: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class ResetToken(Base):
    __tablename__ = "reset_tokens"
    """
    EMBED_SUMMARY: Single-use password reset tokens; expiry is computed from issued_at on read.
    EMBED_TAGS: reset, tokens, passwords
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
