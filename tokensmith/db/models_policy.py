"""SQLAlchemy models for roles and the issuer policy config."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tokensmith.db.base import BaseEntity

POLICY_CONFIG_ID = 1


class RoleEntity(BaseEntity):
    """Named token template: issuer, static claims, sub/aud restrictions."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(128), primary_key=True)
    issuer: Mapped[str] = mapped_column(String(1024), nullable=False)
    claims: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    subject_pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    audience_pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_audiences: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class PolicyConfigEntity(BaseEntity):
    """Singleton row holding the issuer-wide claim policy."""

    __tablename__ = "policy_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    allowed_claims: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    audience_pattern: Mapped[str] = mapped_column(Text, nullable=False)
    max_audiences: Mapped[int] = mapped_column(Integer, nullable=False)
    token_ttl: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
