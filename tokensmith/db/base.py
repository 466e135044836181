"""Declarative base for tokensmith SQLAlchemy models."""

from sqlalchemy.orm import DeclarativeBase


class BaseEntity(DeclarativeBase):
    """Base class for all tokensmith database entities."""
