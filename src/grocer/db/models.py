"""SQLAlchemy models representing Grocer persistence tables."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for Grocer ORM models."""


class ShoppingItemORM(Base):
    """Per-owner shopping list entries.

    Quantities are either numeric (``quantity_value``) or free text
    (``quantity_text``); exactly one of the two columns is populated.
    """

    __tablename__ = "shopping_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    normalized_key: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    quantity_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="Other")
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Weak reference to the recipe that produced the row; no foreign key.
    source_recipe_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_shopping_items_owner", "owner_id"),
        Index("ix_shopping_items_owner_key", "owner_id", "normalized_key"),
        Index(
            "uq_shopping_items_owner_active_key",
            "owner_id",
            "normalized_key",
            unique=True,
            sqlite_where=text("completed = 0"),
            postgresql_where=text("completed = false"),
        ),
    )


__all__ = ["Base", "ShoppingItemORM"]
