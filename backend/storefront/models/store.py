"""Store owned 1:1 by an administrator account."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from storefront.core.extensions import db

from .base import ReprMixin, SoftDeleteMixin, TimestampMixin, UUIDPKMixin

if TYPE_CHECKING:
    from .account import Account


class Store(UUIDPKMixin, ReprMixin, TimestampMixin, SoftDeleteMixin, db.Model):
    """
    Storefront created for an ``ADMIN`` account at signup.

    The owner link is not cascaded: soft-deleting the owner leaves the store
    row untouched, and readers decide via explicit ``deleted_at`` predicates.
    """

    __tablename__ = "stores"

    owner_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    updated_by: Mapped[str | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )

    owner: Mapped[Account] = relationship(
        "Account", back_populates="store", foreign_keys=[owner_id]
    )

    __table_args__ = (
        UniqueConstraint("name", name="uq_stores_name"),
        UniqueConstraint("owner_id", name="uq_stores_owner_id"),
    )

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Store name is required.")
        return value.strip()
