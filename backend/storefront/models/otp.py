"""One-time passcode challenge model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from storefront.core.extensions import db

from .base import ReprMixin, UUIDPKMixin, utcnow


class OtpPurpose(str, Enum):
    """What a passcode proves."""

    EMAIL_VERIFICATION = "EMAIL_VERIFICATION"
    PASSWORD_RESET = "PASSWORD_RESET"


class OtpChallenge(UUIDPKMixin, ReprMixin, db.Model):
    """
    One issued passcode. Only the Argon2id hash of the code is stored.

    A challenge is terminal once ``verified_at`` is set, ``expires_at`` has
    passed, or ``attempt_count`` reached the configured maximum. Issuing a new
    challenge for the same ``(account_id, purpose)`` forces the expiry of the
    previous active ones.

    ``created_at`` is assigned in Python with microsecond precision so the
    newest challenge per ``(account_id, purpose)`` is well defined.
    """

    __tablename__ = "otp_challenges"

    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    code_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    purpose: Mapped[OtpPurpose] = mapped_column(
        SAEnum(OtpPurpose, name="enum_otp_purpose", native_enum=True, create_constraint=True),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        CheckConstraint("attempt_count >= 0", name="attempt_count_non_negative"),
        Index("ix_otp_challenges_lookup", "account_id", "purpose", "created_at"),
    )
