"""Passcode challenge repository."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, or_, select, update

from storefront.models.otp import OtpChallenge, OtpPurpose
from storefront.repositories.base import BaseRepository


class OtpChallengeRepository(BaseRepository[OtpChallenge]):
    """Persistence-only repository for :class:`OtpChallenge`."""

    model = OtpChallenge

    def latest(self, account_id: str, purpose: OtpPurpose) -> OtpChallenge | None:
        """Return the most recently created challenge for ``(account_id, purpose)``.

        Challenges sharing a ``created_at`` resolve by the later expiry, then
        unverified before verified, then the higher id.
        """
        stmt = (
            select(OtpChallenge)
            .where(OtpChallenge.account_id == account_id, OtpChallenge.purpose == purpose)
            .order_by(
                OtpChallenge.created_at.desc(),
                OtpChallenge.expires_at.desc(),
                OtpChallenge.verified_at.is_not(None),
                OtpChallenge.id.desc(),
            )
            .limit(1)
        )
        return cast(OtpChallenge | None, self.session.execute(stmt).scalars().first())

    def expire_active(self, account_id: str, purpose: OtpPurpose, now: datetime) -> int:
        """Force ``expires_at = now`` on every unverified, unexpired challenge.

        :returns: Number of challenges superseded.
        """
        stmt = (
            update(OtpChallenge)
            .where(
                OtpChallenge.account_id == account_id,
                OtpChallenge.purpose == purpose,
                OtpChallenge.verified_at.is_(None),
                OtpChallenge.expires_at > now,
            )
            .values(expires_at=now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def claim_attempt(self, challenge: OtpChallenge, max_attempts: int) -> bool:
        """Atomically consume one attempt while ``attempt_count < max_attempts``.

        A single conditional ``UPDATE`` so concurrent verifications can never
        push the counter past the limit. The instance is refreshed afterwards.

        :returns: ``False`` when no attempt was left.
        """
        stmt = (
            update(OtpChallenge)
            .where(OtpChallenge.id == challenge.id, OtpChallenge.attempt_count < max_attempts)
            .values(attempt_count=OtpChallenge.attempt_count + 1)
            .execution_options(synchronize_session=False)
        )
        claimed = (self.session.execute(stmt).rowcount or 0) == 1
        self.session.refresh(challenge)
        return claimed

    def mark_verified(self, challenge: OtpChallenge, at: datetime) -> None:
        challenge.verified_at = at
        self.flush()

    def purge_terminal(self, *, created_before: datetime, now: datetime) -> int:
        """Hard-delete verified or expired challenges created before ``created_before``."""
        stmt = delete(OtpChallenge).where(
            OtpChallenge.created_at < created_before,
            or_(OtpChallenge.verified_at.is_not(None), OtpChallenge.expires_at <= now),
        ).execution_options(synchronize_session=False)
        return int(self.session.execute(stmt).rowcount or 0)
