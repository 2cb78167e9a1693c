from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from storefront.core.security import CredentialHasher, default_hasher
from storefront.models.otp import OtpChallenge, OtpPurpose
from storefront.services._shared.clock import ensure_aware, now_utc
from storefront.services.otp.dto import IssuedOtp, OtpOutcome, OtpPolicy
from storefront.uow.base import UnitOfWork

log = logging.getLogger(__name__)

CODE_MIN = 100_000
CODE_SPAN = 900_000  # codes are drawn from [100000, 999999]


class OtpService:
    """
    One-time passcode engine.

    Works inside the caller's Unit of Work so challenge rows commit or roll
    back together with the surrounding use-case. :meth:`verify` returns an
    :class:`OtpOutcome` instead of raising: callers commit the attempt
    counter first and raise :meth:`OtpOutcome.to_error` afterwards, so failed
    attempts are never lost to a rollback.
    """

    def __init__(
        self,
        *,
        policy: OtpPolicy | None = None,
        hasher: CredentialHasher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.policy = policy or OtpPolicy()
        self.hasher = hasher or default_hasher
        self._clock = clock or now_utc

    # ------------------------------------------------------------------ #
    # Codes
    # ------------------------------------------------------------------ #

    @staticmethod
    def generate() -> str:
        """Uniform six-digit code from a CSPRNG."""
        return str(CODE_MIN + secrets.randbelow(CODE_SPAN))

    def hash_code(self, code: str) -> str:
        return self.hasher.hash(code)

    def verify_code(self, code: str, stored: str) -> bool:
        """Compare ``code`` to its stored hash. Never raises."""
        return self.hasher.verify(stored, code)

    # ------------------------------------------------------------------ #
    # Challenges
    # ------------------------------------------------------------------ #

    def issue(self, uow: UnitOfWork, account_id: str, purpose: OtpPurpose) -> IssuedOtp:
        """
        Supersede active challenges and store a fresh one.

        :param uow: Open read-write Unit of Work.
        :param account_id: Owner of the challenge.
        :param purpose: What the code will prove.
        :returns: Plaintext code plus challenge metadata.
        """
        now = self._clock()
        superseded = uow.otp_challenges.expire_active(account_id, purpose, now)
        code = self.generate()
        expires_at = now + timedelta(minutes=self.policy.expiry_minutes)
        challenge = uow.otp_challenges.add(
            OtpChallenge(
                account_id=account_id,
                purpose=purpose,
                code_hash=self.hash_code(code),
                expires_at=expires_at,
                attempt_count=0,
                created_at=now,
            )
        )
        log.info(
            "Issued passcode (superseded=%d)",
            superseded,
            extra={"account_id": account_id, "purpose": purpose.value},
        )
        return IssuedOtp(
            code=code,
            challenge_id=challenge.id,
            expires_at=expires_at,
            expires_in_minutes=self.policy.expiry_minutes,
        )

    def verify(
        self, uow: UnitOfWork, account_id: str, purpose: OtpPurpose, code: str
    ) -> OtpOutcome:
        """
        Check ``code`` against the newest challenge of ``(account_id, purpose)``.

        Order of checks: missing, already verified, expired, attempts
        exhausted. Past those, one attempt is consumed atomically and only
        then is the code compared, so every comparison (success or failure)
        counts against the limit.

        :returns: The outcome; the caller commits and maps failures to errors.
        """
        repo = uow.otp_challenges
        now = self._clock()
        challenge = repo.latest(account_id, purpose)

        if challenge is None:
            outcome = OtpOutcome.NOT_FOUND
        elif challenge.verified_at is not None:
            outcome = OtpOutcome.ALREADY_USED
        elif now > ensure_aware(challenge.expires_at):
            outcome = OtpOutcome.EXPIRED
        elif challenge.attempt_count >= self.policy.max_attempts:
            outcome = OtpOutcome.MAX_ATTEMPTS
        elif not repo.claim_attempt(challenge, self.policy.max_attempts):
            # Lost the race for the last attempt.
            outcome = OtpOutcome.MAX_ATTEMPTS
        elif not self.verify_code(code, challenge.code_hash):
            outcome = OtpOutcome.INVALID
        else:
            repo.mark_verified(challenge, now)
            outcome = OtpOutcome.VERIFIED

        level = logging.INFO if outcome.ok else logging.WARNING
        log.log(
            level,
            "Passcode verification finished",
            extra={"account_id": account_id, "purpose": purpose.value, "outcome": outcome.name},
        )
        return outcome
