from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto

from storefront.services._shared.errors import (
    InvalidOtpError,
    OtpAlreadyUsedError,
    OtpError,
    OtpExpiredError,
    OtpMaxAttemptsError,
    OtpNotFoundError,
)


class OtpOutcome(Enum):
    """Result of one verification call."""

    VERIFIED = auto()
    NOT_FOUND = auto()
    ALREADY_USED = auto()
    EXPIRED = auto()
    MAX_ATTEMPTS = auto()
    INVALID = auto()

    @property
    def ok(self) -> bool:
        return self is OtpOutcome.VERIFIED

    def to_error(self) -> OtpError:
        """Domain error for a failed outcome.

        :raises ValueError: If called on ``VERIFIED``.
        """
        try:
            return _OUTCOME_ERRORS[self]()
        except KeyError as exc:
            raise ValueError("VERIFIED has no error counterpart.") from exc


_OUTCOME_ERRORS: dict[OtpOutcome, type[OtpError]] = {
    OtpOutcome.NOT_FOUND: OtpNotFoundError,
    OtpOutcome.ALREADY_USED: OtpAlreadyUsedError,
    OtpOutcome.EXPIRED: OtpExpiredError,
    OtpOutcome.MAX_ATTEMPTS: OtpMaxAttemptsError,
    OtpOutcome.INVALID: InvalidOtpError,
}


@dataclass(frozen=True, slots=True)
class OtpPolicy:
    """
    :param expiry_minutes: Validity window of a new challenge.
    :param max_attempts: Verification calls allowed per challenge.
    """

    expiry_minutes: int = 15
    max_attempts: int = 5


@dataclass(frozen=True, slots=True)
class IssuedOtp:
    """
    Plaintext code handed back exactly once, for delivery.

    :param code: Six-digit plaintext code. Never persisted.
    :param challenge_id: Identifier of the stored challenge.
    :param expires_at: Absolute expiry (UTC).
    :param expires_in_minutes: Window length, for the email body and responses.
    """

    code: str
    challenge_id: str
    expires_at: datetime
    expires_in_minutes: int
