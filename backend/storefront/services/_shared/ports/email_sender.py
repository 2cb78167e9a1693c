from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol

from storefront.models.otp import OtpPurpose
from storefront.services._shared.errors import EmailDeliveryError


class EmailSender(Protocol):
    """Outbound delivery of one-time passcodes.

    Implementations raise :class:`EmailDeliveryError` on failure and bound
    their own network time.
    """

    def send_otp(
        self, *, email: str, code: str, purpose: OtpPurpose, expires_in_minutes: int
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class SentOtp:
    email: str
    code: str
    purpose: OtpPurpose
    expires_in_minutes: int


class InMemoryEmailSender(EmailSender):
    """Outbox double used in development and tests.

    :param fail: When ``True`` every send raises :class:`EmailDeliveryError`.
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.outbox: list[SentOtp] = []
        self.fail = fail
        self._lock = threading.Lock()

    def send_otp(
        self, *, email: str, code: str, purpose: OtpPurpose, expires_in_minutes: int
    ) -> None:
        if self.fail:
            raise EmailDeliveryError("Outbox is configured to fail.")
        with self._lock:
            self.outbox.append(SentOtp(email, code, purpose, expires_in_minutes))

    def last_code_for(self, email: str, purpose: OtpPurpose | None = None) -> str | None:
        for message in reversed(self.outbox):
            if message.email == email and (purpose is None or message.purpose == purpose):
                return message.code
        return None
