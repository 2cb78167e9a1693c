"""Transactional email over an HTTP JSON API."""

from __future__ import annotations

import logging

import requests

from storefront.models.otp import OtpPurpose
from storefront.services._shared.errors import EmailDeliveryError
from storefront.services._shared.ports import EmailSender

log = logging.getLogger(__name__)

SUBJECTS = {
    OtpPurpose.EMAIL_VERIFICATION: "Your OTP Code",
    OtpPurpose.PASSWORD_RESET: "Your password reset code",
}


class HttpEmailSender(EmailSender):
    """
    POST passcode emails to a provider endpoint.

    :param api_url: Provider endpoint receiving ``{from, to, subject, text}``.
    :param api_key: Bearer token for the provider, if required.
    :param sender: ``From`` address.
    :param timeout: Seconds before giving up on connect or read.
    :param session: Optional :class:`requests.Session` for connection reuse.
    """

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str | None,
        sender: str,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self.http = session or requests.Session()

    def _body(self, code: str, purpose: OtpPurpose, expires_in_minutes: int) -> str:
        if purpose is OtpPurpose.PASSWORD_RESET:
            intro = "Use this code to reset your password"
        else:
            intro = "Use this code to verify your email address"
        return f"{intro}: {code}\nThe code expires in {expires_in_minutes} minutes."

    def send_otp(
        self, *, email: str, code: str, purpose: OtpPurpose, expires_in_minutes: int
    ) -> None:
        """
        :raises EmailDeliveryError: On network failure, timeout or non-2xx.
        """
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {
            "from": self.sender,
            "to": email,
            "subject": SUBJECTS[purpose],
            "text": self._body(code, purpose, expires_in_minutes),
        }
        try:
            resp = self.http.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            log.warning("Email provider rejected passcode delivery", extra={"reason": str(exc)})
            raise EmailDeliveryError() from exc
