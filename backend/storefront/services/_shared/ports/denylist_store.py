from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from storefront.services._shared.clock import now_utc


class TokenDenylistStore(Protocol):
    """
    Denylist for **access tokens** keyed by ``jti``.

    Entries live until the token's own expiry; after that the signature
    check rejects the token anyway. Methods are idempotent.
    """

    def is_revoked(self, jti: str) -> bool: ...
    def revoke_jti(self, *, jti: str, expires_at: datetime) -> None: ...


class InMemoryDenylistStore(TokenDenylistStore):
    """Process-local access-token denylist."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._revoked: dict[str, datetime] = {}
        self._lock = threading.Lock()
        self._clock = clock or now_utc

    def is_revoked(self, jti: str) -> bool:
        with self._lock:
            expires_at = self._revoked.get(jti)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._revoked[jti]
                return False
            return True

    def revoke_jti(self, *, jti: str, expires_at: datetime) -> None:
        with self._lock:
            self._revoked[jti] = expires_at
