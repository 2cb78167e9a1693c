from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol

from storefront.services._shared.clock import now_utc


class RefreshTokenStore(Protocol):
    """
    Authoritative validity record for refresh tokens.

    One record per refresh ``jti`` whose value is the owning account id and
    whose TTL equals the refresh lifetime. Deleting the record revokes the
    token immediately, whatever its cryptographic expiry says. A secondary
    per-account index supports revoking every session of an account.
    """

    def register(self, *, jti: str, account_id: str, ttl_seconds: int) -> None:
        """
        Record ``jti`` as a live session of ``account_id``.

        This MUST run before the token is handed to the client.
        """

    def owner_of(self, jti: str) -> str | None:
        """Return the owning account id, or ``None`` when absent or expired."""

    def revoke(self, jti: str) -> bool:
        """Delete the record. :returns: ``True`` if it existed."""

    def revoke_all_for_account(self, account_id: str) -> int:
        """
        Delete every live record of ``account_id``.

        :returns: Number of sessions removed.
        """

    def active_jtis(self, account_id: str) -> list[str]:
        """List live refresh jtis of an account (sorted)."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    Process-local refresh store for tests and single-process development.

    .. note::
       A lock makes each operation atomic; expiry is evaluated lazily.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._by_jti: dict[str, tuple[str, datetime]] = {}
        self._by_account: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self._clock = clock or now_utc

    def _live(self, jti: str) -> str | None:
        entry = self._by_jti.get(jti)
        if entry is None:
            return None
        account_id, expires_at = entry
        if expires_at <= self._clock():
            self._drop(jti)
            return None
        return account_id

    def _drop(self, jti: str) -> bool:
        entry = self._by_jti.pop(jti, None)
        if entry is None:
            return False
        self._by_account.get(entry[0], set()).discard(jti)
        return True

    def register(self, *, jti: str, account_id: str, ttl_seconds: int) -> None:
        with self._lock:
            expires_at = self._clock() + timedelta(seconds=max(1, int(ttl_seconds)))
            self._by_jti[jti] = (account_id, expires_at)
            self._by_account.setdefault(account_id, set()).add(jti)

    def owner_of(self, jti: str) -> str | None:
        with self._lock:
            return self._live(jti)

    def revoke(self, jti: str) -> bool:
        with self._lock:
            if self._live(jti) is None:
                return False
            return self._drop(jti)

    def revoke_all_for_account(self, account_id: str) -> int:
        with self._lock:
            jtis = [j for j in list(self._by_account.get(account_id, set())) if self._live(j)]
            for j in jtis:
                self._drop(j)
            return len(jtis)

    def active_jtis(self, account_id: str) -> list[str]:
        with self._lock:
            return sorted(j for j in list(self._by_account.get(account_id, set())) if self._live(j))
