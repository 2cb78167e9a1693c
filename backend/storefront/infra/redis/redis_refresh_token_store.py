from __future__ import annotations

from dataclasses import dataclass

import redis  # type: ignore[import-untyped]

from storefront.services._shared.ports import RefreshTokenStore


def _s(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh validity store.

    Keys
    ----
    ``rt:{jti}``
        String holding the owning account id, ``EX`` = refresh lifetime.
    ``rt:u:{account_id}``
        Set of the account's refresh jtis. Members whose record expired are
        pruned on read.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    @staticmethod
    def _k(jti: str) -> str:
        return f"rt:{jti}"

    @staticmethod
    def _ku(account_id: str) -> str:
        return f"rt:u:{account_id}"

    def register(self, *, jti: str, account_id: str, ttl_seconds: int) -> None:
        ttl = max(1, int(ttl_seconds))
        pipe = self.r.pipeline(transaction=True)
        pipe.set(self._k(jti), account_id, ex=ttl)
        pipe.sadd(self._ku(account_id), jti)
        # The index outlives no session by more than one refresh lifetime.
        pipe.expire(self._ku(account_id), ttl)
        pipe.execute()

    def owner_of(self, jti: str) -> str | None:
        value = self.r.get(self._k(jti))
        return _s(value) if value is not None else None

    def revoke(self, jti: str) -> bool:
        """Delete ``rt:{jti}``; only the caller whose ``DEL`` removed it gets ``True``."""
        key = self._k(jti)
        owner = self.r.get(key)
        deleted = int(self.r.delete(key)) == 1
        if deleted and owner is not None:
            self.r.srem(self._ku(_s(owner)), jti)
        return deleted

    def revoke_all_for_account(self, account_id: str) -> int:
        key_u = self._ku(account_id)
        jtis = [_s(m) for m in self.r.smembers(key_u)]
        if not jtis:
            return 0
        pipe = self.r.pipeline(transaction=True)
        pipe.delete(*[self._k(j) for j in jtis])
        pipe.delete(key_u)
        removed, _ = pipe.execute()
        return int(removed)

    def active_jtis(self, account_id: str) -> list[str]:
        key_u = self._ku(account_id)
        members = sorted(_s(m) for m in self.r.smembers(key_u))
        live = [j for j in members if self.r.exists(self._k(j))]
        stale = [j for j in members if j not in live]
        if stale:
            self.r.srem(key_u, *stale)
        return live
