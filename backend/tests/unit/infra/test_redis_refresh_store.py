"""RedisRefreshTokenStore against an in-process fake Redis."""

from __future__ import annotations

import fakeredis
import pytest
from storefront.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore


@pytest.fixture()
def r():
    return fakeredis.FakeRedis()


@pytest.fixture()
def store(r):
    return RedisRefreshTokenStore(r)


class TestRedisRefreshTokenStore:
    def test_register_sets_record_with_ttl(self, store, r):
        store.register(jti="j1", account_id="acc-1", ttl_seconds=604800)

        assert store.owner_of("j1") == "acc-1"
        assert 0 < r.ttl("rt:j1") <= 604800
        assert r.smembers("rt:u:acc-1") == {b"j1"}

    def test_owner_of_missing(self, store):
        assert store.owner_of("nope") is None

    def test_revoke_returns_true_only_once(self, store, r):
        store.register(jti="j1", account_id="acc-1", ttl_seconds=60)

        assert store.revoke("j1") is True
        assert store.revoke("j1") is False
        assert store.owner_of("j1") is None
        assert r.smembers("rt:u:acc-1") == set()

    def test_revoke_all_for_account(self, store):
        store.register(jti="j1", account_id="acc-1", ttl_seconds=60)
        store.register(jti="j2", account_id="acc-1", ttl_seconds=60)
        store.register(jti="j3", account_id="acc-2", ttl_seconds=60)

        assert store.revoke_all_for_account("acc-1") == 2
        assert store.owner_of("j1") is None
        assert store.owner_of("j2") is None
        assert store.owner_of("j3") == "acc-2"
        assert store.revoke_all_for_account("acc-1") == 0

    def test_active_jtis_prunes_expired_members(self, store, r):
        store.register(jti="j1", account_id="acc-1", ttl_seconds=60)
        store.register(jti="j2", account_id="acc-1", ttl_seconds=60)
        r.delete("rt:j1")  # record expired

        assert store.active_jtis("acc-1") == ["j2"]
        assert r.smembers("rt:u:acc-1") == {b"j2"}
