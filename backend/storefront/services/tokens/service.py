from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from storefront.services._shared.clock import now_utc
from storefront.services._shared.errors import TokenInvalidError, TokenRevokedError
from storefront.services._shared.ports import (
    RefreshTokenStore,
    TokenDenylistStore,
    TokenKind,
    TokenProvider,
)
from storefront.services.tokens.dto import TokenConfig, TokenPair, VerifiedToken

log = logging.getLogger(__name__)


class TokenService:
    """
    Mint, verify and revoke access/refresh token pairs.

    Validity is decided in two steps: the provider checks signature and
    expiry, then revocation state is consulted. A refresh token is valid only
    while its ``jti`` record exists in the refresh store and names the same
    account as the token. An access token is rejected once its ``jti`` is on
    the denylist.

    Minting and registering are separate calls (:meth:`issue_pair`,
    :meth:`register_pair`); :meth:`issue_and_register` performs both and is
    what orchestrators use.
    """

    def __init__(
        self,
        *,
        provider: TokenProvider,
        refresh_store: RefreshTokenStore,
        denylist: TokenDenylistStore,
        config: TokenConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        :param provider: JWT signer/decoder.
        :param refresh_store: Authoritative refresh validity records.
        :param denylist: Access-token blacklist.
        :param config: Lifetimes.
        :param clock: Aware UTC clock used for ``iat``/``exp``.
        """
        self.provider = provider
        self.refresh_store = refresh_store
        self.denylist = denylist
        self.config = config or TokenConfig()
        self._clock = clock or now_utc

    # ------------------------------------------------------------------ #
    # Minting
    # ------------------------------------------------------------------ #

    @staticmethod
    def new_jti() -> str:
        return uuid4().hex

    def _claims(
        self, *, account_id: str, role: str, jti: str, ttl: int, extra: dict[str, Any]
    ) -> dict[str, Any]:
        now = self._clock()
        claims: dict[str, Any] = {
            "sub": str(account_id),
            "jti": jti,
            "role": role,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl)).timestamp()),
        }
        claims.update({k: v for k, v in extra.items() if v is not None})
        return claims

    def issue_pair(
        self, account_id: str, role: str, store_id: str | None = None, *, fresh: bool = True
    ) -> TokenPair:
        """
        Mint a pair with distinct random jtis. Nothing is recorded.

        :param account_id: Subject of both tokens.
        :param role: Effective role at issuance.
        :param store_id: Owned store, for administrators.
        :param fresh: Whether the access token follows a credential check.
        """
        access_jti, refresh_jti = self.new_jti(), self.new_jti()
        cfg = self.config
        refresh = self.provider.encode(
            TokenKind.REFRESH,
            self._claims(
                account_id=account_id,
                role=role,
                jti=refresh_jti,
                ttl=cfg.refresh_ttl_seconds,
                extra={},
            ),
        )
        access = self.provider.encode(
            TokenKind.ACCESS,
            self._claims(
                account_id=account_id,
                role=role,
                jti=access_jti,
                ttl=cfg.access_ttl_seconds,
                extra={"store_id": store_id, "refresh_jti": refresh_jti, "fresh": fresh},
            ),
        )
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            access_jti=access_jti,
            refresh_jti=refresh_jti,
            access_expires_in=cfg.access_ttl_seconds,
            refresh_expires_in=cfg.refresh_ttl_seconds,
        )

    def register_pair(self, account_id: str, pair: TokenPair) -> None:
        """Record the refresh jti with the refresh lifetime as TTL."""
        self.refresh_store.register(
            jti=pair.refresh_jti,
            account_id=str(account_id),
            ttl_seconds=pair.refresh_expires_in,
        )

    def issue_and_register(
        self, account_id: str, role: str, store_id: str | None = None, *, fresh: bool = True
    ) -> TokenPair:
        pair = self.issue_pair(account_id, role, store_id, fresh=fresh)
        self.register_pair(account_id, pair)
        return pair

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def decode(self, token: str, kind: TokenKind) -> VerifiedToken:
        """Signature and expiry only; no revocation lookup."""
        claims = self.provider.decode(kind, token)
        return VerifiedToken(
            account_id=str(claims["sub"]),
            jti=str(claims["jti"]),
            role=claims.get("role"),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
            store_id=claims.get("store_id"),
            refresh_jti=claims.get("refresh_jti"),
            claims=claims,
        )

    def verify(self, token: str, kind: TokenKind) -> VerifiedToken:
        """
        Full verification.

        :raises TokenExpiredError: Signature valid but expired.
        :raises TokenInvalidError: Bad signature or claims, or (refresh) no
            matching record in the refresh store.
        :raises TokenRevokedError: (access) jti is on the denylist.
        """
        verified = self.decode(token, kind)
        if kind is TokenKind.REFRESH:
            owner = self.refresh_store.owner_of(verified.jti)
            if owner is None or owner != verified.account_id:
                log.warning(
                    "Refresh token has no matching session record",
                    extra={"account_id": verified.account_id},
                )
                raise TokenInvalidError()
        elif self.denylist.is_revoked(verified.jti):
            log.warning("Revoked access token presented", extra={"account_id": verified.account_id})
            raise TokenRevokedError()
        return verified

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def revoke(self, jti: str) -> bool:
        """Delete the refresh record. :returns: ``False`` when it was already gone."""
        return self.refresh_store.revoke(jti)

    def revoke_all_for_account(self, account_id: str) -> int:
        return self.refresh_store.revoke_all_for_account(str(account_id))

    def blacklist_access(self, jti: str, expires_at: datetime) -> None:
        """Deny an access token until its own expiry."""
        self.denylist.revoke_jti(jti=jti, expires_at=expires_at)
