from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt

from storefront.services._shared.errors import TokenExpiredError, TokenInvalidError
from storefront.services._shared.ports import TokenKind, TokenProvider

REQUIRED_CLAIMS = ("exp", "iat", "sub", "jti", "type")


@dataclass(frozen=True, slots=True)
class PyJWTTokenProvider(TokenProvider):
    """
    HMAC JWT signer with one secret per token family.

    Access tokens are signed with ``access_secret`` and refresh tokens with
    ``refresh_secret``, so a refresh token can never pass as an access token
    (and vice versa) even if the ``type`` claim were forged.

    :param access_secret: Signing key for access tokens.
    :param refresh_secret: Signing key for refresh tokens; must differ.
    :param algorithm: HMAC algorithm, ``HS256`` by default.
    :param leeway_seconds: Clock skew tolerated on ``exp``/``nbf``.
    """

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    leeway_seconds: int = 0

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("Both signing secrets are required.")
        if self.access_secret == self.refresh_secret:
            raise ValueError("Access and refresh secrets must differ.")

    def _secret(self, kind: TokenKind) -> str:
        return self.access_secret if kind is TokenKind.ACCESS else self.refresh_secret

    def encode(self, kind: TokenKind, claims: dict[str, Any]) -> str:
        payload = dict(claims)
        payload["type"] = kind.value
        return jwt.encode(payload, self._secret(kind), algorithm=self.algorithm)

    def decode(self, kind: TokenKind, token: str) -> dict[str, Any]:
        """
        Verify signature, expiry and token family.

        :raises TokenExpiredError: When ``exp`` has passed.
        :raises TokenInvalidError: On any other signature or claim problem.
        """
        if not token or not isinstance(token, str):
            raise TokenInvalidError()
        try:
            claims = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[self.algorithm],
                leeway=self.leeway_seconds,
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError() from exc
        if claims.get("type") != kind.value:
            raise TokenInvalidError("Wrong token type.")
        return claims
