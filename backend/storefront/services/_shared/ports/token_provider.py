from __future__ import annotations

from enum import Enum
from typing import Any, Protocol


class TokenKind(str, Enum):
    """Token families; each is signed with its own secret."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenProvider(Protocol):
    """Port for signing and decoding JWTs.

    ``decode`` checks signature, expiry and the ``type`` claim, and raises
    :class:`~storefront.services._shared.errors.TokenExpiredError` or
    :class:`~storefront.services._shared.errors.TokenInvalidError`. It never
    consults revocation state.
    """

    def encode(self, kind: TokenKind, claims: dict[str, Any]) -> str: ...

    def decode(self, kind: TokenKind, token: str) -> dict[str, Any]: ...
