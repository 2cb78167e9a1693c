from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Token lifetimes.

    :param access_ttl_seconds: Access token lifetime (minutes range).
    :param refresh_ttl_seconds: Refresh token lifetime and refresh record TTL.
    """

    access_ttl_seconds: int = 900
    refresh_ttl_seconds: int = 604800


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Freshly minted access/refresh pair.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param access_jti: Identifier embedded in the access token.
    :param refresh_jti: Identifier embedded in the refresh token (cache key).
    :param access_expires_in: Access lifetime in seconds.
    :param refresh_expires_in: Refresh lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    access_jti: str
    refresh_jti: str
    access_expires_in: int
    refresh_expires_in: int
    token_type: str = "Bearer"


@dataclass(frozen=True, slots=True)
class VerifiedToken:
    """Claims of a token that passed signature, expiry and revocation checks."""

    account_id: str
    jti: str
    role: str | None
    expires_at: datetime
    store_id: str | None = None
    refresh_jti: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)
