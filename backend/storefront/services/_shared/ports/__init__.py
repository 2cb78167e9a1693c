"""
storefront.services._shared.ports
=================================

Ports (hexagonal interfaces) that keep the service layer independent from
token signing, revocation storage and email delivery.

Modules
-------
- :mod:`token_provider`: :class:`~.TokenProvider` and :class:`~.TokenKind`.
- :mod:`refresh_token_store`: :class:`~.RefreshTokenStore`, the refresh
  validity record.
- :mod:`denylist_store`: :class:`~.TokenDenylistStore`, the access-token
  blacklist.
- :mod:`email_sender`: :class:`~.EmailSender`, passcode delivery.

Concrete adapters live under ``storefront.infra``; in-memory doubles live
next to each port.
"""

from __future__ import annotations

from .denylist_store import InMemoryDenylistStore, TokenDenylistStore
from .email_sender import EmailSender, InMemoryEmailSender, SentOtp
from .refresh_token_store import InMemoryRefreshTokenStore, RefreshTokenStore
from .token_provider import TokenKind, TokenProvider

__all__ = [
    "EmailSender",
    "InMemoryDenylistStore",
    "InMemoryEmailSender",
    "InMemoryRefreshTokenStore",
    "RefreshTokenStore",
    "SentOtp",
    "TokenDenylistStore",
    "TokenKind",
    "TokenProvider",
]
