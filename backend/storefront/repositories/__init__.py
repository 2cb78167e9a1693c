"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from storefront.repositories.account import AccountRepository
from storefront.repositories.base import BaseRepository
from storefront.repositories.otp import OtpChallengeRepository
from storefront.repositories.store import StoreRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "OtpChallengeRepository",
    "StoreRepository",
]
