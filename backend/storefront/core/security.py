"""Argon2id credential hashing shared by passwords and one-time passcodes."""

from __future__ import annotations

import logging

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

log = logging.getLogger(__name__)

_DUMMY_SECRET = "storefront-unknown-account"


class CredentialHasher:
    """
    One-way salted hashing with Argon2id.

    Each call to :meth:`hash` embeds a fresh random salt and the cost
    parameters in the encoded output, so no key material has to be managed.

    :param time_cost: Argon2 iterations.
    :param memory_cost: Memory in KiB.
    :param parallelism: Lanes.
    """

    def __init__(
        self, *, time_cost: int = 2, memory_cost: int = 19456, parallelism: int = 1
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )
        self._dummy_hash: str | None = None

    def hash(self, plaintext: str) -> str:
        """
        Hash ``plaintext``.

        :raises ValueError: If ``plaintext`` is empty or not a string.
        """
        if not isinstance(plaintext, str) or not plaintext:
            raise ValueError("Secret must be a non-empty string.")
        return self._hasher.hash(plaintext)

    def verify(self, hashed: str | None, plaintext: str) -> bool:
        """
        Return ``True`` when ``plaintext`` matches ``hashed``.

        Never raises: mismatches return ``False``; malformed or missing hashes
        are logged and also return ``False``.
        """
        if not hashed or not isinstance(plaintext, str):
            return False
        try:
            return self._hasher.verify(hashed, plaintext)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError):
            log.warning("Credential verification failed on a malformed hash.")
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        """Run a full verification against a fixed hash and return ``False``.

        Lets callers spend the same work on unknown identities as on real ones.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash(_DUMMY_SECRET)
        self.verify(self._dummy_hash, plaintext)
        return False


# Process-wide default; stateless and thread-safe.
default_hasher = CredentialHasher()
