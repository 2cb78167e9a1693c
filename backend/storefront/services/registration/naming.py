"""Store-name resolution for self-registering administrators."""

from __future__ import annotations

import re
from collections.abc import Callable
from uuid import uuid4

STORE_NAME_MAX_LENGTH = 255
MAX_ATTEMPTS = 5

_WHITESPACE = re.compile(r"\s+")


class StoreNameGenerator:
    """
    Derive a globally unique store name from a hint (usually the username).

    The hint is used verbatim when free; otherwise a short random suffix is
    appended (``acme_3f2a9c1d``) until ``is_taken`` reports a free name.
    """

    def __init__(self, *, max_attempts: int = MAX_ATTEMPTS) -> None:
        self.max_attempts = max_attempts

    @staticmethod
    def _disambiguator() -> str:
        return str(uuid4()).split("-", 1)[0]

    @staticmethod
    def normalize(hint: str) -> str:
        return _WHITESPACE.sub(" ", hint or "").strip()

    def generate_unique_name(self, base_hint: str, is_taken: Callable[[str], bool]) -> str:
        """
        :param base_hint: Preferred name.
        :param is_taken: Uniqueness probe (typically ``StoreRepository.name_exists``).
        :returns: A name for which ``is_taken`` returned ``False``.
        :raises ValueError: If the hint is blank.
        :raises RuntimeError: If no free name was found within ``max_attempts``.
        """
        base = self.normalize(base_hint)
        if not base:
            raise ValueError("Store name hint must not be blank.")
        base = base[:STORE_NAME_MAX_LENGTH]
        if not is_taken(base):
            return base

        for _ in range(self.max_attempts):
            suffix = f"_{self._disambiguator()}"
            candidate = base[: STORE_NAME_MAX_LENGTH - len(suffix)] + suffix
            if not is_taken(candidate):
                return candidate
        raise RuntimeError(f"Could not derive a free store name from {base!r}.")
