from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """
    Port for one-way password hashing.

    Implementations MUST salt every hash, MUST NOT log the plaintext and
    MUST report a mismatch (or a malformed stored hash) as ``False`` rather
    than raising.
    """

    def hash(self, password: str) -> str:
        """
        Produce a salted one-way hash.

        :raises HashingError: Only on RNG/resource failure.
        """
        ...

    def verify(self, password: str, password_hash: str) -> bool:
        """Return ``True`` only when ``password`` matches ``password_hash``."""
        ...

    def dummy_verify(self, password: str) -> None:
        """Burn a comparable amount of work when no stored hash exists."""
        ...
