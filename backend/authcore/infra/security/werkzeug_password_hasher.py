# authcore/infra/security/werkzeug_password_hasher.py
from __future__ import annotations

from dataclasses import dataclass, field

from werkzeug.security import check_password_hash, generate_password_hash

from authcore.services._shared.errors import HashingError
from authcore.services._shared.ports import PasswordHasher

_DUMMY_PASSWORD = "authcore-dummy-password"  # noqa: S105 - not a credential


@dataclass(slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Adapter over :mod:`werkzeug.security`.

    :param method: Werkzeug method string, e.g. ``"scrypt"`` or
        ``"pbkdf2:sha256:600000"``. The work factor lives in this string and is
        stored inside each hash, so old hashes keep verifying after a change.
    :param salt_length: Random salt length in characters.
    """

    method: str = "scrypt"
    salt_length: int = 16
    _dummy_hash: str | None = field(default=None, init=False, repr=False)

    def hash(self, password: str) -> str:
        try:
            return generate_password_hash(
                password, method=self.method, salt_length=self.salt_length
            )
        except (ValueError, TypeError, OSError, MemoryError) as exc:
            # Never include the password in the message.
            raise HashingError(f"Password hashing failed ({self.method})") from exc

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return bool(check_password_hash(password_hash, password))
        except (ValueError, TypeError):
            # Unknown method or corrupted hash: a mismatch, not a crash.
            return False

    def dummy_verify(self, password: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(_DUMMY_PASSWORD)
        self.verify(password, self._dummy_hash)
