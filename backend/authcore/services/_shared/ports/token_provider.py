from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Identity claims carried by a verified access token.

    Passed by value; no component shares or mutates a claims object.

    :ivar user_id: Owner user id.
    :ivar email: Email at issuance time.
    :ivar issued_at: ``iat`` (UTC).
    :ivar expires_at: ``exp`` (UTC).
    """

    user_id: int
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenProvider(Protocol):
    """Port for issuing and verifying signed access tokens."""

    def issue(self, *, user_id: int, email: str, expires_delta: timedelta) -> str:
        """
        Sign a new access token for ``user_id``.

        :raises Exception: Any signing failure; callers wrap it as internal.
        """
        ...

    def verify(self, token: str) -> AccessClaims:
        """
        Verify signature, algorithm and expiry and return the claims.

        :raises TokenExpiredError: When the token is past ``exp``.
        :raises InvalidSignatureError: For any other verification failure,
            including malformed input.
        """
        ...
