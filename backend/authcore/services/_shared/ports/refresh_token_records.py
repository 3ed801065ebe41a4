from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol

from authcore.services._shared.errors import UniqueConstraintViolation


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model for a stored refresh token.

    :ivar user_id: Owner user id.
    :ivar token: Opaque token value (bearer secret).
    :ivar expires_at: Absolute expiration (UTC).
    :ivar revoked: Whether the token has been consumed or revoked.
    """

    user_id: int
    token: str
    expires_at: datetime
    revoked: bool = False


class RefreshTokenRecords(Protocol):
    """
    Persistence port for refresh-token rows.

    ``consume`` MUST be a single conditional transition: when two callers
    present the same active token concurrently, exactly one receives the
    view and the other receives ``None``. Revocations are idempotent.
    """

    def create(self, *, user_id: int, token: str, expires_at: datetime) -> RefreshTokenView:
        """
        Persist a new active token.

        :raises UniqueConstraintViolation: If ``token`` already exists.
        """
        ...

    def get_active(self, token: str, now: datetime) -> RefreshTokenView | None:
        """Return the token only if it is unrevoked and ``expires_at > now``."""
        ...

    def consume(self, token: str, now: datetime) -> RefreshTokenView | None:
        """Revoke the token only if still active; return it when this call won."""
        ...

    def revoke(self, token: str) -> bool:
        """Revoke a single token. :returns: True if this call changed it."""
        ...

    def revoke_all_for_user(self, user_id: int) -> int:
        """
        Revoke every outstanding token for the user.

        :returns: Number of tokens affected.
        """
        ...

    def purge_expired(self, now: datetime) -> int:
        """Physically delete expired tokens (operator sweep, never the core)."""
        ...


class InMemoryRefreshTokenRecords(RefreshTokenRecords):
    """
    In-memory refresh-token records with atomic ``consume``.

    .. note::
       Uses a threading lock to simulate the conditional update in unit tests.
    """

    def __init__(self) -> None:
        self._by_token: dict[str, RefreshTokenView] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _active(view: RefreshTokenView, now: datetime) -> bool:
        return not view.revoked and view.expires_at > now

    def create(self, *, user_id: int, token: str, expires_at: datetime) -> RefreshTokenView:
        with self._lock:
            if token in self._by_token:
                raise UniqueConstraintViolation("uq_refresh_tokens_token")
            view = RefreshTokenView(user_id=user_id, token=token, expires_at=expires_at)
            self._by_token[token] = view
            return view

    def get(self, token: str) -> RefreshTokenView | None:
        """Return the raw record regardless of state (test helper)."""
        return self._by_token.get(token)

    def get_active(self, token: str, now: datetime) -> RefreshTokenView | None:
        view = self._by_token.get(token)
        return view if view is not None and self._active(view, now) else None

    def consume(self, token: str, now: datetime) -> RefreshTokenView | None:
        with self._lock:
            view = self._by_token.get(token)
            if view is None or not self._active(view, now):
                return None
            self._by_token[token] = replace(view, revoked=True)
            return view

    def revoke(self, token: str) -> bool:
        with self._lock:
            view = self._by_token.get(token)
            if view is None or view.revoked:
                return False
            self._by_token[token] = replace(view, revoked=True)
            return True

    def revoke_all_for_user(self, user_id: int) -> int:
        with self._lock:
            hits = [
                t for t, v in self._by_token.items() if v.user_id == user_id and not v.revoked
            ]
            for t in hits:
                self._by_token[t] = replace(self._by_token[t], revoked=True)
            return len(hits)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            stale = [t for t, v in self._by_token.items() if v.expires_at <= now]
            for t in stale:
                del self._by_token[t]
            return len(stale)
