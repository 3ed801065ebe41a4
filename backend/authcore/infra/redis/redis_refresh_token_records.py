# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]

from authcore.services._shared.errors import UniqueConstraintViolation
from authcore.services._shared.ports import RefreshTokenRecords, RefreshTokenView


def _b(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenRecords(RefreshTokenRecords):
    """
    Redis-backed refresh-token records.

    Layout: one hash per token (``rt:<token>``) holding ``user_id``,
    ``expires_at`` (epoch seconds) and ``revoked``, plus a per-user index set
    (``rt:u:<user_id>``). Hash keys expire at the token's ``expires_at``.

    State transitions use WATCH/MULTI/EXEC (optimistic locking): if a
    concurrent client touches the token between the read and the write, the
    transaction aborts and the check is re-run against the new state, so
    exactly one concurrent ``consume`` succeeds.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token: str) -> str:
        return f"rt:{token}"

    @staticmethod
    def _ku(user_id: int) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # Naive datetimes are labelled UTC (no conversion)
        return int((dt if dt.tzinfo else dt.replace(tzinfo=UTC)).timestamp())

    def _view(self, token: str, h: dict) -> RefreshTokenView:
        return RefreshTokenView(
            user_id=int(_b(h.get(b"user_id"), "0")),
            token=token,
            expires_at=datetime.fromtimestamp(int(_b(h.get(b"expires_at"), "0")), tz=UTC),
            revoked=_b(h.get(b"revoked"), "0") == "1",
        )

    def _transition(self, token: str, now: datetime | None) -> RefreshTokenView | None:
        """
        Flip ``revoked`` to ``1`` if the token exists and is not revoked.

        When ``now`` is given the token must also be unexpired.

        :returns: The pre-transition view when this call performed the flip.
        """
        key = self._k(token)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    h = p.hgetall(key)
                    if not h:
                        p.unwatch()
                        return None
                    view = self._view(token, h)
                    if view.revoked or (now is not None and view.expires_at <= now):
                        p.unwatch()
                        return None

                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.srem(self._ku(view.user_id), token)
                    p.execute()
                    return view
            except redis.WatchError:
                # Concurrent modification detected; re-evaluate
                continue

    # -------------------- API ------------------------

    def create(self, *, user_id: int, token: str, expires_at: datetime) -> RefreshTokenView:
        """
        Insert the token hash and index it under its owner.

        :raises UniqueConstraintViolation: If the token key already exists.
        """
        key = self._k(token)
        exp_ts = self._to_ts(expires_at)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    if p.exists(key):
                        p.unwatch()
                        raise UniqueConstraintViolation("uq_refresh_tokens_token")
                    p.multi()
                    p.hset(
                        key,
                        mapping={
                            "user_id": str(user_id),
                            "expires_at": str(exp_ts),
                            "revoked": "0",
                            "created_at": str(self._to_ts(datetime.now(UTC))),
                        },
                    )
                    p.expireat(key, exp_ts)
                    p.sadd(self._ku(user_id), token)
                    p.execute()
                    break
            except redis.WatchError:
                continue
        return RefreshTokenView(
            user_id=user_id,
            token=token,
            expires_at=datetime.fromtimestamp(exp_ts, tz=UTC),
        )

    def get_active(self, token: str, now: datetime) -> RefreshTokenView | None:
        h = self.r.hgetall(self._k(token))
        if not h:
            return None
        view = self._view(token, h)
        if view.revoked or view.expires_at <= now:
            return None
        return view

    def consume(self, token: str, now: datetime) -> RefreshTokenView | None:
        view = self._transition(token, now)
        if view is None:
            return None
        return RefreshTokenView(
            user_id=view.user_id,
            token=view.token,
            expires_at=view.expires_at,
            revoked=True,
        )

    def revoke(self, token: str) -> bool:
        return self._transition(token, None) is not None

    def revoke_all_for_user(self, user_id: int) -> int:
        key_u = self._ku(user_id)
        tokens = [_b(member) for member in self.r.smembers(key_u)]
        # Each successful transition SREMs its own member; entries added
        # concurrently stay indexed for the next bulk revoke.
        return sum(1 for t in tokens if self._transition(t, None) is not None)

    def purge_expired(self, now: datetime) -> int:
        """
        Drop index entries whose token hash Redis already expired.

        Token hashes themselves are removed by Redis key expiry.

        :returns: Number of dangling index entries removed.
        """
        removed = 0
        for key_u in self.r.scan_iter(match="rt:u:*"):
            stale = [m for m in self.r.smembers(key_u) if not self.r.exists(self._k(_b(m)))]
            if stale:
                removed += int(self.r.srem(key_u, *stale))
        return removed
