"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts the
session core consumes.

Modules
-------
- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`: one-way credential hashing.

- :mod:`token_provider`:
    Defines :class:`~.TokenProvider` and :class:`~.AccessClaims`: signed
    access-token issuance and verification.

- :mod:`refresh_token_records`:
    Defines :class:`~.RefreshTokenRecords` and :class:`~.RefreshTokenView`:
    refresh-token persistence with an atomic ``consume``.

- :mod:`event_publisher`:
    Defines :class:`~.EventPublisher`: post-commit domain events.

Design Notes
------------
Concrete adapters (SQL, Redis, Flask-JWT-Extended, Werkzeug, thread pool)
implement these interfaces under ``authcore.infra``. In-memory doubles live
next to the ports for unit tests.
"""

from __future__ import annotations

from .event_publisher import EventHandler, EventPublisher, InMemoryEventPublisher
from .password_hasher import PasswordHasher
from .refresh_token_records import (
    InMemoryRefreshTokenRecords,
    RefreshTokenRecords,
    RefreshTokenView,
)
from .token_provider import AccessClaims, TokenProvider

__all__ = [
    "AccessClaims",
    "EventHandler",
    "EventPublisher",
    "InMemoryEventPublisher",
    "InMemoryRefreshTokenRecords",
    "PasswordHasher",
    "RefreshTokenRecords",
    "RefreshTokenView",
    "TokenProvider",
]
