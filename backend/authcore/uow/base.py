"""
Unit of Work contract shared by services and record adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from authcore.repositories import RefreshTokenRepository, UserRepository


class SupportsCommit(Protocol):
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class UnitOfWork(ABC):
    """
    One transaction spanning the user and refresh-token repositories.

    Leaving the ``with`` block normally commits; leaving it with an exception
    rolls back and re-raises. Repositories only flush, so nothing a use-case
    wrote is visible to other sessions before the block exits.

    :ivar users: Repository for :class:`~authcore.models.user.User`.
    :ivar refresh_tokens: Repository for
        :class:`~authcore.models.refresh_token.RefreshToken`.
    """

    users: UserRepository
    refresh_tokens: RefreshTokenRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
