"""Transaction boundaries for the session core.

The read-write unit of work backs user creation and refresh-token state
transitions; the read-only one backs lookups (login, refresh re-read,
profile) and refuses any write.
"""

from .base import SupportsCommit, UnitOfWork
from .sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

__all__ = [
    "SQLAlchemyReadOnlyUnitOfWork",
    "SQLAlchemyUnitOfWork",
    "SupportsCommit",
    "UnitOfWork",
]
