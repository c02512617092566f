"""SQLAlchemy repository implementations."""

from portfolio_sync.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_db,
    init_db,
    init_db_with_path,
    create_session_factory,
    reset_database,
    Base,
)
from portfolio_sync.repositories.sqlalchemy.local_store import SqlAlchemyLocalStore
from portfolio_sync.repositories.sqlalchemy.remote_store import (
    SqlAlchemyRemoteRepository,
    SqlAlchemyRemoteStore,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_db",
    "init_db",
    "init_db_with_path",
    "create_session_factory",
    "reset_database",
    "Base",
    "SqlAlchemyLocalStore",
    "SqlAlchemyRemoteRepository",
    "SqlAlchemyRemoteStore",
]
