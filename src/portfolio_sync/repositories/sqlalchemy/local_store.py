"""SQLAlchemy implementation of LocalStore (SQLite key/value table)."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_sync.core.exceptions import StorageUnavailableError
from portfolio_sync.repositories.sqlalchemy.orm_models import LocalKeyValueORM


class SqlAlchemyLocalStore:
    """SQLAlchemy-backed device cache; database errors surface as StorageUnavailableError."""

    def __init__(self, db: Session):
        self._db = db

    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None."""
        try:
            # Other contexts write the same table; never serve a stale identity-map row
            row = self._db.get(LocalKeyValueORM, key, populate_existing=True)
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageUnavailableError(f"Local store read failed: {exc}") from exc
        return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        """Insert or replace the value under key."""
        try:
            row = self._db.get(LocalKeyValueORM, key)
            if row:
                row.value = value
            else:
                self._db.add(LocalKeyValueORM(key=key, value=value))
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageUnavailableError(f"Local store write failed: {exc}") from exc

    def remove_item(self, key: str) -> None:
        """Remove key if present."""
        try:
            self._db.query(LocalKeyValueORM).filter(LocalKeyValueORM.key == key).delete()
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageUnavailableError(f"Local store delete failed: {exc}") from exc

    def keys(self) -> list[str]:
        """List stored keys (diagnostics)."""
        try:
            return [k for (k,) in self._db.query(LocalKeyValueORM.key).order_by(LocalKeyValueORM.key)]
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageUnavailableError(f"Local store read failed: {exc}") from exc
