"""SQLAlchemy-backed key/value store (table `kv_store`)."""
from __future__ import annotations

from typing import Any, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from symptomlog.db.session import init_db, make_session_factory
from symptomlog.models.kv_record import KeyValueRecord
from symptomlog.storage.kv import KeyValueStore, dumps_value
from symptomlog.utils.exceptions import KeyConflictError, StorageError


class SqlKeyValueStore(KeyValueStore):
    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self._sessions = make_session_factory(engine)
        if create_tables:
            try:
                init_db(engine)
            except SQLAlchemyError as exc:
                raise StorageError(f"could not initialise kv_store: {exc}") from exc

    def set(self, key: str, value: Any, *, overwrite: bool = True) -> None:
        dumps_value(value)  # reject non-JSON values before opening a transaction
        with self._sessions() as db:
            try:
                if overwrite:
                    db.merge(KeyValueRecord(key=key, value=value))
                else:
                    db.add(KeyValueRecord(key=key, value=value))
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise KeyConflictError(f"key already exists: {key}") from exc
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageError(f"write failed for {key}: {exc}") from exc

    def get(self, key: str) -> Optional[Any]:
        with self._sessions() as db:
            try:
                row = db.get(KeyValueRecord, key)
            except SQLAlchemyError as exc:
                raise StorageError(f"read failed for {key}: {exc}") from exc
            return row.value if row is not None else None

    def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        stmt = select(KeyValueRecord.key, KeyValueRecord.value).where(
            KeyValueRecord.key.startswith(prefix, autoescape=True)
        )
        with self._sessions() as db:
            try:
                rows = db.execute(stmt).all()
            except SQLAlchemyError as exc:
                raise StorageError(f"prefix scan failed for {prefix}: {exc}") from exc
        # LIKE is case-insensitive on SQLite; keep only exact prefix matches
        return [(row.key, row.value) for row in rows if row.key.startswith(prefix)]

    def close(self) -> None:
        self.engine.dispose()


__all__ = ["SqlKeyValueStore"]
