"""SQL-backed store (checkout_store table). Every set() commits before returning."""
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from blane_checkout.core.errors import PersistenceError
from blane_checkout.models.stored_value import StoredValue

logger = logging.getLogger(__name__)


class SqlKeyValueStore:
    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        if session_factory is None:
            from blane_checkout.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        db = self._session_factory()
        try:
            row = db.query(StoredValue).filter(StoredValue.key == key).first()
            return row.value if row else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read {key}: {e}") from e
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db = self._session_factory()
        try:
            row = db.query(StoredValue).filter(StoredValue.key == key).first()
            now = datetime.now(timezone.utc)
            if row:
                row.value = value
                row.updated_at = now
            else:
                db.add(StoredValue(key=key, value=value, updated_at=now))
            db.commit()
            logger.debug("Stored %s", key)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Could not persist {key}: {e}") from e
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.query(StoredValue).filter(StoredValue.key == key).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Could not remove {key}: {e}") from e
        finally:
            db.close()
