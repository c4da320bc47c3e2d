import logging
from typing import Dict, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.models.model_kv_record import KeyValueRecord

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a storage backend cannot be read."""


class StorageBackend:
    """
    Key-value storage capability injected into repositories.

    ``load`` returns None for an absent key and raises ``StorageError`` when
    the backend cannot be read. ``save`` never raises; it reports failure by
    returning False.
    """

    def load(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def save(self, key: str, data: bytes) -> bool:
        raise NotImplementedError


class InMemoryStorage(StorageBackend):
    def __init__(self):
        self._data: Dict[str, bytes] = {}

    def load(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def save(self, key: str, data: bytes) -> bool:
        self._data[key] = bytes(data)
        return True


class SqlStorage(StorageBackend):
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load(self, key: str) -> Optional[bytes]:
        try:
            with self.session_factory() as db:
                record = db.query(KeyValueRecord).filter(KeyValueRecord.key == key).first()
                return bytes(record.payload) if record else None
        except SQLAlchemyError as e:
            logger.error(f"SqlStorage.load error: key={key}: {str(e)}", exc_info=True)
            raise StorageError(str(e)) from e

    def save(self, key: str, data: bytes) -> bool:
        with self.session_factory() as db:
            try:
                record = db.get(KeyValueRecord, key)
                if record is None:
                    db.add(KeyValueRecord(key=key, payload=data))
                else:
                    record.payload = data
                db.commit()
                return True
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"SqlStorage.save error: key={key}: {str(e)}", exc_info=True)
                return False


def get_storage(request: Request) -> StorageBackend:
    """Storage backend created at application start."""
    return request.app.state.storage
