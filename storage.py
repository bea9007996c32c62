"""
Option and transient stores backed by the local database.

The licensing services only depend on the two protocols below; any
key/value backend offering the same calls can be swapped in.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from database import Option, Transient, utcnow

logger = logging.getLogger(__name__)

class OptionStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any, autoload: bool = True) -> bool: ...

class CacheStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: int = 0) -> bool: ...

    def delete(self, key: str) -> bool: ...

class SqlOptionStore:
    """Durable key/value options. Last writer wins."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: Any = None) -> Any:
        option = self._find(key)
        if option is None or option.value is None:
            return default
        return option.value

    def set(self, key: str, value: Any, autoload: bool = True) -> bool:
        try:
            self._write(key, value, autoload)
        except IntegrityError:
            # Another writer inserted the key first.
            self.db.rollback()
            self._write(key, value, autoload)
        return True

    def _find(self, key: str) -> Optional[Option]:
        return self.db.query(Option).filter(Option.key == key).first()

    def _write(self, key: str, value: Any, autoload: bool):
        option = self._find(key)

        if option:
            option.value = value
            option.autoload = autoload
            flag_modified(option, "value")
        else:
            option = Option(key=key, value=value, autoload=autoload)
            self.db.add(option)

        self.db.commit()

    def delete(self, key: str) -> bool:
        deleted = self.db.query(Option).filter(Option.key == key).delete()
        self.db.commit()
        return bool(deleted)

class SqlCacheStore:
    """
    TTL-bound key/value cache.

    A miss is always ``None``. Expired rows are removed lazily when read.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def get(self, key: str) -> Optional[Any]:
        transient = self._find(key)
        if transient is None:
            return None

        if transient.expires_at is not None and transient.expires_at <= self.clock():
            logger.debug("Transient %s expired", key)
            self.db.delete(transient)
            self.db.commit()
            return None

        return transient.value

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        if value is None:
            return False

        expires_at = self.clock() + timedelta(seconds=ttl) if ttl > 0 else None
        try:
            self._write(key, value, expires_at)
        except IntegrityError:
            logger.debug("Transient %s written concurrently, updating", key)
            self.db.rollback()
            self._write(key, value, expires_at)
        return True

    def _find(self, key: str) -> Optional[Transient]:
        return self.db.query(Transient).filter(Transient.key == key).first()

    def _write(self, key: str, value: Any, expires_at: Optional[datetime]):
        transient = self._find(key)

        if transient:
            transient.value = value
            transient.expires_at = expires_at
            flag_modified(transient, "value")
        else:
            transient = Transient(key=key, value=value, expires_at=expires_at)
            self.db.add(transient)

        self.db.commit()

    def delete(self, key: str) -> bool:
        deleted = self.db.query(Transient).filter(Transient.key == key).delete()
        self.db.commit()
        return bool(deleted)
