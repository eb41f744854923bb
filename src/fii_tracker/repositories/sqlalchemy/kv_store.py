"""SQLAlchemy implementation of KeyValueStore."""

import json
from typing import Any

from sqlalchemy.orm import Session

from fii_tracker.repositories.sqlalchemy.orm_models import KeyValueORM


class SqlAlchemyKeyValueStore:
    """SQLAlchemy-backed key-value store; every set commits immediately."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, key: str, default: Any = None) -> Any:
        row = self._db.get(KeyValueORM, key)
        if row is None:
            return default
        try:
            return json.loads(row.value_json)
        except json.JSONDecodeError:
            return default

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        row = self._db.get(KeyValueORM, key)
        if row:
            row.value_json = payload
        else:
            self._db.add(KeyValueORM(key=key, value_json=payload))
        self._db.commit()

    def delete(self, key: str) -> None:
        self._db.query(KeyValueORM).filter(KeyValueORM.key == key).delete()
        self._db.commit()

    def keys(self) -> list[str]:
        return [row.key for row in self._db.query(KeyValueORM.key).order_by(KeyValueORM.key).all()]
