"""
Repository layer: row-level read/insert/update/delete keyed by id.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from app.core.db import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class RowRepo:
    @staticmethod
    def get(db: Session, model: Type[ModelT], row_id: str) -> Optional[ModelT]:
        return db.query(model).filter(model.id == row_id).first()

    @staticmethod
    def insert(db: Session, model: Type[ModelT], values: Dict[str, Any]) -> ModelT:
        row = model(**values)
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info(f"Inserted {model.__tablename__} row {row.id}")
        return row

    @staticmethod
    def update(db: Session, row: ModelT, values: Dict[str, Any]) -> ModelT:
        """Apply the given column values; keys mapped to None are written as NULL"""
        for key, value in values.items():
            setattr(row, key, value)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def delete(db: Session, row: ModelT) -> None:
        table, row_id = row.__tablename__, row.id
        db.delete(row)
        db.commit()
        logger.info(f"Deleted {table} row {row_id}")
