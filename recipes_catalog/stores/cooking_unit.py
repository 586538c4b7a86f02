import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from .. import entities, models
from ..errors import NotFound, StorageError

logger = logging.getLogger(__name__)


@dataclass
class CookingUnitFilter:
    name: Optional[str] = None


class CookingUnitStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self, f: CookingUnitFilter) -> Query:
        query = self.db.query(models.CookingUnit)
        if f.name:
            query = query.filter(models.CookingUnit.name == f.name)
        return query

    def _get_row(self, unit_id: int) -> models.CookingUnit:
        row = self.db.get(models.CookingUnit, unit_id) if unit_id else None
        if row is None:
            raise NotFound("cooking unit", unit_id)
        return row

    def find_by_id(self, unit_id: int) -> entities.CookingUnit:
        try:
            return models.cooking_unit_to_entity(self._get_row(unit_id))
        except SQLAlchemyError as e:
            logger.exception("Loading cooking unit %s failed", unit_id)
            raise StorageError(f"failed to load cooking unit {unit_id}", e) from e

    def find_by_filter(self, f: CookingUnitFilter) -> List[entities.CookingUnit]:
        try:
            rows = self._query(f).order_by(models.CookingUnit.id).all()
        except SQLAlchemyError as e:
            logger.exception("Listing cooking units failed")
            raise StorageError("failed to list cooking units", e) from e
        return [models.cooking_unit_to_entity(r) for r in rows]

    def count_by_filter(self, f: CookingUnitFilter) -> int:
        try:
            return self._query(f).count()
        except SQLAlchemyError as e:
            logger.exception("Counting cooking units failed")
            raise StorageError("failed to count cooking units", e) from e

    def add(self, unit: entities.CookingUnit) -> entities.CookingUnit:
        row = models.cooking_unit_from_entity(unit)
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Adding cooking unit %r failed", unit.name)
            raise StorageError("failed to add cooking unit", e) from e
        unit.id = row.id
        logger.info("Added cooking unit %d (%s)", row.id, row.name)
        return models.cooking_unit_to_entity(row)

    def edit(self, unit: entities.CookingUnit) -> entities.CookingUnit:
        try:
            row = models.cooking_unit_from_entity(unit, self._get_row(unit.id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Editing cooking unit %s failed", unit.id)
            raise StorageError(f"failed to edit cooking unit {unit.id}", e) from e
        return models.cooking_unit_to_entity(row)

    def delete(self, unit: entities.CookingUnit) -> None:
        try:
            self.db.delete(self._get_row(unit.id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Deleting cooking unit %s failed", unit.id)
            raise StorageError(f"failed to delete cooking unit {unit.id}", e) from e
        logger.info("Deleted cooking unit %s", unit.id)
