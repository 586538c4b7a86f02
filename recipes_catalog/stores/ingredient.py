import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from .. import entities, models
from ..errors import NotFound, StorageError

logger = logging.getLogger(__name__)


@dataclass
class IngredientFilter:
    name: Optional[str] = None
    type: Optional[str] = None


class IngredientStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self, f: IngredientFilter) -> Query:
        query = self.db.query(models.Ingredient)
        if f.name:
            query = query.filter(models.Ingredient.name == f.name)
        if f.type:
            query = query.filter(models.Ingredient.type == f.type)
        return query

    def _get_row(self, ingredient_id: int) -> models.Ingredient:
        row = self.db.get(models.Ingredient, ingredient_id) if ingredient_id else None
        if row is None:
            raise NotFound("ingredient", ingredient_id)
        return row

    def find_by_id(self, ingredient_id: int) -> entities.Ingredient:
        try:
            return models.ingredient_to_entity(self._get_row(ingredient_id))
        except SQLAlchemyError as e:
            logger.exception("Loading ingredient %s failed", ingredient_id)
            raise StorageError(f"failed to load ingredient {ingredient_id}", e) from e

    def find_by_filter(self, f: IngredientFilter) -> List[entities.Ingredient]:
        try:
            rows = self._query(f).order_by(models.Ingredient.id).all()
        except SQLAlchemyError as e:
            logger.exception("Listing ingredients failed")
            raise StorageError("failed to list ingredients", e) from e
        return [models.ingredient_to_entity(r) for r in rows]

    def count_by_filter(self, f: IngredientFilter) -> int:
        try:
            return self._query(f).count()
        except SQLAlchemyError as e:
            logger.exception("Counting ingredients failed")
            raise StorageError("failed to count ingredients", e) from e

    def add(self, ingredient: entities.Ingredient) -> entities.Ingredient:
        row = models.ingredient_from_entity(ingredient)
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Adding ingredient %r failed", ingredient.name)
            raise StorageError("failed to add ingredient", e) from e
        ingredient.id = row.id
        logger.info("Added ingredient %d (%s)", row.id, row.name)
        return models.ingredient_to_entity(row)

    def edit(self, ingredient: entities.Ingredient) -> entities.Ingredient:
        try:
            row = models.ingredient_from_entity(ingredient, self._get_row(ingredient.id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Editing ingredient %s failed", ingredient.id)
            raise StorageError(f"failed to edit ingredient {ingredient.id}", e) from e
        return models.ingredient_to_entity(row)

    def delete(self, ingredient: entities.Ingredient) -> None:
        try:
            self.db.delete(self._get_row(ingredient.id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Deleting ingredient %s failed", ingredient.id)
            raise StorageError(f"failed to delete ingredient {ingredient.id}", e) from e
        logger.info("Deleted ingredient %s", ingredient.id)
