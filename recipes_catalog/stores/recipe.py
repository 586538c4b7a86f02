"""Recipe aggregate persistence.

A recipe is stored across three tables: ``recipes``, its owned
``recipe_steps`` and the ``recipe_ingredients`` link to shared ingredients.
Every write touching more than one row commits once, so other sessions never
see a recipe without its steps or links.

Editing steps uses truncate-and-append (see :func:`reconcile_steps`): rows
keep their identity by *position*, not by content. Inserting a step in the
middle of the list rewrites the content of every later row instead of
shifting row ids around.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from .. import entities, models
from ..errors import NotFound, StorageError

logger = logging.getLogger(__name__)


@dataclass
class RecipeFilter:
    # 0 and None both mean "any recipe", so an all-zero filter matches every row.
    id: Optional[int] = 0


def reconcile_steps(current: List[models.RecipeStep], contents: List[str]) -> List[models.RecipeStep]:
    """Turn the persisted step rows into the rows for ``contents``.

    Rows past ``len(contents)`` are dropped from the result (the caller
    deletes them from storage). Retained rows get the new content at their
    position and keep their id and order. Missing positions are appended as
    new rows with ``order`` equal to their 1-based position.
    """
    ordered = sorted(current, key=lambda s: s.order)
    kept = ordered[: len(contents)]
    for step, content in zip(kept, contents):
        step.content = content
    for position in range(len(kept) + 1, len(contents) + 1):
        kept.append(models.RecipeStep(content=contents[position - 1], order=position))
    return kept


class RecipeStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self, f: RecipeFilter) -> Query:
        query = self.db.query(models.Recipe)
        if f.id:
            query = query.filter(models.Recipe.id == f.id)
        return query

    def _eager(self, query: Query) -> Query:
        return query.options(
            selectinload(models.Recipe.steps),
            selectinload(models.Recipe.ingredients),
        )

    def _get_row(self, recipe_id: int) -> models.Recipe:
        row = self.db.get(models.Recipe, recipe_id) if recipe_id else None
        if row is None:
            raise NotFound("recipe", recipe_id)
        return row

    def _resolve_ingredients(self, refs: Iterable[entities.Ingredient]) -> List[models.Ingredient]:
        rows, seen = [], set()
        for ref in refs:
            if ref.id in seen:
                continue
            row = self.db.get(models.Ingredient, ref.id) if ref.id else None
            if row is None:
                raise NotFound("ingredient", ref.id)
            seen.add(ref.id)
            rows.append(row)
        return rows

    def _delete_steps_after(self, row: models.Recipe, position: int) -> int:
        deleted = (
            self.db.query(models.RecipeStep)
            .filter(
                models.RecipeStep.recipe_id == row.id,
                models.RecipeStep.order > position,
            )
            .delete(synchronize_session="fetch")
        )
        # reload the collection so it no longer holds the deleted rows
        self.db.expire(row, ["steps"])
        return deleted

    def find_by_id(self, recipe_id: int) -> entities.Recipe:
        try:
            row = (
                self._eager(self.db.query(models.Recipe))
                .filter(models.Recipe.id == recipe_id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.exception("Loading recipe %s failed", recipe_id)
            raise StorageError(f"failed to load recipe {recipe_id}", e) from e
        if row is None:
            raise NotFound("recipe", recipe_id)
        return models.recipe_to_entity(row)

    def find_by_filter(self, f: RecipeFilter) -> List[entities.Recipe]:
        try:
            rows = self._eager(self._query(f)).order_by(models.Recipe.id).all()
        except SQLAlchemyError as e:
            logger.exception("Listing recipes failed")
            raise StorageError("failed to list recipes", e) from e
        return [models.recipe_to_entity(r) for r in rows]

    def count_by_filter(self, f: RecipeFilter) -> int:
        try:
            return self._query(f).count()
        except SQLAlchemyError as e:
            logger.exception("Counting recipes failed")
            raise StorageError("failed to count recipes", e) from e

    def add(self, recipe: entities.Recipe) -> entities.Recipe:
        """Persist the recipe, its steps and its ingredient links in one commit.

        The generated id is written back into ``recipe``.
        """
        try:
            row = models.recipe_from_entity(recipe)
            row.steps = models.steps_from_entity(recipe.steps)
            row.ingredients = self._resolve_ingredients(recipe.ingredients)
            self.db.add(row)
            self.db.commit()
        except NotFound:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Adding recipe %r failed", recipe.name)
            raise StorageError("failed to add recipe", e) from e
        recipe.id = row.id
        logger.info(
            "Added recipe %d (%s) with %d steps and %d ingredients",
            row.id, row.name, len(recipe.steps), len(row.ingredients),
        )
        return models.recipe_to_entity(row)

    def edit(self, recipe: entities.Recipe) -> entities.Recipe:
        """Replace name/description, reconcile steps and relink ingredients.

        Last write wins; there is no version check.
        """
        try:
            row = self._get_row(recipe.id)
            models.recipe_from_entity(recipe, row)
            dropped = self._delete_steps_after(row, len(recipe.steps))
            row.steps = reconcile_steps(list(row.steps), recipe.steps)
            row.ingredients = self._resolve_ingredients(recipe.ingredients)
            self.db.commit()
        except NotFound:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Editing recipe %s failed", recipe.id)
            raise StorageError(f"failed to edit recipe {recipe.id}", e) from e
        logger.info("Edited recipe %d, dropped %d trailing steps", row.id, dropped)
        return models.recipe_to_entity(row)

    def delete(self, recipe: entities.Recipe) -> None:
        """Delete the recipe and its steps. Linked ingredients are left alone."""
        try:
            row = self._get_row(recipe.id)
            dropped = self._delete_steps_after(row, 0)
            self.db.delete(row)
            self.db.commit()
        except NotFound:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Deleting recipe %s failed", recipe.id)
            raise StorageError(f"failed to delete recipe {recipe.id}", e) from e
        logger.info("Deleted recipe %s and %d steps", recipe.id, dropped)
