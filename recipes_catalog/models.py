"""Storage rows and the explicit row <-> entity conversions.

Rows never leave the stores; callers only ever see :mod:`recipes_catalog.entities`.
"""
from typing import Iterable, List

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from . import entities
from .db import Base


recipe_ingredients = Table(
    "recipe_ingredients",
    Base.metadata,
    Column(
        "recipe_id",
        Integer,
        ForeignKey("recipes.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("ingredient_id", Integer, ForeignKey("ingredients.id"), primary_key=True),
)


class Ingredient(Base):
    __tablename__ = "ingredients"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), index=True, nullable=False)
    type = Column(String(200), index=True, nullable=False)


class CookingUnit(Base):
    __tablename__ = "cooking_units"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), index=True, nullable=False)


class RecipeStep(Base):
    __tablename__ = "recipe_steps"
    __table_args__ = (
        UniqueConstraint("recipe_id", "order", name="uq_recipe_steps_recipe_order"),
        CheckConstraint('"order" > 0'),
    )
    id = Column(Integer, primary_key=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    order = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)


class Recipe(Base):
    __tablename__ = "recipes"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")

    steps = relationship(
        RecipeStep,
        order_by=RecipeStep.order,
        cascade="all, delete-orphan",
    )
    ingredients = relationship(Ingredient, secondary=recipe_ingredients)


def ingredient_to_entity(row: Ingredient) -> entities.Ingredient:
    return entities.Ingredient(id=row.id, name=row.name, type=row.type)


def ingredient_from_entity(ingredient: entities.Ingredient, row: Ingredient | None = None) -> Ingredient:
    row = row if row is not None else Ingredient()
    row.name = ingredient.name
    row.type = ingredient.type
    return row


def cooking_unit_to_entity(row: CookingUnit) -> entities.CookingUnit:
    return entities.CookingUnit(id=row.id, name=row.name)


def cooking_unit_from_entity(unit: entities.CookingUnit, row: CookingUnit | None = None) -> CookingUnit:
    row = row if row is not None else CookingUnit()
    row.name = unit.name
    return row


def steps_to_entity(steps: Iterable[RecipeStep]) -> List[str]:
    # storage order is not trusted; position is defined by `order` alone
    return [step.content for step in sorted(steps, key=lambda s: s.order)]


def steps_from_entity(steps: Iterable[str]) -> List[RecipeStep]:
    return [
        RecipeStep(content=content, order=position)
        for position, content in enumerate(steps, start=1)
    ]


def recipe_to_entity(row: Recipe) -> entities.Recipe:
    return entities.Recipe(
        id=row.id,
        name=row.name,
        description=row.description or "",
        ingredients=[ingredient_to_entity(i) for i in row.ingredients],
        steps=steps_to_entity(row.steps),
    )


def recipe_from_entity(recipe: entities.Recipe, row: Recipe | None = None) -> Recipe:
    """Copy the scalar fields of ``recipe`` onto a row.

    The id is never copied: new rows get a generated one and existing rows
    keep theirs. Steps and ingredient links need the session (reconciliation,
    reference lookup) and are handled by the recipe store.
    """
    row = row if row is not None else Recipe()
    row.name = recipe.name
    row.description = recipe.description or ""
    return row
