from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from . import entities


class IngredientBase(BaseModel):
    name: str = Field(
        ..., min_length=1, json_schema_extra={"example": "tomato"}
    )
    type: str = Field(
        ..., min_length=1, json_schema_extra={"example": "vegetable"}
    )


class IngredientCreate(IngredientBase):
    def to_entity(self) -> entities.Ingredient:
        return entities.Ingredient(name=self.name, type=self.type)


class IngredientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = Field(None, min_length=1)

    def apply_to(self, ingredient: entities.Ingredient) -> entities.Ingredient:
        for key, value in self.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(ingredient, key, value)
        return ingredient


class Ingredient(IngredientBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class IngredientList(BaseModel):
    items: List[Ingredient]
    total: int


class CookingUnitBase(BaseModel):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "gram"})


class CookingUnitCreate(CookingUnitBase):
    def to_entity(self) -> entities.CookingUnit:
        return entities.CookingUnit(name=self.name)


class CookingUnitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)

    def apply_to(self, unit: entities.CookingUnit) -> entities.CookingUnit:
        if self.name is not None:
            unit.name = self.name
        return unit


class CookingUnit(CookingUnitBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class CookingUnitList(BaseModel):
    items: List[CookingUnit]
    total: int


class IngredientRef(BaseModel):
    id: int = Field(..., gt=0, json_schema_extra={"example": 1})


class RecipeCreate(BaseModel):
    name: str = Field(
        ..., min_length=1, json_schema_extra={"example": "Salad"}
    )
    description: str = ""
    ingredients: List[IngredientRef] = Field(
        default_factory=list,
        json_schema_extra={"example": [{"id": 1}]},
    )
    steps: List[str] = Field(
        default_factory=list,
        json_schema_extra={"example": ["Chop tomato", "Serve"]},
    )

    def to_entity(self) -> entities.Recipe:
        return entities.Recipe(
            name=self.name,
            description=self.description,
            ingredients=[entities.Ingredient(id=ref.id) for ref in self.ingredients],
            steps=list(self.steps),
        )


class RecipeUpdate(BaseModel):
    """Partial update: only fields present in the request are applied."""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    ingredients: Optional[List[IngredientRef]] = None
    steps: Optional[List[str]] = None

    def apply_to(self, recipe: entities.Recipe) -> entities.Recipe:
        if self.name is not None:
            recipe.name = self.name
        if self.description is not None:
            recipe.description = self.description
        if self.ingredients is not None:
            recipe.ingredients = [entities.Ingredient(id=ref.id) for ref in self.ingredients]
        if self.steps is not None:
            recipe.steps = list(self.steps)
        return recipe


class Recipe(BaseModel):
    id: int
    name: str
    description: str = ""
    ingredients: List[Ingredient] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class RecipeList(BaseModel):
    items: List[Recipe]
    total: int
