from .cooking_unit import CookingUnitFilter, CookingUnitStore
from .ingredient import IngredientFilter, IngredientStore
from .recipe import RecipeFilter, RecipeStore, reconcile_steps

__all__ = [
    'CookingUnitFilter', 'CookingUnitStore',
    'IngredientFilter', 'IngredientStore',
    'RecipeFilter', 'RecipeStore', 'reconcile_steps',
]
