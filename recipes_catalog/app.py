import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import entities, schemas
from .config import settings
from .db import SessionLocal, init_db
from .errors import NotFound, StorageError
from .migrations import MigrationStore
from .stores import (
    CookingUnitFilter,
    CookingUnitStore,
    IngredientFilter,
    IngredientStore,
    RecipeFilter,
    RecipeStore,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)
    # Migrations are loaded once here and applied before serving
    init_db(MigrationStore.load(settings.migrations_dir))
    yield


app = FastAPI(title="Recipes Catalog", lifespan=lifespan)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": exc.message})


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_ingredient_store(db: Session = Depends(get_db)) -> IngredientStore:
    return IngredientStore(db)


def get_cooking_unit_store(db: Session = Depends(get_db)) -> CookingUnitStore:
    return CookingUnitStore(db)


def get_recipe_store(db: Session = Depends(get_db)) -> RecipeStore:
    return RecipeStore(db)


ingredients = APIRouter(prefix="/ingredients", tags=["ingredients"])


@ingredients.get("", response_model=schemas.IngredientList)
def list_ingredients(
    name: str | None = None,
    type: str | None = None,
    store: IngredientStore = Depends(get_ingredient_store),
):
    f = IngredientFilter(name=name, type=type)
    return {"items": store.find_by_filter(f), "total": store.count_by_filter(f)}


@ingredients.get("/{ingredient_id}", response_model=schemas.Ingredient)
def get_ingredient(ingredient_id: int, store: IngredientStore = Depends(get_ingredient_store)):
    return store.find_by_id(ingredient_id)


@ingredients.post("", response_model=schemas.Ingredient, status_code=201)
def create_ingredient(
    payload: schemas.IngredientCreate,
    store: IngredientStore = Depends(get_ingredient_store),
):
    return store.add(payload.to_entity())


@ingredients.patch("/{ingredient_id}", response_model=schemas.Ingredient)
def edit_ingredient(
    ingredient_id: int,
    payload: schemas.IngredientUpdate,
    store: IngredientStore = Depends(get_ingredient_store),
):
    ingredient = payload.apply_to(store.find_by_id(ingredient_id))
    return store.edit(ingredient)


@ingredients.delete("/{ingredient_id}", status_code=204)
def delete_ingredient(ingredient_id: int, store: IngredientStore = Depends(get_ingredient_store)):
    store.delete(entities.Ingredient(id=ingredient_id))


cooking_units = APIRouter(prefix="/cooking-units", tags=["cooking units"])


@cooking_units.get("", response_model=schemas.CookingUnitList)
def list_cooking_units(
    name: str | None = None,
    store: CookingUnitStore = Depends(get_cooking_unit_store),
):
    f = CookingUnitFilter(name=name)
    return {"items": store.find_by_filter(f), "total": store.count_by_filter(f)}


@cooking_units.get("/{unit_id}", response_model=schemas.CookingUnit)
def get_cooking_unit(unit_id: int, store: CookingUnitStore = Depends(get_cooking_unit_store)):
    return store.find_by_id(unit_id)


@cooking_units.post("", response_model=schemas.CookingUnit, status_code=201)
def create_cooking_unit(
    payload: schemas.CookingUnitCreate,
    store: CookingUnitStore = Depends(get_cooking_unit_store),
):
    return store.add(payload.to_entity())


@cooking_units.patch("/{unit_id}", response_model=schemas.CookingUnit)
def edit_cooking_unit(
    unit_id: int,
    payload: schemas.CookingUnitUpdate,
    store: CookingUnitStore = Depends(get_cooking_unit_store),
):
    return store.edit(payload.apply_to(store.find_by_id(unit_id)))


@cooking_units.delete("/{unit_id}", status_code=204)
def delete_cooking_unit(unit_id: int, store: CookingUnitStore = Depends(get_cooking_unit_store)):
    store.delete(entities.CookingUnit(id=unit_id))


recipes = APIRouter(prefix="/recipes", tags=["recipes"])


@recipes.get("", response_model=schemas.RecipeList)
def list_recipes(id: int = 0, store: RecipeStore = Depends(get_recipe_store)):
    f = RecipeFilter(id=id)
    return {"items": store.find_by_filter(f), "total": store.count_by_filter(f)}


@recipes.get("/{recipe_id}", response_model=schemas.Recipe)
def get_recipe(recipe_id: int, store: RecipeStore = Depends(get_recipe_store)):
    return store.find_by_id(recipe_id)


@recipes.post("", response_model=schemas.Recipe, status_code=201)
def create_recipe(payload: schemas.RecipeCreate, store: RecipeStore = Depends(get_recipe_store)):
    return store.add(payload.to_entity())


@recipes.patch("/{recipe_id}", response_model=schemas.Recipe)
def edit_recipe(
    recipe_id: int,
    payload: schemas.RecipeUpdate,
    store: RecipeStore = Depends(get_recipe_store),
):
    recipe = payload.apply_to(store.find_by_id(recipe_id))
    return store.edit(recipe)


@recipes.delete("/{recipe_id}", status_code=204)
def delete_recipe(recipe_id: int, store: RecipeStore = Depends(get_recipe_store)):
    store.delete(entities.Recipe(id=recipe_id))


app.include_router(ingredients)
app.include_router(cooking_units)
app.include_router(recipes)
