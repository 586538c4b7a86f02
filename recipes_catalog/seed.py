import logging

from sqlalchemy.orm import Session

from . import entities
from .config import settings
from .db import SessionLocal, init_db
from .migrations import MigrationStore
from .stores import IngredientFilter, IngredientStore, RecipeStore

logger = logging.getLogger(__name__)

DEMO_INGREDIENTS = [
    ("spaghetti", "pasta"),
    ("tomato", "sauce"),
]

DEMO_RECIPE = {
    "name": "spaghetti with tomato",
    "description": "Weeknight classic.",
    "steps": [
        "Boil the pasta",
        "Prepare the sauce",
        "Mix the pasta with the sauce",
    ],
}


def seed_demo(db: Session) -> entities.Recipe:
    """Insert the demo ingredients (skipping ones that exist) and one recipe using them."""
    ingredient_store = IngredientStore(db)
    used = []
    for name, type_ in DEMO_INGREDIENTS:
        found = ingredient_store.find_by_filter(IngredientFilter(name=name, type=type_))
        if found:
            used.append(found[0])
            continue
        used.append(ingredient_store.add(entities.Ingredient(name=name, type=type_)))

    recipe = entities.Recipe(ingredients=used, **DEMO_RECIPE)
    RecipeStore(db).add(recipe)
    return recipe


def main():
    logging.basicConfig(level=settings.log_level)
    init_db(MigrationStore.load(settings.migrations_dir))
    db = SessionLocal()
    try:
        recipe = seed_demo(db)
    finally:
        db.close()
    print(f"Seeded recipe {recipe.id}: {recipe.name}")
    for i, step in enumerate(recipe.steps, start=1):
        print(f"  {i}. {step}")


if __name__ == "__main__":
    main()
