import logging

import pytest
from sqlalchemy import func, select, text

from recipes_catalog import entities, models
from recipes_catalog.errors import NotFound, StorageError
from recipes_catalog.stores import (
    IngredientStore,
    RecipeFilter,
    RecipeStore,
    reconcile_steps,
)


@pytest.fixture
def tomato(db):
    return IngredientStore(db).add(entities.Ingredient(name="tomato", type="vegetable"))


@pytest.fixture
def store(db):
    return RecipeStore(db)


def step_rows(db, recipe_id):
    return (
        db.query(models.RecipeStep)
        .filter(models.RecipeStep.recipe_id == recipe_id)
        .order_by(models.RecipeStep.order)
        .all()
    )


def link_count(db):
    return db.execute(select(func.count()).select_from(models.recipe_ingredients)).scalar_one()


def test_salad_scenario(store, tomato):
    assert tomato.id == 1
    salad = entities.Recipe(
        name="Salad",
        ingredients=[entities.Ingredient(id=1)],
        steps=["Chop tomato", "Serve"],
    )

    store.add(salad)
    found = store.find_by_id(salad.id)

    assert found.steps == ["Chop tomato", "Serve"]
    assert entities.Ingredient(id=1, name="tomato", type="vegetable") in found.ingredients


def test_add_round_trip(db, store, tomato):
    basil = IngredientStore(db).add(entities.Ingredient(name="basil", type="herb"))
    recipe = entities.Recipe(
        name="Caprese",
        description="No cooking needed",
        ingredients=[tomato, basil],
        steps=["Slice", "Layer", "Season"],
    )

    store.add(recipe)
    found = store.find_by_id(recipe.id)

    assert found.name == recipe.name
    assert found.description == recipe.description
    assert found.steps == recipe.steps
    assert {i.id for i in found.ingredients} == {tomato.id, basil.id}
    assert [s.order for s in step_rows(db, recipe.id)] == [1, 2, 3]


def test_add_with_unknown_ingredient_persists_nothing(db, store):
    recipe = entities.Recipe(
        name="Ghost soup",
        ingredients=[entities.Ingredient(id=404)],
        steps=["Boil"],
    )

    with pytest.raises(NotFound):
        store.add(recipe)

    assert store.count_by_filter(RecipeFilter()) == 0
    assert db.query(models.RecipeStep).count() == 0
    assert link_count(db) == 0


def test_add_ignores_caller_id(store):
    first = store.add(entities.Recipe(name="one", steps=["a"]))
    second = entities.Recipe(id=first.id, name="two", steps=["b"])

    store.add(second)

    assert second.id != first.id
    assert store.find_by_id(first.id).name == "one"
    assert store.find_by_id(second.id).steps == ["b"]


def test_steps_sorted_whatever_the_storage_order(db, store):
    row = models.Recipe(
        name="Reversed",
        description="",
        steps=[
            models.RecipeStep(order=3, content="third"),
            models.RecipeStep(order=1, content="first"),
            models.RecipeStep(order=2, content="second"),
        ],
    )
    db.add(row)
    db.commit()
    recipe_id = row.id
    db.expunge_all()

    assert store.find_by_id(recipe_id).steps == ["first", "second", "third"]
    assert store.find_by_filter(RecipeFilter())[0].steps == ["first", "second", "third"]


def test_find_by_id_missing(store):
    with pytest.raises(NotFound):
        store.find_by_id(1)


def test_edit_truncates_steps(db, store):
    recipe = store.add(entities.Recipe(name="r", steps=["s1", "s2", "s3"]))
    before = [s.id for s in step_rows(db, recipe.id)]

    recipe.steps = ["s1", "s2"]
    store.edit(recipe)

    rows = step_rows(db, recipe.id)
    assert [(s.id, s.order, s.content) for s in rows] == [
        (before[0], 1, "s1"),
        (before[1], 2, "s2"),
    ]
    assert db.get(models.RecipeStep, before[2]) is None
    assert store.find_by_id(recipe.id).steps == ["s1", "s2"]


def test_edit_appends_steps(db, store):
    recipe = store.add(entities.Recipe(name="r", steps=["s1", "s2", "s3"]))
    before = [s.id for s in step_rows(db, recipe.id)]

    recipe.steps = ["s1", "s2", "s3", "s4"]
    store.edit(recipe)

    rows = step_rows(db, recipe.id)
    assert [s.id for s in rows[:3]] == before
    assert [s.content for s in rows] == ["s1", "s2", "s3", "s4"]
    assert rows[3].order == 4
    assert rows[3].id not in before


def test_edit_mid_insert_rewrites_content_by_position(db, store):
    recipe = store.add(entities.Recipe(name="r", steps=["a", "b", "c"]))
    before = [s.id for s in step_rows(db, recipe.id)]

    recipe.steps = ["a", "x", "b", "c"]
    store.edit(recipe)

    rows = step_rows(db, recipe.id)
    assert [s.id for s in rows[:3]] == before
    assert [s.content for s in rows] == ["a", "x", "b", "c"]


def test_edit_to_no_steps(db, store):
    recipe = store.add(entities.Recipe(name="r", steps=["a", "b"]))

    recipe.steps = []
    store.edit(recipe)

    assert step_rows(db, recipe.id) == []


def test_edit_replaces_fields_and_links(db, store, tomato):
    basil = IngredientStore(db).add(entities.Ingredient(name="basil", type="herb"))
    recipe = store.add(entities.Recipe(name="Salad", ingredients=[tomato], steps=["Serve"]))

    recipe.name = "Green salad"
    recipe.description = "with basil"
    recipe.ingredients = [basil]
    store.edit(recipe)

    found = store.find_by_id(recipe.id)
    assert found.name == "Green salad"
    assert found.description == "with basil"
    assert [i.name for i in found.ingredients] == ["basil"]
    assert link_count(db) == 1


def test_edit_missing_recipe(store):
    with pytest.raises(NotFound):
        store.edit(entities.Recipe(id=12, name="nope", steps=["a"]))

    assert store.count_by_filter(RecipeFilter()) == 0


def test_edit_with_unknown_ingredient_changes_nothing(db, store, tomato):
    recipe = store.add(entities.Recipe(name="Salad", ingredients=[tomato], steps=["a", "b", "c"]))
    step_ids = [s.id for s in step_rows(db, recipe.id)]

    recipe.name = "Mystery salad"
    recipe.steps = ["a"]
    recipe.ingredients = [entities.Ingredient(id=999)]
    with pytest.raises(NotFound):
        store.edit(recipe)

    found = store.find_by_id(recipe.id)
    assert found.name == "Salad"
    assert found.steps == ["a", "b", "c"]
    assert found.ingredients == [tomato]
    assert [s.id for s in step_rows(db, recipe.id)] == step_ids


def test_delete_keeps_shared_ingredients(db, store, tomato):
    recipe = store.add(entities.Recipe(name="Salad", ingredients=[tomato], steps=["Chop", "Serve"]))
    step_ids = [s.id for s in step_rows(db, recipe.id)]

    store.delete(entities.Recipe(id=recipe.id))

    for step_id in step_ids:
        assert db.get(models.RecipeStep, step_id) is None
    with pytest.raises(NotFound):
        store.find_by_id(recipe.id)
    assert IngredientStore(db).find_by_id(tomato.id).name == "tomato"
    assert link_count(db) == 0


def test_delete_missing_recipe(store):
    with pytest.raises(NotFound):
        store.delete(entities.Recipe(id=5))


def test_filter_and_count(store):
    first = store.add(entities.Recipe(name="one", steps=["a"]))
    store.add(entities.Recipe(name="two", steps=["b"]))

    # a zero id is "no constraint", not "no match"
    assert len(store.find_by_filter(RecipeFilter(id=0))) == 2
    assert store.count_by_filter(RecipeFilter()) == 2

    only = store.find_by_filter(RecipeFilter(id=first.id))
    assert [r.name for r in only] == ["one"]
    assert store.count_by_filter(RecipeFilter(id=first.id)) == 1
    assert store.count_by_filter(RecipeFilter(id=999)) == 0
    assert store.find_by_filter(RecipeFilter(id=999)) == []


def test_reconcile_steps_is_positional():
    current = [
        models.RecipeStep(id=12, order=2, content="b"),
        models.RecipeStep(id=11, order=1, content="a"),
        models.RecipeStep(id=13, order=3, content="c"),
    ]

    shorter = reconcile_steps(list(current), ["A", "B"])
    assert [(s.id, s.order, s.content) for s in shorter] == [(11, 1, "A"), (12, 2, "B")]

    longer = reconcile_steps(list(current), ["A", "B", "C", "D"])
    assert [(s.id, s.order, s.content) for s in longer] == [
        (11, 1, "A"),
        (12, 2, "B"),
        (13, 3, "C"),
        (None, 4, "D"),
    ]


def test_read_failures_are_logged_and_wrapped(db, store, caplog):
    db.execute(text("DROP TABLE recipes"))

    with caplog.at_level(logging.ERROR, logger="recipes_catalog.stores.recipe"):
        with pytest.raises(StorageError):
            store.find_by_id(1)
        with pytest.raises(StorageError):
            store.find_by_filter(RecipeFilter())
        with pytest.raises(StorageError):
            store.count_by_filter(RecipeFilter())

    messages = [r.getMessage() for r in caplog.records if r.name == "recipes_catalog.stores.recipe"]
    assert messages == [
        "Loading recipe 1 failed",
        "Listing recipes failed",
        "Counting recipes failed",
    ]
