from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from model.action import ActionKind
from core.value_extractor import extract_deterministic
from model.intent import Classification, ClassificationMethod, EntityKind, IntentKind
from repository.namespaces import Table
from service.action_executor import ActionExecutor
from fakes import BrokenRecordRepository, InMemoryRecordRepository


def _cls(intent: str, entity: str, **values: Any) -> Classification:
    return Classification(
        intent=IntentKind(intent),
        entity=EntityKind(entity),
        extracted_values=values,
        method=ClassificationMethod.fallback,
        confidence=0.6,
    )


@pytest.fixture()
def executor(store: InMemoryRecordRepository, today: date) -> ActionExecutor:
    return ActionExecutor(store=store, today=lambda: today)


@pytest.mark.asyncio
async def test_query_and_chat_need_no_action(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    for intent in ("query", "chat"):
        result = await executor.execute(_cls(intent, "workout"))
        assert result.success
        assert result.action == ActionKind.query
    assert store.tables == {}


@pytest.mark.asyncio
async def test_unrouted_entity_fails(executor: ActionExecutor) -> None:
    result = await executor.execute(_cls("add", "book", book_name="Dune"))

    assert not result.success
    assert result.error == "Unknown entity: book"


@pytest.mark.asyncio
async def test_marking_breakfast_twice_is_skipped(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    first = await executor.execute(_cls("add", "diet", meal_type="Breakfast", action="mark_eaten"))
    second = await executor.execute(_cls("add", "diet", meal_type="breakfast", action="mark_eaten"))

    assert first.action == ActionKind.added
    assert second.success
    assert second.action == ActionKind.skipped
    rows = store.all(Table.diet_logs)
    assert len(rows) == 1
    assert (rows[0]["week"], rows[0]["day"], rows[0]["meal_type"]) == (3, "Day 4", "Breakfast")


@pytest.mark.asyncio
async def test_mark_eaten_links_planned_recipe(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    recipe = await store.insert(
        Table.food_recipes,
        {"week": 3, "day": "Day 4", "meal_type": "Lunch", "food_name": "Dal rice", "approx_calories": 520},
    )

    result = await executor.execute(_cls("add", "diet", meal_types=["Lunch", "Dinner"], action="mark_eaten"))

    assert result.action == ActionKind.added
    lunch, dinner = store.all(Table.diet_logs)
    assert lunch["food_name"] == "Dal rice"
    assert lunch["calories"] == 520
    assert lunch["recipe_id"] == recipe["id"]
    assert dinner["recipe_id"] is None


@pytest.mark.asyncio
async def test_unmark_meal(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    await executor.execute(_cls("add", "diet", meal_type="Dinner", action="mark_eaten"))

    result = await executor.execute(_cls("delete", "diet", meal_type="Dinner", action="unmark_eaten"))

    assert result.action == ActionKind.deleted
    assert store.all(Table.diet_logs) == []


@pytest.mark.asyncio
async def test_steps_add_accumulates_but_update_replaces(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    await executor.execute(_cls("add", "steps", steps=4000))
    added = await executor.execute(_cls("add", "steps", steps=1000))

    assert added.action == ActionKind.updated
    assert "New total: 5000" in added.message
    assert [r["steps"] for r in store.all(Table.steps)] == [5000]

    updated = await executor.execute(_cls("update", "steps", steps=1000))

    assert updated.action == ActionKind.updated
    rows = store.all(Table.steps)
    assert [r["steps"] for r in rows] == [1000]
    assert rows[0]["date"] == "2025-10-18"
    assert rows[0]["day"] == "Saturday"


@pytest.mark.asyncio
async def test_steps_rejects_non_positive(executor: ActionExecutor) -> None:
    result = await executor.execute(_cls("add", "steps", steps=0))

    assert not result.success


@pytest.mark.asyncio
async def test_shopping_items_become_rows(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    result = await executor.execute(_cls("add", "shopping", items=["milk", "eggs", "bread"]))

    assert result.action == ActionKind.added
    rows = store.all(Table.shopping_list)
    assert [r["grocery_name"] for r in rows] == ["milk", "eggs", "bread"]
    assert all(r["amount"] == "1 unit" and r["price_rupees"] == 0 for r in rows)


@pytest.mark.asyncio
async def test_shopping_rename(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    await executor.execute(_cls("add", "shopping", item_name="milk"))

    result = await executor.execute(_cls("update", "shopping", old_name="milk", new_name="almond milk"))

    assert result.action == ActionKind.updated
    assert store.all(Table.shopping_list)[0]["grocery_name"] == "almond milk"


@pytest.mark.asyncio
async def test_measurement_update_touches_one_column(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    await executor.execute(_cls("add", "measurement", name="weight", value=72))

    result = await executor.execute(_cls("update", "measurement", name="chest", value=40))

    assert result.action == ActionKind.updated
    rows = store.all(Table.body_measurements)
    assert len(rows) == 1
    assert rows[0]["weight"] == 72
    assert rows[0]["chest"] == 40


@pytest.mark.asyncio
async def test_unknown_measurement_fails(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    result = await executor.execute(_cls("update", "measurement", name="bicepts", value=14))

    assert not result.success
    assert result.error.startswith("Unknown measurement: bicepts")
    assert store.all(Table.body_measurements) == []


@pytest.mark.asyncio
async def test_clearing_an_empty_measurement(executor: ActionExecutor) -> None:
    await executor.execute(_cls("add", "measurement", name="neck", value=15))

    cleared = await executor.execute(_cls("delete", "measurement", name="neck"))
    again = await executor.execute(_cls("delete", "measurement", name="neck"))

    assert cleared.action == ActionKind.deleted
    assert again.success
    assert again.action == ActionKind.none


@pytest.mark.asyncio
async def test_reminder_add_and_disable(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    added = await executor.execute(_cls("add", "reminder", reminder_name="gym"))

    assert added.action == ActionKind.added
    row = store.all(Table.reminders)[0]
    assert (row["reminder_time"], row["date"], row["enabled"]) == ("09:00", "2025-10-18", True)

    toggled = await executor.execute(_cls("update", "reminder", reminder_name="gym", enabled=False))

    assert toggled.action == ActionKind.updated
    assert store.all(Table.reminders)[0]["enabled"] is False


@pytest.mark.asyncio
async def test_recipe_defaults(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    await executor.execute(_cls("add", "recipe", food_name="Poha", ingredients=["poha", "peanuts"]))

    row = store.all(Table.food_recipes)[0]
    assert (row["week"], row["day"], row["meal_type"], row["day_of_month"]) == (1, "Day 1", "Snack", 1)
    assert row["ingredients"] == [{"name": "poha", "amount": ""}, {"name": "peanuts", "amount": ""}]


@pytest.mark.asyncio
async def test_workout_update_without_match_inserts(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    result = await executor.execute(_cls("update", "workout", workout_name="squats", sets=4))

    assert result.action == ActionKind.added
    assert store.all(Table.workouts)[0]["sets"] == 4


@pytest.mark.asyncio
async def test_override_values_replace_extracted(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    result = await executor.execute(
        _cls("add", "wishlist", item_name="ignored"), override_values={"item_name": "Kindle", "priority": "urgent"}
    )

    assert result.success
    row = store.all(Table.wishlist)[0]
    assert row["item_name"] == "Kindle"
    assert row["priority"] == "medium"


@pytest.mark.asyncio
async def test_store_failure_becomes_failed_result(today: date) -> None:
    executor = ActionExecutor(store=BrokenRecordRepository(), today=lambda: today)

    result = await executor.execute(_cls("add", "steps", steps=500))

    assert not result.success
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_fuzzy_delete_removes_every_matching_row(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    for name in ("milk", "bread", "almond milk"):
        await executor.execute(_cls("add", "shopping", item_name=name))

    result = await executor.execute(_cls("delete", "shopping", item_name="Milk"))

    assert result.success
    assert result.action == ActionKind.deleted
    assert sorted(r["grocery_name"] for r in result.data) == ["almond milk", "milk"]
    assert [r["grocery_name"] for r in store.all(Table.shopping_list)] == ["bread"]


@pytest.mark.asyncio
async def test_fuzzy_update_touches_newest_match_only(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    await executor.execute(_cls("add", "shopping", item_name="milk"))
    await executor.execute(_cls("add", "shopping", item_name="almond milk"))

    result = await executor.execute(_cls("update", "shopping", item_name="milk", quantity="2 litres"))

    assert result.success
    assert result.data["grocery_name"] == "almond milk"
    amounts = {r["grocery_name"]: r["amount"] for r in store.all(Table.shopping_list)}
    assert amounts["almond milk"] == "2 litres"
    assert amounts["milk"] != "2 litres"


@pytest.mark.asyncio
async def test_multi_item_delete_from_one_message(executor: ActionExecutor, store) -> None:  # type: ignore[no-untyped-def]
    await executor.execute(_cls("add", "shopping", items=["milk", "eggs", "rice"]))
    values = extract_deterministic(
        "Remove milk and eggs from shopping list", IntentKind.delete, EntityKind.shopping
    )

    result = await executor.execute(_cls("delete", "shopping", **values))

    assert result.success
    assert [r["grocery_name"] for r in store.all(Table.shopping_list)] == ["rice"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("intent", "entity", "values", "error"),
    [
        ("delete", "shopping", {"item_name": "caviar"}, "No matching item found"),
        ("update", "shopping", {"item_name": "caviar", "quantity": "1"}, 'Could not find "caviar" in shopping list'),
        ("delete", "wishlist", {"item_name": "yacht"}, "No matching item found"),
        ("update", "wishlist", {"item_name": "yacht", "price": 10}, 'Could not find "yacht" in wishlist'),
        ("delete", "workout", {"workout_name": "deadlift"}, "No matching workout found"),
        ("update", "reminder", {"reminder_name": "dentist", "enabled": False}, 'No reminder found matching "dentist"'),
        ("delete", "reminder", {"reminder_name": "dentist"}, "No matching reminder found"),
        ("delete", "steps", {"date": "today"}, "No steps logged for Saturday"),
        ("delete", "measurement", {"name": "chest"}, "No measurements found to clear"),
    ],
)
async def test_missing_rows_are_reported(  # type: ignore[no-untyped-def]
    executor: ActionExecutor, store, intent: str, entity: str, values: dict, error: str
) -> None:
    result = await executor.execute(_cls(intent, entity, **values))

    assert not result.success
    assert result.error == error
    assert all(not rows for rows in store.tables.values())
