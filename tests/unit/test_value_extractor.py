from __future__ import annotations

import pytest

from core.value_extractor import ValueExtractor, extract_deterministic, has_identifying_values
from model.intent import EntityKind, IntentKind
from fakes import ScriptedComplete
from util.errors import UpstreamUnavailable


def test_reminder_name_time_and_date() -> None:
    values = extract_deterministic(
        "Remind me to take vitamins at 9am tomorrow", IntentKind.add, EntityKind.reminder
    )
    assert values == {"reminder_name": "take vitamins", "reminder_time": "09:00", "date": "tomorrow"}


def test_reminder_toggle() -> None:
    values = extract_deterministic("Turn off gym reminder", IntentKind.update, EntityKind.reminder)
    assert values == {"reminder_name": "gym", "enabled": False}


def test_shopping_list_of_items() -> None:
    values = extract_deterministic(
        "add milk, eggs and bread to my shopping list", IntentKind.add, EntityKind.shopping
    )
    assert values == {"items": ["milk", "eggs", "bread"]}


def test_shopping_single_item_keeps_case() -> None:
    values = extract_deterministic("Add Greek Yogurt to shopping list", IntentKind.add, EntityKind.shopping)
    assert values == {"item_name": "Greek Yogurt"}


def test_shopping_rename() -> None:
    values = extract_deterministic(
        "change milk to almond milk in shopping list", IntentKind.update, EntityKind.shopping
    )
    assert values == {"old_name": "milk", "new_name": "almond milk"}


def test_measurement_update_resolves_column() -> None:
    values = extract_deterministic("change my chest to 40", IntentKind.update, EntityKind.measurement)
    assert values == {"name": "chest", "value": 40}


def test_measurement_weigh_phrase() -> None:
    values = extract_deterministic("I weigh 72.5 kg", IntentKind.add, EntityKind.measurement)
    assert values == {"name": "weight", "value": 72.5}


def test_measurement_keeps_unknown_name() -> None:
    values = extract_deterministic("set my bicepts to 14", IntentKind.update, EntityKind.measurement)
    assert values == {"name": "bicepts", "value": 14}


def test_workout_sets_reps_weight() -> None:
    values = extract_deterministic(
        "I did 3 sets of 12 bench press at 60kg", IntentKind.add, EntityKind.workout
    )
    assert values == {"sets": 3, "reps": 12, "workout_name": "bench press", "weights": 60}


def test_diet_several_meals_mark_eaten() -> None:
    values = extract_deterministic("I had lunch and dinner", IntentKind.add, EntityKind.diet)
    assert values == {"meal_types": ["Lunch", "Dinner"], "action": "mark_eaten"}


def test_diet_unmark() -> None:
    values = extract_deterministic("I didn't have breakfast", IntentKind.delete, EntityKind.diet)
    assert values == {"meal_type": "Breakfast", "action": "unmark_eaten"}


def test_recipe_slot() -> None:
    values = extract_deterministic(
        "Add corn peas masala on week 1 day 2 for dinner", IntentKind.add, EntityKind.recipe
    )
    assert values == {"food_name": "corn peas masala", "meal_type": "Dinner", "week": 1, "day": "Day 2"}


def test_steps_with_thousands_separator() -> None:
    values = extract_deterministic("walked 12,500 steps yesterday", IntentKind.add, EntityKind.steps)
    assert values == {"steps": 12500, "date": "yesterday"}


def test_has_identifying_values() -> None:
    assert has_identifying_values(EntityKind.shopping, {"items": ["milk"]})
    assert not has_identifying_values(EntityKind.shopping, {"quantity": "2"})
    assert has_identifying_values(EntityKind.analytics, {})


@pytest.mark.asyncio
async def test_extract_skips_model_when_regex_is_enough() -> None:
    complete = ScriptedComplete()
    result = await ValueExtractor(complete).extract(
        "Remind me to take vitamins at 9am", IntentKind.add, EntityKind.reminder
    )

    assert result.strategy == "regex"
    assert result.values["reminder_name"] == "take vitamins"
    assert complete.calls == []


@pytest.mark.asyncio
async def test_extract_merges_model_values_under_regex_values() -> None:
    complete = ScriptedComplete('{"reminder": {"reminder_name": "call mom", "reminder_time": "08:00"}}')
    result = await ValueExtractor(complete).extract(
        "set something for 7pm", IntentKind.add, EntityKind.reminder
    )

    assert result.strategy == "llm"
    assert result.values == {"reminder_name": "call mom", "reminder_time": "19:00"}
    assert len(complete.calls) == 1
    assert "reminder_name" in complete.calls[0]["user"]
    assert complete.calls[0]["json_mode"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [UpstreamUnavailable("down"), "sorry, no idea"])
async def test_extract_keeps_regex_values_when_model_fails(reply) -> None:  # type: ignore[no-untyped-def]
    result = await ValueExtractor(ScriptedComplete(reply)).extract(
        "set something for 7pm", IntentKind.add, EntityKind.reminder
    )

    assert result.strategy == "regex"
    assert result.values == {"reminder_time": "19:00"}


def test_workout_leading_count_is_reps() -> None:
    values = extract_deterministic("add 20 push ups", IntentKind.add, EntityKind.workout)
    assert values == {"reps": 20, "workout_name": "push ups"}


def test_shopping_delete_keeps_items_separate() -> None:
    values = extract_deterministic(
        "Remove milk and eggs from shopping list", IntentKind.delete, EntityKind.shopping
    )
    assert values == {"items": ["milk", "eggs"]}
    single = extract_deterministic("remove bread from my shopping list", IntentKind.delete, EntityKind.shopping)
    assert single == {"item_name": "bread"}
