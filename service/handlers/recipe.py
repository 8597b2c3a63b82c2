# service/handlers/recipe.py
import re
from datetime import date
from typing import Any, List, Optional, Tuple
from model.action import ActionKind, ActionResult
from repository.namespaces import Table
from repository.record_repository import RecordRepository, contains
from service.handlers.common import Values, number_value, pick, row_id, text_value
from util.functions import meal_label
import logging

logger = logging.getLogger(__name__)

DEFAULT_WEEK = 1
DEFAULT_DAY = "Day 1"
DEFAULT_MEAL = "Snack"


def day_label(raw: Any) -> Optional[str]:
    """2, "2", "day 2", "Day 2" -> "Day 2"."""
    if raw is None:
        return None
    m = re.search(r"\d+", str(raw))
    if not m:
        return None
    n = int(m.group(0))
    return f"Day {n}" if 1 <= n <= 7 else None


def day_of_month(week: int, day: str) -> int:
    # the plan lays weeks of Day 1-7 over the calendar month
    return (week - 1) * 7 + int(day.split()[-1])


def _ingredients(raw: Any) -> List[Any]:
    if isinstance(raw, str):
        raw = [p.strip() for p in raw.split(",") if p.strip()]
    if not isinstance(raw, list):
        return []
    return [{"name": i, "amount": ""} if isinstance(i, str) else i for i in raw]


def _slot(values: Values) -> Tuple[int, str]:
    week = number_value(values, "week")
    week = int(week) if week and int(week) >= 1 else DEFAULT_WEEK
    return week, day_label(values.get("day")) or DEFAULT_DAY


def _unwrap(values: Values) -> Values:
    inner = values.get("recipe")
    if isinstance(inner, dict) and inner.get("food_name"):
        return {**values, **inner}
    return values


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    values = _unwrap(values)
    name = text_value(values, "food_name", "name", "recipe_name")
    if not name:
        return ActionResult.fail('Please tell me the recipe name. Example: "add chicken salad recipe"')

    week, day = _slot(values)
    meal = text_value(values, "meal_type", "meal")
    row = await store.insert(
        Table.food_recipes,
        {
            "week": week,
            "day": day,
            "day_of_month": day_of_month(week, day),
            "meal_type": meal_label(meal) if meal else DEFAULT_MEAL,
            "food_name": name,
            "ingredients": _ingredients(values.get("ingredients")),
            "servings": number_value(values, "servings") or 1,
            "recipe": text_value(values, "recipe", "instructions") or "",
            "approx_calories": number_value(values, "approx_calories", "calories"),
            "protein": number_value(values, "protein"),
            "fat": number_value(values, "fat"),
            "carbs": number_value(values, "carbs"),
        },
    )
    logger.info("action.recipe.add id=%s slot=%s/%s", row["id"], week, day)
    return ActionResult.ok(ActionKind.added, f"Added recipe: {name}", row)


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    values = _unwrap(values)
    name = text_value(values, "food_name", "name", "recipe_name")
    if not name:
        return ActionResult.fail(
            "Recipe name (food_name) is required to identify which recipe to update"
        )
    existing = await store.find_latest(Table.food_recipes, contains("food_name", name))
    if existing is None:
        return ActionResult.fail(f"No recipe found matching: {name}")

    changes = pick(
        values,
        {
            "food_name": ("new_name",),
            "servings": ("servings",),
            "recipe": ("recipe", "instructions"),
            "approx_calories": ("approx_calories", "calories"),
            "protein": ("protein",),
            "fat": ("fat",),
            "carbs": ("carbs",),
        },
    )
    if values.get("meal_type"):
        changes["meal_type"] = meal_label(str(values["meal_type"]))
    if values.get("ingredients"):
        changes["ingredients"] = _ingredients(values["ingredients"])
    if values.get("week") is not None or values.get("day") is not None:
        week = number_value(values, "week")
        week = int(week) if week else int(existing.get("week") or DEFAULT_WEEK)
        day = day_label(values.get("day")) or existing.get("day") or DEFAULT_DAY
        changes.update(week=week, day=day, day_of_month=day_of_month(week, day))

    if not changes:
        return ActionResult.fail("No fields to update provided")
    row = await store.update_by_id(Table.food_recipes, int(existing["id"]), changes)
    return ActionResult.ok(ActionKind.updated, f"Updated recipe: {existing['food_name']}", row)


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    values = _unwrap(values)
    rid = row_id(values)
    name = text_value(values, "food_name", "name", "recipe_name")
    if rid is not None:
        row = await store.delete_by_id(Table.food_recipes, rid)
        rows = [row] if row else []
    elif name:
        rows = await store.delete_by_match(Table.food_recipes, contains("food_name", name))
    else:
        return ActionResult.fail("Recipe name or ID is required to delete")

    if not rows:
        return ActionResult.fail("No matching recipe found")
    return ActionResult.ok(ActionKind.deleted, f"Deleted {len(rows)} recipe(s)", rows)
