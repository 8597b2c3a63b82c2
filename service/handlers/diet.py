# service/handlers/diet.py
from datetime import date
from typing import List
from model.action import ActionKind, ActionResult, Record
from repository.namespaces import Table
from repository.record_repository import RecordRepository, contains, equals
from core.temporal import meal_plan_slot
from service.handlers.common import Values, number_value, pick, row_id, text_value
from util.functions import meal_label
import logging

logger = logging.getLogger(__name__)

_MEAL_HINT = "Please specify which meal(s) you had (breakfast, lunch, snack, dinner)"


def _meals(values: Values) -> List[str]:
    raw = values.get("meal_types")
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not raw:
        single = text_value(values, "meal_type", "meal")
        raw = [single] if single else []
    out: List[str] = []
    for m in raw:
        label = meal_label(str(m))
        if label and label not in out:
            out.append(label)
    return out


async def mark_eaten(store: RecordRepository, values: Values, today: date) -> ActionResult:
    """
    Log each meal for today's plan slot once. A meal already logged for the
    slot is skipped; otherwise the planned recipe (if any) is linked.
    """
    meals = _meals(values)
    if not meals:
        return ActionResult.fail(_MEAL_HINT)
    week, day, _ = meal_plan_slot(today)

    logged: List[Record] = []
    already: List[str] = []
    for meal in meals:
        if await store.find_latest(Table.diet_logs, equals(meal_type=meal, week=week, day=day)):
            already.append(meal)
            continue
        recipe = await store.find_latest(
            Table.food_recipes, equals(week=week, day=day, meal_type=meal)
        )
        logged.append(
            await store.insert(
                Table.diet_logs,
                {
                    "food_name": recipe["food_name"] if recipe else meal,
                    "meal_type": meal,
                    "week": week,
                    "day": day,
                    "calories": (recipe or {}).get("approx_calories") or 0,
                    "recipe_id": recipe["id"] if recipe else None,
                },
            )
        )

    logger.info("action.diet.mark week=%d day=%s new=%d skipped=%d", week, day, len(logged), len(already))
    if not logged:
        return ActionResult.ok(ActionKind.skipped, f"{', '.join(already)} already marked as eaten")
    message = f"Marked {', '.join(r['meal_type'] for r in logged)} as eaten!"
    if already:
        message += f" ({', '.join(already)} was already logged)"
    return ActionResult.ok(ActionKind.added, message, logged)


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    food = text_value(values, "food_name", "name", "food")
    if values.get("action") == "mark_eaten" or (not food and _meals(values)):
        return await mark_eaten(store, values, today)
    if not food:
        return ActionResult.fail(_MEAL_HINT)

    week, day, _ = meal_plan_slot(today)
    meal = text_value(values, "meal_type", "meal")
    calories = number_value(values, "calories") or 0
    row = await store.insert(
        Table.diet_logs,
        {
            "food_name": food,
            "meal_type": meal_label(meal) if meal else "Snack",
            "week": int(number_value(values, "week") or week),
            "day": text_value(values, "day") or day,
            "calories": calories,
            "recipe_id": values.get("recipe_id"),
        },
    )
    return ActionResult.ok(ActionKind.added, f"Logged {food} ({calories} cal)", row)


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    food = text_value(values, "food_name", "name", "food")
    meals = _meals(values)
    if food:
        predicate = contains("food_name", food)
    elif meals:
        week, day, _ = meal_plan_slot(today)
        predicate = equals(meal_type=meals[0], week=week, day=day)
    else:
        return ActionResult.fail("Please tell me which food or meal to update")

    changes = pick(values, {"food_name": ("new_name",), "calories": ("calories",)})
    if food and meals:
        changes["meal_type"] = meals[0]
    if not changes:
        return ActionResult.fail("Please tell me what to change (name, calories or meal)")

    row = await store.update_by_match(Table.diet_logs, predicate, changes)
    if row is None:
        return ActionResult.fail("No matching diet log found")
    return ActionResult.ok(ActionKind.updated, f"Updated diet log: {row['food_name']}", row)


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    meals = _meals(values)
    food = text_value(values, "food_name", "name", "food")
    rid = row_id(values)

    if values.get("action") == "unmark_eaten" or (meals and not food and rid is None):
        week, day, _ = meal_plan_slot(today)
        removed: List[Record] = []
        for meal in meals:
            removed += await store.delete_by_match(
                Table.diet_logs, equals(meal_type=meal, week=week, day=day)
            )
        if not removed:
            return ActionResult.fail(f"{', '.join(meals) or 'That meal'} was not marked as eaten")
        unmarked = ", ".join(dict.fromkeys(r["meal_type"] for r in removed))
        return ActionResult.ok(ActionKind.deleted, f"Unmarked {unmarked} as eaten", removed)

    if rid is not None:
        row = await store.delete_by_id(Table.diet_logs, rid)
        rows = [row] if row else []
    elif food:
        rows = await store.delete_by_match(Table.diet_logs, contains("food_name", food))
    else:
        return ActionResult.fail("Please tell me which food or meal to remove")

    if not rows:
        return ActionResult.fail("No matching diet log found")
    return ActionResult.ok(ActionKind.deleted, f"Deleted {len(rows)} diet log(s)", rows)
