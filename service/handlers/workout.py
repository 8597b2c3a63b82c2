# service/handlers/workout.py
from datetime import date
from model.action import ActionKind, ActionResult
from repository.namespaces import Table
from repository.record_repository import RecordRepository, contains
from core.temporal import day_name, resolve_date
from service.handlers.common import Values, number_value, pick, row_id, text_value
import logging

logger = logging.getLogger(__name__)

_NAME_HINT = 'Please tell me the workout name. Example: "add squats" or "did 3 sets of bench press"'


def _row(name: str, values: Values, today: date) -> Values:
    when = resolve_date(values.get("date"), today)
    return {
        "workout_name": name,
        "sets": number_value(values, "sets"),
        "reps": number_value(values, "reps"),
        "weights": number_value(values, "weights", "weight"),
        "day": day_name(when),
        "date": when.isoformat(),
    }


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    name = text_value(values, "workout_name", "name")
    if not name:
        return ActionResult.fail(_NAME_HINT)
    row = await store.insert(Table.workouts, _row(name, values, today))
    logger.info("action.workout.add id=%s", row["id"])
    return ActionResult.ok(ActionKind.added, f"Added workout: {name}", row)


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    name = text_value(values, "workout_name", "name")
    if not name:
        return ActionResult.fail(_NAME_HINT)

    changes = pick(
        values,
        {"workout_name": ("new_name",), "sets": ("sets",), "reps": ("reps",), "weights": ("weights", "weight")},
    )
    if values.get("date"):
        when = resolve_date(values["date"], today)
        changes.update(date=when.isoformat(), day=day_name(when))

    existing = await store.find_latest(Table.workouts, contains("workout_name", name))
    if existing is None:
        # nothing logged under that name yet: record it instead
        row = await store.insert(Table.workouts, _row(name, values, today))
        logger.info("action.workout.update.inserted id=%s", row["id"])
        return ActionResult.ok(ActionKind.added, f"Added workout: {name}", row)
    if not changes:
        return ActionResult.fail("Please tell me what to change (sets, reps, weight or date)")

    row = await store.update_by_id(Table.workouts, int(existing["id"]), changes)
    return ActionResult.ok(ActionKind.updated, f"Updated workout: {existing['workout_name']}", row)


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    rid = row_id(values)
    name = text_value(values, "workout_name", "name")
    if rid is not None:
        row = await store.delete_by_id(Table.workouts, rid)
        rows = [row] if row else []
    elif name:
        rows = await store.delete_by_match(Table.workouts, contains("workout_name", name))
    else:
        return ActionResult.fail(_NAME_HINT)

    if not rows:
        return ActionResult.fail("No matching workout found")
    return ActionResult.ok(ActionKind.deleted, f"Deleted {len(rows)} workout(s)", rows)
