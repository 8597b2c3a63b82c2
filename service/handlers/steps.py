# service/handlers/steps.py
from datetime import date
from typing import Optional
from model.action import ActionKind, ActionResult
from repository.namespaces import Table
from repository.record_repository import RecordRepository, equals
from core.temporal import day_name, resolve_date
from service.handlers.common import Values, number_value
import logging

logger = logging.getLogger(__name__)


def _count(values: Values) -> Optional[int]:
    # {"steps": {"steps": 5000}} shows up from the model now and then
    inner = values.get("steps")
    source = inner if isinstance(inner, dict) else values
    n = number_value(source, "steps", "count", "step")
    if n is None or int(n) <= 0:
        return None
    return int(n)


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    """Adds to the day's total; a second "add" the same day accumulates."""
    count = _count(values)
    if count is None:
        return ActionResult.fail("Please specify a valid number of steps")
    when = resolve_date(values.get("date"), today)
    day = day_name(when)

    existing = await store.find_latest(Table.steps, equals(date=when.isoformat()))
    if existing is not None:
        row = await store.increment(Table.steps, int(existing["id"]), "steps", count)
        if row is not None:
            logger.info("action.steps.add date=%s total=%s", when, row["steps"])
            return ActionResult.ok(
                ActionKind.updated, f"Added {count} steps. New total: {row['steps']}", row
            )

    row = await store.insert(Table.steps, {"day": day, "steps": count, "date": when.isoformat()})
    logger.info("action.steps.add date=%s total=%d", when, count)
    return ActionResult.ok(ActionKind.added, f"Logged {count} steps for {day}", row)


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    """Replaces the day's total."""
    count = _count(values)
    if count is None:
        return ActionResult.fail("Please specify a valid number of steps")
    when = resolve_date(values.get("date"), today)
    day = day_name(when)

    existing = await store.find_latest(Table.steps, equals(date=when.isoformat()))
    if existing is not None:
        row = await store.update_by_id(Table.steps, int(existing["id"]), {"steps": count})
        return ActionResult.ok(ActionKind.updated, f"Updated steps to {count}", row)

    row = await store.insert(Table.steps, {"day": day, "steps": count, "date": when.isoformat()})
    return ActionResult.ok(ActionKind.added, f"Set {count} steps for {day}", row)


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    when = resolve_date(values.get("date"), today)
    rows = await store.delete_by_match(Table.steps, equals(date=when.isoformat()))
    if not rows:
        return ActionResult.fail(f"No steps logged for {day_name(when)}")
    return ActionResult.ok(ActionKind.deleted, f"Cleared steps for {day_name(when)}", rows)
