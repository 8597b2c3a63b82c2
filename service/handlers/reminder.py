# service/handlers/reminder.py
from datetime import date
from model.action import ActionKind, ActionResult
from repository.namespaces import Table
from repository.record_repository import RecordRepository, contains
from core.temporal import day_name, parse_time, resolve_date
from service.handlers.common import Values, row_id, short_date, text_value
import logging

logger = logging.getLogger(__name__)


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    name = text_value(values, "reminder_name", "title", "name")
    if not name:
        return ActionResult.fail(
            'Please tell me what to remind you about. Example: "remind me to take vitamins at 8am"'
        )
    at = parse_time(values.get("reminder_time") or values.get("time"))
    when = resolve_date(values.get("date") or values.get("time_reference"), today)
    row = await store.insert(
        Table.reminders,
        {
            "reminder_name": name,
            "reminder_time": at,
            "day": day_name(when),
            "date": when.isoformat(),
            "enabled": True,
        },
    )
    logger.info("action.reminder.add id=%s date=%s time=%s", row["id"], when, at)
    return ActionResult.ok(
        ActionKind.added, f'Created reminder: "{name}" on {short_date(when)} at {at}', row
    )


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    rid = row_id(values)
    name = text_value(values, "reminder_name", "title", "name")
    if rid is not None:
        existing = await store.get(Table.reminders, rid)
    elif name:
        existing = await store.find_latest(Table.reminders, contains("reminder_name", name))
    else:
        return ActionResult.fail("Please tell me which reminder to change")
    if existing is None:
        return ActionResult.fail(f'No reminder found matching "{name or rid}"')

    enabled = values.get("enabled")
    if isinstance(enabled, bool):
        row = await store.update_by_id(Table.reminders, int(existing["id"]), {"enabled": enabled})
        state = "enabled" if enabled else "disabled"
        return ActionResult.ok(
            ActionKind.updated, f'Reminder "{existing["reminder_name"]}" {state}', row
        )

    new_time = values.get("reminder_time") or values.get("time")
    new_date = values.get("date")
    new_name = text_value(values, "new_name")
    if not (new_time or new_date or new_name):
        return ActionResult.fail("Please tell me the new time, date or name for the reminder")

    at = parse_time(new_time) if new_time else existing["reminder_time"]
    when = resolve_date(new_date, today) if new_date else resolve_date(existing["date"], today)
    label = new_name or existing["reminder_name"]
    row = await store.update_by_id(
        Table.reminders,
        int(existing["id"]),
        {
            "reminder_name": label,
            "reminder_time": at,
            "day": day_name(when),
            "date": when.isoformat(),
        },
    )
    return ActionResult.ok(
        ActionKind.updated, f'Updated reminder: "{label}" -> {short_date(when)} at {at}', row
    )


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    rid = row_id(values)
    name = text_value(values, "reminder_name", "title", "name")
    if rid is not None:
        row = await store.delete_by_id(Table.reminders, rid)
        rows = [row] if row else []
    elif name:
        rows = await store.delete_by_match(Table.reminders, contains("reminder_name", name))
    else:
        return ActionResult.fail("Please tell me which reminder to delete")

    if not rows:
        return ActionResult.fail("No matching reminder found")
    return ActionResult.ok(
        ActionKind.deleted, f'Deleted reminder: "{rows[0]["reminder_name"]}"', rows
    )
