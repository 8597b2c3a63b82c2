# service/handlers/measurement.py
from datetime import date
from model.action import ActionKind, ActionResult
from repository.namespaces import Table
from repository.record_repository import RecordRepository
from core.measurements import MeasurementColumn, known_names, resolve_measurement
from service.handlers.common import Values, number_value, text_value
from util.functions import to_number
import logging

logger = logging.getLogger(__name__)


def _unknown(name: str) -> ActionResult:
    return ActionResult.fail(f"Unknown measurement: {name}. Valid: {known_names()}")


async def _record_many(store: RecordRepository, values: Values) -> ActionResult:
    # {"weight": 72, "chest": 40} without a single name: one new row
    fields = {
        col.value: to_number(values[col.value])
        for col in MeasurementColumn
        if to_number(values.get(col.value)) is not None
    }
    if not fields:
        return ActionResult.fail("Measurement name is required (e.g., weight, height, chest)")
    row = await store.insert(Table.body_measurements, fields)
    summary = ", ".join(f"{k}: {v}" for k, v in fields.items())
    return ActionResult.ok(ActionKind.added, f"Recorded measurements: {summary}", row)


async def _set_field(store: RecordRepository, values: Values, verb: str) -> ActionResult:
    name = text_value(values, "name", "measurement_name")
    if not name:
        return await _record_many(store, values)
    value = number_value(values, "value", "measurement_value")
    if value is None:
        return ActionResult.fail("Measurement value is required")
    column = resolve_measurement(name)
    if column is None:
        logger.info("action.measurement.unknown name=%r", name[:40])
        return _unknown(name)

    latest = await store.find_latest(Table.body_measurements)
    if latest is None:
        row = await store.insert(Table.body_measurements, {column.value: value})
        return ActionResult.ok(ActionKind.added, f"Added {name}: {value}", row)
    row = await store.update_by_id(Table.body_measurements, int(latest["id"]), {column.value: value})
    logger.info("action.measurement.set column=%s id=%s", column.value, latest["id"])
    return ActionResult.ok(ActionKind.updated, f"{verb} {name} to {value}", row)


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    return await _set_field(store, values, "Set")


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    return await _set_field(store, values, "Updated")


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    """Clears one field on the latest row; the row itself stays."""
    name = text_value(values, "name", "measurement_name")
    if not name:
        return ActionResult.fail(
            'Please specify which measurement to clear (e.g., "clear neck", "delete weight")'
        )
    column = resolve_measurement(name)
    if column is None:
        return _unknown(name)

    latest = await store.find_latest(Table.body_measurements)
    if latest is None:
        return ActionResult.fail("No measurements found to clear")
    current = latest.get(column.value)
    if current is None:
        return ActionResult.ok(ActionKind.none, f"{name} is already empty")

    row = await store.update_by_id(Table.body_measurements, int(latest["id"]), {column.value: None})
    return ActionResult.ok(ActionKind.deleted, f"Cleared {name} (was {current})", row)
