# service/handlers/shopping.py
from datetime import date
from typing import List
from model.action import ActionKind, ActionResult, Record
from repository.namespaces import Table
from repository.record_repository import RecordRepository, contains
from core.temporal import day_name
from service.handlers.common import Values, number_value, row_id, text_value
import logging

logger = logging.getLogger(__name__)

DEFAULT_AMOUNT = "1 unit"

_NAME_KEYS = ("item_name", "name", "item", "grocery_name", "shopping_item", "product")


def _unwrap(values: Values) -> Values:
    inner = values.get("shopping")
    return inner if isinstance(inner, dict) else values


def _items(values: Values) -> List[str]:
    raw = values.get("items")
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    return [str(i).strip() for i in raw if str(i).strip()]


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    v = _unwrap(values)
    base = {"day": day_name(today), "date": today.isoformat()}

    items = _items(v)
    if len(items) > 1:
        rows: List[Record] = []
        for item in items:
            rows.append(
                await store.insert(
                    Table.shopping_list,
                    {"grocery_name": item, "amount": DEFAULT_AMOUNT, "price_rupees": 0, **base},
                )
            )
        logger.info("action.shopping.add n=%d", len(rows))
        return ActionResult.ok(
            ActionKind.added,
            f"Added {len(items)} items to shopping list: {', '.join(items)}",
            rows,
        )

    name = text_value(v, *_NAME_KEYS) or (items[0] if items else None)
    if not name:
        return ActionResult.fail('Please tell me what item to add. Example: "add milk to shopping list"')
    row = await store.insert(
        Table.shopping_list,
        {
            "grocery_name": name,
            "amount": str(text_value(v, "quantity", "amount") or DEFAULT_AMOUNT),
            "price_rupees": number_value(v, "price", "price_rupees") or 0,
            **base,
        },
    )
    return ActionResult.ok(ActionKind.added, f"Added to shopping list: {name}", row)


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    v = _unwrap(values)
    rid = row_id(v)
    search = text_value(v, "old_name", *_NAME_KEYS)
    if rid is None and not search:
        return ActionResult.fail(
            'Please tell me which item to update. Example: "change milk to almond milk in shopping list"'
        )

    changes: Values = {}
    new_name = text_value(v, "new_name")
    if new_name:
        changes["grocery_name"] = new_name
    amount = text_value(v, "quantity", "amount")
    if amount:
        changes["amount"] = amount
    price = number_value(v, "price", "price_rupees")
    if price is not None:
        changes["price_rupees"] = price
    if not changes:
        return ActionResult.fail("Please specify what to update (name, amount, or price)")

    if rid is not None:
        row = await store.update_by_id(Table.shopping_list, rid, changes)
    else:
        row = await store.update_by_match(Table.shopping_list, contains("grocery_name", search), changes)
    if row is None:
        return ActionResult.fail(f'Could not find "{search or rid}" in shopping list')
    return ActionResult.ok(ActionKind.updated, f"Updated shopping list item: {row['grocery_name']}", row)


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    v = _unwrap(values)
    rid = row_id(v)
    if rid is not None:
        row = await store.delete_by_id(Table.shopping_list, rid)
        rows = [row] if row else []
    else:
        names = _items(v) or [n for n in [text_value(v, *_NAME_KEYS)] if n]
        if not names:
            return ActionResult.fail("Please tell me which item to remove")
        rows = []
        for name in names:
            rows += await store.delete_by_match(Table.shopping_list, contains("grocery_name", name))

    if not rows:
        return ActionResult.fail("No matching item found")
    return ActionResult.ok(ActionKind.deleted, f"Removed {len(rows)} item(s) from shopping list", rows)
