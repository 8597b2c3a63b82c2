# service/handlers/wishlist.py
from datetime import date
from model.action import ActionKind, ActionResult
from repository.namespaces import Table
from repository.record_repository import RecordRepository, contains
from service.handlers.common import Values, number_value, row_id, text_value
import logging

logger = logging.getLogger(__name__)

PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"


def _unwrap(values: Values) -> Values:
    inner = values.get("wishlist")
    return inner if isinstance(inner, dict) else values


def _priority(raw: object) -> str | None:
    if raw is None:
        return None
    p = str(raw).strip().lower()
    return p if p in PRIORITIES else None


async def add(store: RecordRepository, values: Values, today: date) -> ActionResult:
    v = _unwrap(values)
    name = text_value(v, "item_name", "name", "item")
    if not name:
        return ActionResult.fail('Please tell me what to add to wishlist. Example: "add running shoes to wishlist"')
    row = await store.insert(
        Table.wishlist,
        {
            "item_name": name,
            "description": text_value(v, "description") or "",
            "category": text_value(v, "category"),
            "estimated_price": number_value(v, "estimated_price", "price"),
            "priority": _priority(v.get("priority")) or DEFAULT_PRIORITY,
        },
    )
    logger.info("action.wishlist.add id=%s", row["id"])
    return ActionResult.ok(ActionKind.added, f"Added to wishlist: {name}", row)


async def update(store: RecordRepository, values: Values, today: date) -> ActionResult:
    v = _unwrap(values)
    rid = row_id(v)
    search = text_value(v, "old_name", "item_name", "name")
    if rid is None and not search:
        return ActionResult.fail(
            'Please tell me which wishlist item to update. Example: "change running shoes price to 5000 in wishlist"'
        )

    changes: Values = {}
    new_name = text_value(v, "new_name")
    if new_name:
        changes["item_name"] = new_name
    price = number_value(v, "price", "estimated_price")
    if price is not None:
        changes["estimated_price"] = price
    category = text_value(v, "category")
    if category:
        changes["category"] = category
    priority = _priority(v.get("priority"))
    if priority:
        changes["priority"] = priority
    if not changes:
        return ActionResult.fail("Please specify what to update (name, price, category, or priority)")

    if rid is not None:
        row = await store.update_by_id(Table.wishlist, rid, changes)
    else:
        row = await store.update_by_match(Table.wishlist, contains("item_name", search), changes)
    if row is None:
        return ActionResult.fail(f'Could not find "{search or rid}" in wishlist')
    return ActionResult.ok(ActionKind.updated, f"Updated wishlist item: {row['item_name']}", row)


async def delete(store: RecordRepository, values: Values, today: date) -> ActionResult:
    v = _unwrap(values)
    rid = row_id(v)
    name = text_value(v, "item_name", "name")
    if rid is not None:
        row = await store.delete_by_id(Table.wishlist, rid)
        rows = [row] if row else []
    elif name:
        rows = await store.delete_by_match(Table.wishlist, contains("item_name", name))
    else:
        return ActionResult.fail("Please tell me which wishlist item to remove")

    if not rows:
        return ActionResult.fail("No matching item found")
    return ActionResult.ok(ActionKind.deleted, "Removed from wishlist", rows)
