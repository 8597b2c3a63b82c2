# service/handlers/common.py
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Optional
from model.action import ActionResult
from repository.record_repository import RecordRepository
from util.functions import first_present, to_number

Values = Dict[str, Any]
Handler = Callable[[RecordRepository, Values, date], Awaitable[ActionResult]]


def text_value(values: Values, *keys: str) -> Optional[str]:
    v = first_present(values, *keys)
    if v is None or isinstance(v, (dict, list)):
        return None
    s = str(v).strip()
    return s or None


def number_value(values: Values, *keys: str) -> Optional[float | int]:
    return to_number(first_present(values, *keys))


def row_id(values: Values) -> Optional[int]:
    v = to_number(values.get("id"))
    return int(v) if isinstance(v, int) else None


def short_date(d: date) -> str:
    return f"{d:%b} {d.day}"


def pick(values: Values, mapping: Dict[str, tuple]) -> Values:
    """
    Build a changes dict: target column -> first present source key.
    Absent sources are skipped so stored values stay untouched.
    """
    out: Values = {}
    for column, sources in mapping.items():
        v = first_present(values, *sources)
        if v is not None:
            out[column] = v
    return out
