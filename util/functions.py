# util/functions.py
from typing import Any, Optional


def strip_code_fences(raw: str) -> str:
    """
    - Remove a surrounding ``` / ```json fence the model sometimes adds.
    - Leaves unfenced text untouched (apart from outer whitespace).
    """
    text = (raw or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    return text.strip()


def to_number(value: Any) -> Optional[float | int]:
    """
    Coerce '40', '40.5', 40, 72.0 into a number; ints stay ints, integral floats become ints.
    Returns None for anything else (bools included).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = value
    else:
        try:
            num = float(str(value).strip().replace(",", ""))
        except ValueError:
            return None
    if isinstance(num, float) and num.is_integer():
        return int(num)
    return num


def first_present(values: dict, *keys: str) -> Any:
    for key in keys:
        v = values.get(key)
        if v not in (None, "", [], {}):
            return v
    return None


def meal_label(raw: str) -> str:
    lower = raw.lower()
    if "break" in lower:
        return "Breakfast"
    if "lunch" in lower:
        return "Lunch"
    if "snack" in lower:
        return "Snack"
    if "dinner" in lower:
        return "Dinner"
    return raw[:1].upper() + raw[1:]
