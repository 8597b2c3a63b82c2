# core/temporal.py
"""
Relative and natural date/time phrases -> canonical "YYYY-MM-DD" / "HH:MM".

Both parsers are pure in (reference, today) and never return None: anything
they cannot read becomes today's date or the default reminder time.
"""
import math
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional, Tuple
import dateparser
from util.constants import MONTHS, WEEKDAYS

DEFAULT_TIME = "09:00"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WEEKDAY = re.compile(
    r"^(?:(next|this|on)\s+)?(" + "|".join(WEEKDAYS) + r")$"
)
_ORDINAL = r"(?:st|nd|rd|th)?"
_DAY_MONTH = re.compile(
    r"\b(\d{1,2})" + _ORDINAL + r"\s+(?:of\s+)?([a-z]+)\.?(?:,?\s+(\d{4}))?\b"
)
_MONTH_DAY = re.compile(
    r"\b([a-z]+)\.?\s+(\d{1,2})" + _ORDINAL + r"(?:,?\s+(\d{4}))?\b"
)

_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_AMPM = re.compile(r"(?<!\d)(\d{1,2})(?:[:.](\d{2}))?\s*([ap])\.?\s*m\.?(?![a-z])")
_HHMM = re.compile(r"^(\d{2})(\d{2})$")


def _resolve_month_day(
    month_word: str, day: str, year: Optional[str], today: date
) -> Optional[date]:
    month = MONTHS.get(month_word)
    if month is None:
        return None
    try:
        if year:
            return date(int(year), month, int(day))
        target = date(today.year, month, int(day))
        if target < today:
            target = date(today.year + 1, month, int(day))
        return target
    except ValueError:
        # 30 February and friends
        return None


def resolve_date(ref: Any, today: Optional[date] = None) -> date:
    base = today or date.today()
    if ref is None:
        return base
    if isinstance(ref, datetime):
        return ref.date()
    if isinstance(ref, date):
        return ref

    text = str(ref).strip()
    lower = text.lower()
    if not lower:
        return base

    if _ISO_DATE.match(text):
        try:
            return date.fromisoformat(text)
        except ValueError:
            return base

    if lower in ("today", "now", "tonight", "this morning", "this evening"):
        return base
    if lower == "yesterday":
        return base - timedelta(days=1)
    if lower == "tomorrow":
        return base + timedelta(days=1)
    if lower in ("day after tomorrow", "the day after tomorrow"):
        return base + timedelta(days=2)
    if lower in ("day before yesterday", "the day before yesterday"):
        return base - timedelta(days=2)

    wd = _WEEKDAY.match(lower)
    if wd:
        target = WEEKDAYS.index(wd.group(2))
        delta = (target - base.weekday()) % 7
        if wd.group(1) == "next" and delta == 0:
            delta = 7
        return base + timedelta(days=delta)

    m = _DAY_MONTH.search(lower)
    if m and m.group(2) in MONTHS:
        return _resolve_month_day(m.group(2), m.group(1), m.group(3), base) or base
    m = _MONTH_DAY.search(lower)
    if m and m.group(1) in MONTHS:
        return _resolve_month_day(m.group(1), m.group(2), m.group(3), base) or base

    parsed = dateparser.parse(
        text,
        languages=["en"],
        settings={
            "PREFER_DATES_FROM": "future",
            "DATE_ORDER": "DMY",
            "RETURN_AS_TIMEZONE_AWARE": False,
            "RELATIVE_BASE": datetime.combine(base, time()),
        },
    )
    return parsed.date() if parsed is not None else base


def parse_date(ref: Any, today: Optional[date] = None) -> str:
    return resolve_date(ref, today).isoformat()


def parse_time(ref: Any) -> str:
    if ref is None:
        return DEFAULT_TIME
    text = str(ref).strip().lower()
    if not text:
        return DEFAULT_TIME
    if text == "noon":
        return "12:00"
    if text == "midnight":
        return "00:00"

    m = _CLOCK.match(text)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        if hours < 24 and minutes < 60:
            return f"{hours:02d}:{minutes:02d}"
        return DEFAULT_TIME

    m = _AMPM.search(text)
    if m:
        hours = int(m.group(1))
        minutes = int(m.group(2) or 0)
        if 1 <= hours <= 12 and minutes < 60:
            hours = hours % 12 + (12 if m.group(3) == "p" else 0)
            return f"{hours:02d}:{minutes:02d}"
        return DEFAULT_TIME

    m = _HHMM.match(text)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        if hours < 24 and minutes < 60:
            return f"{hours:02d}:{minutes:02d}"
    return DEFAULT_TIME


_RELATIVE_DAY = re.compile(r"\b(today|tonight|tomorrow|yesterday)\b")
_WEEKDAY_PHRASE = re.compile(
    r"\b(?:(?:next|this|on)\s+)?(?:" + "|".join(WEEKDAYS) + r")\b"
)
_ISO_IN_TEXT = re.compile(r"\b\d{4}-\d{2}-\d{2}\b")


def find_date_phrase(text: str) -> Optional[str]:
    """
    The first date-like phrase in free text, as written ("25th december",
    "next friday", "tomorrow"). resolve_date() turns it into a date later.
    """
    lower = text.lower()
    m = _ISO_IN_TEXT.search(lower)
    if m:
        return m.group(0)
    for m in _DAY_MONTH.finditer(lower):
        if m.group(2) in MONTHS:
            return m.group(0)
    for m in _MONTH_DAY.finditer(lower):
        if m.group(1) in MONTHS:
            return m.group(0)
    m = _WEEKDAY_PHRASE.search(lower)
    if m:
        return m.group(0)
    m = _RELATIVE_DAY.search(lower)
    if m:
        return m.group(1)
    return None


_CLOCK_IN_TEXT = re.compile(r"(?<![\d:])(\d{1,2}:\d{2})(?![\d:])")


def find_time_phrase(text: str) -> Optional[str]:
    """First clock time mentioned in free text, already as "HH:MM"."""
    lower = text.lower()
    m = _AMPM.search(lower)
    if m:
        return parse_time(m.group(0))
    m = _CLOCK_IN_TEXT.search(lower)
    if m:
        return parse_time(m.group(1))
    if re.search(r"\bnoon\b", lower):
        return "12:00"
    if re.search(r"\bmidnight\b", lower):
        return "00:00"
    return None


def normalize_values(values: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Canonicalize the temporal fields that are present; absent ones stay absent so
    update handlers can keep the stored value.
    """
    out = dict(values)
    if out.get("date") not in (None, ""):
        out["date"] = parse_date(out["date"], today)
    for key in ("reminder_time", "time"):
        if out.get(key) not in (None, ""):
            out[key] = parse_time(out[key])
    return out


def day_name(d: date | str) -> str:
    if isinstance(d, str):
        d = date.fromisoformat(d)
    return d.strftime("%A")


def meal_plan_slot(d: date) -> Tuple[int, str, int]:
    """
    The meal plan is laid out as weeks 1-5 of Day 1-7 over the calendar month.
    Returns (week, "Day N", day_of_month).
    """
    dom = d.day
    return math.ceil(dom / 7), f"Day {(dom - 1) % 7 + 1}", dom
