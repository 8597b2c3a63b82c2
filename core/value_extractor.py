# core/value_extractor.py
import re
from typing import Any, Callable, Dict, List, Optional
from config.settings import settings
from core import llm_client
from core.entities import ExtractionResult
from core.llm_client import CompleteFn
from core.measurements import find_measurement, resolve_measurement
from core.temporal import find_date_phrase, find_time_phrase
from model.intent import EntityKind, IntentKind
from util.errors import MalformedModelOutput, UpstreamUnavailable
from util.functions import meal_label, to_number
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

# Field names per entity, as the executor reads them. Also sent to the model.
ENTITY_FIELDS: Dict[EntityKind, str] = {
    EntityKind.workout: "workout_name, sets, reps, weights, date",
    EntityKind.diet: "meal_type, meal_types (list), food_name, calories, action (mark_eaten | unmark_eaten)",
    EntityKind.recipe: "food_name, new_name, week, day (\"Day N\"), meal_type, ingredients (list), approx_calories",
    EntityKind.steps: "steps (number), date",
    EntityKind.measurement: "name (body part or lift), value (number)",
    EntityKind.reminder: "reminder_name, new_name, reminder_time (HH:MM), date, enabled (bool)",
    EntityKind.shopping: "item_name, items (list), old_name, new_name, quantity, price",
    EntityKind.wishlist: "item_name, old_name, new_name, price, category, priority (high | medium | low)",
}

_IDENTIFYING: Dict[EntityKind, tuple] = {
    EntityKind.workout: ("workout_name",),
    EntityKind.diet: ("meal_type", "meal_types", "food_name"),
    EntityKind.recipe: ("food_name",),
    EntityKind.steps: ("steps",),
    EntityKind.measurement: ("name",),
    EntityKind.reminder: ("reminder_name",),
    EntityKind.shopping: ("item_name", "items", "old_name"),
    EntityKind.wishlist: ("item_name", "old_name"),
}


def has_identifying_values(entity: EntityKind, values: Dict[str, Any]) -> bool:
    """True when `values` names the thing the executor has to find or create."""
    keys = _IDENTIFYING.get(entity)
    if not keys:
        return True
    return any(values.get(k) not in (None, "", []) for k in keys)


def _rx(pattern: str) -> "re.Pattern[str]":
    return re.compile(pattern, re.IGNORECASE)


_NUMBER = r"(\d+(?:\.\d+)?)"
_LIST_SPLIT = _rx(r"\s*,\s*(?:and\s+)?|\s+and\s+|\s*&\s*")
_LEADING_ARTICLE = _rx(r"^(?:my|the|a|an|some)\s+")


def _clean(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    name = _LEADING_ARTICLE.sub("", name.strip(" .,!?\"'"))
    return name.strip() or None


def _split_items(raw: str) -> List[str]:
    return [i for i in (_clean(p) for p in _LIST_SPLIT.split(raw)) if i]


# ---------- workout ----------

_WORKOUT = _rx(
    r"\b(?:add|log|record|did|do|done|delete|remove|update|change|edit|modify)\s+"
    r"(?:(\d+)\s*(?:sets?|x)\s*(?:of\s+)?(\d+)\s+(?:reps?\s+)?(?:of\s+)?)?"
    r"(.+?)"
    r"(?=\s+(?:with|at|for|on|to|from|in|today|yesterday|tomorrow|workouts?|exercises?)\b|\s+\d|\s*$)"
)
_SETS = _rx(r"(\d+)\s*sets?\b")
_REPS = _rx(r"(\d+)\s*reps?\b")
_SETS_X_REPS = _rx(r"\b(\d+)\s*x\s*(\d+)\b")
_LEADING_COUNT = _rx(
    r"^(\d+)\s+(?:reps?\s+(?:of\s+)?)?(?!(?:kg|kgs|kilos?|lbs?|pounds?|sets?|x|mins?|minutes?)\b)([a-z].*)$"
)
_WEIGHT = _rx(_NUMBER + r"\s*(?:kg|kgs|kilos?|lbs?|pounds?)\b")


def _workout(text: str, intent: IntentKind) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    m = _WORKOUT.search(text)
    if m:
        if m.group(1):
            values["sets"] = int(m.group(1))
            values["reps"] = int(m.group(2))
        name = _clean(m.group(3))
        counted = _LEADING_COUNT.match(name or "")
        if counted:
            values.setdefault("reps", int(counted.group(1)))
            name = counted.group(2).strip()
        if name and name.lower() not in ("workout", "exercise") and not name.isdigit():
            values["workout_name"] = name
    m = _SETS_X_REPS.search(text)
    if m and "sets" not in values:
        values["sets"], values["reps"] = int(m.group(1)), int(m.group(2))
    m = _SETS.search(text)
    if m:
        values.setdefault("sets", int(m.group(1)))
    m = _REPS.search(text)
    if m:
        values.setdefault("reps", int(m.group(1)))
    m = _WEIGHT.search(text)
    if m:
        values["weights"] = to_number(m.group(1))
    when = find_date_phrase(text)
    if when:
        values["date"] = when
    return values


# ---------- steps ----------

_STEPS = _rx(r"(\d[\d,]*)\s*steps?\b")
_ANY_INT = _rx(r"\b(\d[\d,]*)\b")


def _steps(text: str, intent: IntentKind) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    m = _STEPS.search(text) or _ANY_INT.search(text)
    if m:
        count = to_number(m.group(1))
        if isinstance(count, int):
            values["steps"] = count
    when = find_date_phrase(text)
    if when:
        values["date"] = when
    return values


# ---------- reminder ----------

_REMINDER_NAME = (
    _rx(r"\bremind\s+me\s+(?:to\s+|about\s+|of\s+)?(.+)"),
    _rx(r"\b(?:set|add|create|new|make)\s+(?:a\s+|an\s+|new\s+)*reminder\s+(?:to\s+|for\s+|about\s+)?(.+)"),
    _rx(r"\breminder\s+(?:to|for|about|called|named)\s+(.+)"),
    _rx(
        r"\b(?:delete|remove|cancel|clear|turn\s+(?:on|off)|enable|disable|move|change|update|"
        r"edit|reschedule|set|add|create)\s+(?:my\s+|the\s+)?(.+?)\s+reminders?\b"
    ),
)
_REMINDER_TAIL = _rx(
    r"\s+(?:at|on|by|tomorrow|today|tonight|every|next|this|in)\b.*$|\s+(?:to\s+)?\d.*$"
)
_RENAME_TO = _rx(r"\brename\s+(?:it\s+)?(?:to\s+|as\s+)?(.+)$")
_DISABLE = _rx(r"\b(?:turn\s+off|disable|switch\s+off|mute|pause)\b")
_ENABLE = _rx(r"\b(?:turn\s+on|enable|switch\s+on|unmute|resume)\b")


def _reminder_name(text: str) -> Optional[str]:
    for pattern in _REMINDER_NAME:
        m = pattern.search(text)
        if m:
            name = _clean(_REMINDER_TAIL.sub("", m.group(1)))
            if name and name.lower() not in ("reminder", "reminders"):
                return name
    return None


def _reminder(text: str, intent: IntentKind) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    name = _reminder_name(text)
    if name:
        values["reminder_name"] = name
    when = find_time_phrase(text)
    if when:
        values["reminder_time"] = when
    day = find_date_phrase(text)
    if day:
        values["date"] = day
    if intent == IntentKind.update:
        if _DISABLE.search(text):
            values["enabled"] = False
        elif _ENABLE.search(text):
            values["enabled"] = True
        m = _RENAME_TO.search(text)
        if m:
            values["new_name"] = _clean(m.group(1))
    return values


# ---------- shopping ----------

_LIST_WORDS = r"(?:shopping|grocery|groceries|shop)(?:\s+list)?|list"
_SHOP_ADD = _rx(
    r"\b(?:add|buy|get|put|need|include)\s+(.+?)(?:\s+(?:to|in|on|into)\s+(?:my\s+|the\s+)?(?:" + _LIST_WORDS + r")\b.*|\s*$)"
)
_SHOP_DELETE = _rx(
    r"\b(?:remove|delete|drop|clear|take|cross)\s+(?:off\s+|out\s+)?(.+?)(?:\s+(?:from|off|in|on|out\s+of)\s+(?:my\s+|the\s+)?(?:" + _LIST_WORDS + r")\b.*|\s*$)"
)
_RENAME = _rx(
    r"\b(?:change|replace|rename|swap|switch)\s+(.+?)\s+(?:to|with|for|into)\s+(.+?)(?:\s+(?:in|on|from)\s+(?:my\s+|the\s+)?(?:"
    + _LIST_WORDS
    + r"|wish\s*list)\b.*|\s*$)"
)
_FIELD_UPDATE = _rx(
    r"\b(?:update|change|set|make|modify|edit)\s+(?:the\s+|my\s+)?(.+?)\s+(quantity|amount|price|cost|priority|category)\b"
)
_QUANTITY = _rx(r"\b(?:quantity|amount)\s+(?:to\s+|of\s+|=\s*)?(\d+(?:\.\d+)?(?:\s*(?:kg|g|l|ml|litres?|liters?|units?|packs?|dozen|pcs|pieces|bottles?|boxes|box|loaf|loaves)\b)?)")
_PRICE = _rx(
    r"(?:₹|\$|\brs\.?\s*|\binr\s*)" + _NUMBER + r"|\b(?:price|cost|costs|costing|worth|for|at)\s+(?:to\s+|of\s+|is\s+)?(?:₹|\$|rs\.?\s*)?" + _NUMBER
)
_RENAME_FIELDS = ("quantity", "amount", "price", "cost", "priority", "category")


def _rename(text: str) -> Optional[Dict[str, str]]:
    m = _RENAME.search(text)
    if not m:
        return None
    old, new = _clean(m.group(1)), _clean(m.group(2))
    if not old or not new or to_number(new) is not None:
        return None
    if old.split()[-1].lower() in _RENAME_FIELDS or new.lower() in ("high", "medium", "low"):
        return None
    return {"old_name": old, "new_name": new}


def _price(text: str) -> Optional[float | int]:
    m = _PRICE.search(text)
    if not m:
        return None
    return to_number(m.group(1) or m.group(2))


def _shopping(text: str, intent: IntentKind) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if intent == IntentKind.update:
        renamed = _rename(text)
        if renamed:
            return renamed
        m = _FIELD_UPDATE.search(text)
        if m:
            values["item_name"] = _clean(m.group(1))
        m = _QUANTITY.search(text)
        if m:
            values["quantity"] = m.group(1).strip()
        price = _price(text)
        if price is not None:
            values["price"] = price
        return {k: v for k, v in values.items() if v is not None}

    pattern = _SHOP_DELETE if intent == IntentKind.delete else _SHOP_ADD
    m = pattern.search(text)
    if m:
        items = _split_items(m.group(1))
        if len(items) > 1:
            values["items"] = items
        elif items:
            values["item_name"] = items[0]
    return values


# ---------- wishlist ----------

_WISH_ADD = _rx(
    r"\b(?:add|put|save)\s+(.+?)\s+(?:to|in|on|into)\s+(?:my\s+|the\s+)?wish\s*list\b"
)
_WISH_WANT = _rx(
    r"\bi\s+(?:want|wish|would\s+like|need)\s+(?:to\s+(?:buy|get|have)\s+)?(?:(?:a|an|new|the|some)\s+)*(.+?)"
    r"(?=\s+(?:for|at|costing|worth|priced)\b|\s*(?:₹|\$|rs\.?)\s*\d|\s*$)"
)
_WISH_DELETE = _rx(
    r"\b(?:remove|delete|drop|clear)\s+(.+?)\s+(?:from|off|in|on)\s+(?:my\s+|the\s+)?wish\s*list\b"
)
_PRIORITY = _rx(r"\bpriority\s+(?:to\s+|as\s+|=\s*)?(high|medium|low)\b|\b(high|medium|low)\s+priority\b")
_CATEGORY = _rx(r"\bcategory\s+(?:to\s+|as\s+|=\s*)?([a-z][a-z ]*?)(?=\s+(?:in|on)\b|\s*$)")


def _wishlist(text: str, intent: IntentKind) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if intent == IntentKind.update:
        renamed = _rename(text)
        if renamed:
            return renamed
        m = _FIELD_UPDATE.search(text)
        if m:
            values["item_name"] = _clean(m.group(1))
    elif intent == IntentKind.delete:
        m = _WISH_DELETE.search(text)
        if m:
            values["item_name"] = _clean(m.group(1))
    else:
        m = _WISH_ADD.search(text) or _WISH_WANT.search(text)
        if m:
            values["item_name"] = _clean(m.group(1))

    if intent != IntentKind.delete:
        price = _price(text)
        if price is not None:
            values["price"] = price
        m = _PRIORITY.search(text)
        if m:
            values["priority"] = (m.group(1) or m.group(2)).lower()
        m = _CATEGORY.search(text)
        if m:
            values["category"] = m.group(1).strip()
    return {k: v for k, v in values.items() if v is not None}


# ---------- measurement ----------

_MEASURE = _rx(
    r"\b(?:set|update|change|add|log|record|my)\s+(?:my\s+|the\s+)?([a-z][a-z _]*?)\s+(?:to\s+|is\s+|=\s*|at\s+|of\s+)?"
    + _NUMBER
)
_WEIGH = _rx(r"\bi\s+weigh\s+" + _NUMBER)
_ANY_NUMBER = _rx(_NUMBER)
_CLEAR = _rx(r"\b(?:clear|delete|remove|reset|erase)\s+(?:my\s+|the\s+)?([a-z][a-z _]*?)(?:\s+measurements?)?\s*$")


def _measurement(text: str, intent: IntentKind) -> Dict[str, Any]:
    m = _WEIGH.search(text)
    if m:
        return {"name": "weight", "value": to_number(m.group(1))}

    raw_name: Optional[str] = None
    value = None
    m = _MEASURE.search(text)
    if m:
        raw_name, value = m.group(1).strip(), to_number(m.group(2))
    elif intent == IntentKind.delete:
        m = _CLEAR.search(text)
        if m:
            raw_name = m.group(1).strip()

    values: Dict[str, Any] = {}
    column = resolve_measurement(raw_name) if raw_name else None
    if column is None:
        found = find_measurement(text)
        if found:
            column = found[1]
    if column is not None:
        values["name"] = column.value
    elif raw_name:
        # kept as said so the executor can report it as unknown
        values["name"] = raw_name

    if value is None and intent != IntentKind.delete:
        m = _ANY_NUMBER.search(text)
        if m:
            value = to_number(m.group(1))
    if value is not None and intent != IntentKind.delete:
        values["value"] = value
    return values


# ---------- diet ----------

_MEAL = _rx(r"\b(breakfast|lunch|snacks?|dinner)\b")
_UNMARK = _rx(r"\b(?:didn'?t|did\s+not|didnt|haven'?t|skip(?:ped)?|unmark|undo|remove|delete|not)\b")
_FOOD = _rx(
    r"\b(?:ate|eaten|had|have|log|logged|add)\s+(?:a\s+|an\s+|some\s+|my\s+)?(.+?)"
    r"(?=\s+(?:for|with|at|in|on|as|today|yesterday|tonight|this)\b|\s+\d+\s*(?:k?cal|calories)|\s*,|\s*$)"
)
_CALORIES = _rx(r"(\d+)\s*(?:k?cals?|calories)\b")


def _diet(text: str, intent: IntentKind) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    meals: List[str] = []
    for m in _MEAL.finditer(text):
        label = meal_label(m.group(1))
        if label not in meals:
            meals.append(label)
    unmark = intent == IntentKind.delete or bool(_UNMARK.search(text))

    m = _FOOD.search(text)
    food = _clean(m.group(1)) if m else None
    if food and (_MEAL.fullmatch(food) or _MEAL.match(food) and len(meals) > 1):
        food = None
    m = _CALORIES.search(text)
    if m:
        values["calories"] = int(m.group(1))

    if food and not unmark:
        values["food_name"] = food
        if meals:
            values["meal_type"] = meals[0]
        return values

    if len(meals) > 1:
        values["meal_types"] = meals
    elif meals:
        values["meal_type"] = meals[0]
    if meals:
        values["action"] = "unmark_eaten" if unmark else "mark_eaten"
    elif food:
        values["food_name"] = food
    return values


# ---------- recipe ----------

_RECIPE_NAME = _rx(
    r"\b(?:add|create|save|put|plan|delete|remove|update|change|modify|edit|move)\s+"
    r"(?:(?:a|an|the|my|new)\s+)*(?:recipes?\s+(?:for\s+|of\s+|called\s+)?)?(.+?)"
    r"(?=\s+(?:to|for|on|in|into|from)\s+(?:the\s+|my\s+)?(?:breakfast|lunch|dinner|snacks?|week|day|recipes?|meal)\b"
    r"|\s+(?:week|day)\s*\d|\s+recipes?\b|\s+with\b|\s+to\s+|\s*$)"
)
_WEEK = _rx(r"\bweek\s*(\d+)")
_DAY = _rx(r"\bday\s*(\d+)")
_INGREDIENTS = _rx(r"\bwith\s+(.+?)(?=\s+(?:for|on|to|in)\s+(?:breakfast|lunch|dinner|snacks?|week|day)\b|\s*$)")
_RECIPE_RENAME = _rx(r"\brename\s+(?:it\s+)?(?:to\s+|as\s+)?(.+)$")


def _recipe(text: str, intent: IntentKind) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    m = _RECIPE_NAME.search(text)
    if m:
        name = _clean(m.group(1))
        if name and not _MEAL.fullmatch(name):
            values["food_name"] = name
    m = _MEAL.search(text)
    if m:
        values["meal_type"] = meal_label(m.group(1))
    m = _WEEK.search(text)
    if m:
        values["week"] = int(m.group(1))
    m = _DAY.search(text)
    if m:
        values["day"] = f"Day {int(m.group(1))}"
    m = _CALORIES.search(text)
    if m:
        values["approx_calories"] = int(m.group(1))
    if intent == IntentKind.add:
        m = _INGREDIENTS.search(text)
        if m:
            values["ingredients"] = _split_items(m.group(1))
    elif intent == IntentKind.update:
        m = _RECIPE_RENAME.search(text)
        if m:
            values["new_name"] = _clean(m.group(1))
    return values


_EXTRACTORS: Dict[EntityKind, Callable[[str, IntentKind], Dict[str, Any]]] = {
    EntityKind.workout: _workout,
    EntityKind.steps: _steps,
    EntityKind.reminder: _reminder,
    EntityKind.shopping: _shopping,
    EntityKind.wishlist: _wishlist,
    EntityKind.measurement: _measurement,
    EntityKind.diet: _diet,
    EntityKind.recipe: _recipe,
}


def extract_deterministic(
    utterance: str, intent: IntentKind, entity: EntityKind
) -> Dict[str, Any]:
    """
    Regex extraction for one entity. Field names match what the executor reads;
    date phrases are left as written for the temporal normalizer.
    """
    fn = _EXTRACTORS.get(entity)
    if fn is None:
        return {}
    text = " ".join(utterance.split())
    return {k: v for k, v in fn(text, intent).items() if v is not None}


def _flatten(parsed: Dict[str, Any], entity: EntityKind) -> Dict[str, Any]:
    # the model sometimes nests the values under the entity name or "extracted_values"
    for key in (entity.value, "extracted_values", "values"):
        inner = parsed.get(key)
        if isinstance(inner, dict):
            return inner
    return parsed


class ValueExtractor:
    """
    Fills extracted_values for a known (intent, entity).

    Regex first; the model is asked only when the regex pass missed the
    entity's identifying field. Model values never overwrite regex values.
    Never raises.
    """

    def __init__(self, complete: CompleteFn = llm_client.complete) -> None:
        self._complete = complete

    async def extract(
        self, utterance: str, intent: IntentKind, entity: EntityKind
    ) -> ExtractionResult:
        values = extract_deterministic(utterance, intent, entity)
        if has_identifying_values(entity, values) or entity not in ENTITY_FIELDS:
            logger.info(
                "intent.extract.regex entity=%s keys=%s", entity.value, sorted(values)
            )
            return ExtractionResult(values=values, strategy="regex")

        try:
            with timed(logger, "intent.extract.llm", entity=entity.value):
                raw = await self._complete(
                    settings.EXTRACT_SYSTEM_PROMPT,
                    self._user_prompt(utterance, intent, entity),
                    json_mode=True,
                    temperature=settings.LLM_TEMPERATURE,
                    max_tokens=settings.EXTRACT_MAX_TOKENS,
                )
            parsed = llm_client.parse_json_object(raw)
        except (UpstreamUnavailable, MalformedModelOutput) as e:
            logger.warning(
                "intent.extract.llm.failed entity=%s err=%s", entity.value, e
            )
            return ExtractionResult(values=values, strategy="regex")

        merged = {k: v for k, v in _flatten(parsed, entity).items() if v is not None}
        merged.update(values)
        logger.info("intent.extract.llm.ok entity=%s keys=%s", entity.value, sorted(merged))
        return ExtractionResult(values=merged, strategy="llm")

    @staticmethod
    def _user_prompt(utterance: str, intent: IntentKind, entity: EntityKind) -> str:
        return (
            f"Action: {intent.value} {entity.value}\n"
            f"Fields: {ENTITY_FIELDS[entity]}\n"
            f"Message: {utterance}"
        )
