# core/deterministic_classifier.py
"""
Last cascade tier: keyword/regex classification that always answers.

Entity rules are checked in a fixed order and the first hit wins, so the
order below matters more than any single pattern. Keywords are anchored on
word boundaries ("update" must not read as the diet verb "ate").
"""
import re
from typing import List, Tuple
from config.settings import settings
from core.value_extractor import extract_deterministic
from model.intent import Classification, ClassificationMethod, EntityKind, IntentKind
import logging

logger = logging.getLogger(__name__)

_SUFFIX = r"(?:s|es|ing|ed|en)?"


def _kw(*words: str) -> "re.Pattern[str]":
    return re.compile(r"\b(?:" + "|".join(words) + r")" + _SUFFIX + r"\b")


_TODAYS = r"\btoday'?s?\s+"

_ENTITY_RULES: List[Tuple["re.Pattern[str]", EntityKind]] = [
    (
        re.compile(
            r"\bcalorie\w*\b.*\bburn|\bburn\w*\b.*\bcalorie|\b(?:how\s+many|what)\b.*\bburn"
        ),
        EntityKind.analytics,
    ),
    (re.compile(_TODAYS + r"(?:workout|exercise)"), EntityKind.workout),
    (re.compile(_TODAYS + r"(?:meal|food|diet)"), EntityKind.diet),
    (
        re.compile(_TODAYS + r"(?:analytic|calorie|macro|burnt|summary|stats)"),
        EntityKind.analytics,
    ),
    (re.compile(_TODAYS + r"reminder"), EntityKind.reminder),
    (
        re.compile(
            r"\bweek\s*\d+\s*day\s*\d+|\brecipes?\b|\b(?:for|to)\s+(?:breakfast|lunch|dinner|snacks?)\b"
        ),
        EntityKind.recipe,
    ),
    (_kw("remind", "reminder", "alert", "notify", "notification"), EntityKind.reminder),
    (
        _kw(
            "workout", "exercise", "gym", "training", "lift", r"push.?up", r"pull.?up",
            "squat", "bench", "deadlift", "curl",
        ),
        EntityKind.workout,
    ),
    (_kw("analytic", "analytics", "stat", "summary", "progress", "macro"), EntityKind.analytics),
    (
        re.compile(
            r"\b(?:diet|meal|food|eat|ate|eaten|breakfast|lunch|dinner|snack)"
            + _SUFFIX
            + r"\b|\bcalories\s*(?:consumed|eaten|intake)\b"
        ),
        EntityKind.diet,
    ),
    (_kw("step", "walk", "walked", "distance"), EntityKind.steps),
    (
        _kw(
            "weight", "weigh", "height", "measure", "measurement", "bmi", "body", "neck",
            "bicep", "forearm", "waist", "chest", "shoulder", "calf", "calves", "leg",
            "stomach",
        ),
        EntityKind.measurement,
    ),
    (_kw("shop", "shopping", "grocery", "groceries", r"shopping.?list"), EntityKind.shopping),
    (_kw("wish", r"wish\s*list"), EntityKind.wishlist),
    (_kw("book", "read", "reading", "page", "chapter", "author"), EntityKind.book),
    (_kw("anime", "manga", "watch", "episode", "season"), EntityKind.anime),
]

_TODAYS_QUERY = re.compile(
    _TODAYS + r"(?:workout|meal|food|diet|analytic|reminder|calorie|macro)"
)

_REMINDER_INTENTS: List[Tuple["re.Pattern[str]", IntentKind]] = [
    (re.compile(r"\b(?:set|add|create|remind\s*me|new\s*reminder)\b"), IntentKind.add),
    (
        re.compile(
            r"\b(?:update|change|modify|edit|move|reschedule|turn\s+(?:on|off)|enable|disable)\b"
        ),
        IntentKind.update,
    ),
    (re.compile(r"\b(?:delete|remove|cancel|clear)\b"), IntentKind.delete),
    (re.compile(r"\b(?:show|what|list|get|display)\b"), IntentKind.query),
]

_VERB_INTENTS: List[Tuple["re.Pattern[str]", IntentKind]] = [
    (
        re.compile(r"^(?:show|what|how\s+many|list|get|display|tell\s+me|check)\b"),
        IntentKind.query,
    ),
    (
        re.compile(r"^(?:add|log|record|create|i\s+(?:did|ate|walked|ran|weigh))\b"),
        IntentKind.add,
    ),
    (re.compile(r"^(?:update|change|modify|edit|set)\b"), IntentKind.update),
    (re.compile(r"^(?:delete|remove|cancel|clear)\b"), IntentKind.delete),
]

_POLITE_PREFIX = re.compile(r"^(?:please|pls|ok(?:ay)?|isha)\b[\s,]*")

# only these carry inline values on the fallback path
_INLINE_ENTITIES = (EntityKind.reminder, EntityKind.steps, EntityKind.measurement)


def _normalize(utterance: str) -> str:
    text = " ".join(utterance.lower().split())
    text = text.replace("’", "'")
    prev = None
    while prev != text:
        prev, text = text, _POLITE_PREFIX.sub("", text)
    return text


def classify_entity(text: str) -> EntityKind:
    for pattern, entity in _ENTITY_RULES:
        if pattern.search(text):
            return entity
    return EntityKind.general


def classify_intent(text: str, entity: EntityKind) -> IntentKind:
    if _TODAYS_QUERY.search(text):
        return IntentKind.query
    if entity == EntityKind.reminder:
        for pattern, intent in _REMINDER_INTENTS:
            if pattern.search(text):
                return intent
        # "remind me ..." without a verb is still a new reminder
        return IntentKind.add
    for pattern, intent in _VERB_INTENTS:
        if pattern.search(text):
            return intent
    return IntentKind.chat


def classify(utterance: str) -> Classification:
    text = _normalize(utterance)
    entity = classify_entity(text)
    intent = classify_intent(text, entity)

    values = {}
    if entity in _INLINE_ENTITIES:
        values = extract_deterministic(utterance, intent, entity)

    logger.info(
        "intent.fallback intent=%s entity=%s keys=%s",
        intent.value,
        entity.value,
        sorted(values),
    )
    return Classification(
        intent=intent,
        entity=entity,
        extracted_values=values,
        time_reference=None,
        original_query=utterance,
        confidence=settings.FALLBACK_CONFIDENCE,
        method=ClassificationMethod.fallback,
    )
