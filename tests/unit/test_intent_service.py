from __future__ import annotations

import json
from datetime import date

import pytest

from core.entities import CorpusExample
from core.generative_classifier import GenerativeClassifier
from core.value_extractor import ValueExtractor
from core.vector_matcher import VectorMatcher
from model.intent import ClassificationMethod, EntityKind, IntentKind
from repository.namespaces import Table
from service.action_executor import ActionExecutor
from service.intent_service import IntentService
from fakes import InMemoryRecordRepository, ScriptedComplete
from util.enums import ErrorMessage
from util.errors import AppError, UpstreamUnavailable

CORPUS = (
    CorpusExample("add milk to shopping list", IntentKind.add, EntityKind.shopping),
    CorpusExample("show my workouts", IntentKind.query, EntityKind.workout),
    CorpusExample("hello", IntentKind.chat, EntityKind.general),
)


class ExplodingMatcher:
    async def match(self, utterance: str):  # type: ignore[no-untyped-def]
        raise RuntimeError("index corrupted")


async def _service(
    one_hot_encoder,  # type: ignore[no-untyped-def]
    store: InMemoryRecordRepository,
    today: date,
    classify_replies=(),  # type: ignore[no-untyped-def]
    extract_replies=(),  # type: ignore[no-untyped-def]
):
    matcher = VectorMatcher(CORPUS, encoder=one_hot_encoder, threshold=0.65)
    await matcher.initialize()
    service = IntentService(
        matcher=matcher,
        generative=GenerativeClassifier(ScriptedComplete(*classify_replies)),
        extractor=ValueExtractor(ScriptedComplete(*extract_replies)),
        executor=ActionExecutor(store=store, today=lambda: today),
        today=lambda: today,
    )
    return service


@pytest.mark.asyncio
async def test_matcher_hit_uses_regex_values(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    service = await _service(one_hot_encoder, store, today)

    result = await service.classify("Add milk to shopping list")

    assert (result.intent, result.entity) == (IntentKind.add, EntityKind.shopping)
    assert result.method == ClassificationMethod.semantic_regex
    assert result.extracted_values == {"item_name": "milk"}


@pytest.mark.asyncio
async def test_matcher_hit_on_query_skips_extraction(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    service = await _service(one_hot_encoder, store, today)

    result = await service.classify("show my workouts")

    assert result.intent == IntentKind.query
    assert result.method == ClassificationMethod.semantic
    assert result.extracted_values == {}


@pytest.mark.asyncio
async def test_matcher_miss_goes_to_model_and_dates_are_normalized(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    reply = json.dumps(
        {
            "intent": "add",
            "entity": "reminder",
            "details": {"extracted_values": {"reminder_name": "dentist", "reminder_time": "4pm", "date": "tomorrow"}},
            "confidence": 0.9,
        }
    )
    service = await _service(one_hot_encoder, store, today, classify_replies=[reply])

    result = await service.classify("dentist tomorrow at 4")

    assert result.method == ClassificationMethod.llm
    assert result.extracted_values == {"reminder_name": "dentist", "reminder_time": "16:00", "date": "2025-10-19"}


@pytest.mark.asyncio
async def test_model_answer_without_values_is_topped_up(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    reply = '{"intent": "add", "entity": "shopping", "details": {"extracted_values": {}}, "confidence": 0.9}'
    service = await _service(one_hot_encoder, store, today, classify_replies=[reply])

    result = await service.classify("add milk, eggs and bread to my shopping list")

    assert result.method == ClassificationMethod.llm
    assert result.extracted_values == {"items": ["milk", "eggs", "bread"]}


@pytest.mark.asyncio
async def test_everything_down_falls_back_to_rules(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    service = await _service(
        one_hot_encoder, store, today, classify_replies=[UpstreamUnavailable("no key")]
    )

    result = await service.classify("Remind me to take vitamins at 9am tomorrow")

    assert result.method == ClassificationMethod.fallback
    assert result.entity == EntityKind.reminder
    assert result.extracted_values == {
        "reminder_name": "take vitamins",
        "reminder_time": "09:00",
        "date": "2025-10-19",
    }


@pytest.mark.asyncio
async def test_empty_message_is_rejected(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    service = await _service(one_hot_encoder, store, today)

    with pytest.raises(AppError) as exc:
        await service.classify("   ")
    assert exc.value.status_code == 400

    with pytest.raises(AppError):
        await service.handle_message("")


@pytest.mark.asyncio
async def test_handle_message_executes_mutations(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    service = await _service(one_hot_encoder, store, today)

    reply = await service.handle_message("add milk to shopping list")

    assert reply.actionResult is not None and reply.actionResult.success
    assert reply.reply == "Added to shopping list: milk"
    assert [r["grocery_name"] for r in store.all(Table.shopping_list)] == ["milk"]


@pytest.mark.asyncio
async def test_handle_message_chat_has_no_action(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    service = await _service(one_hot_encoder, store, today)

    reply = await service.handle_message("hello")

    assert reply.classification is not None
    assert reply.classification.intent == IntentKind.chat
    assert reply.actionResult is None
    assert store.tables == {}


@pytest.mark.asyncio
async def test_handle_message_apologizes_on_unexpected_error(store, today) -> None:  # type: ignore[no-untyped-def]
    service = IntentService(
        matcher=ExplodingMatcher(),  # type: ignore[arg-type]
        generative=GenerativeClassifier(ScriptedComplete()),
        extractor=ValueExtractor(ScriptedComplete()),
        executor=ActionExecutor(store=store, today=lambda: today),
        today=lambda: today,
    )

    reply = await service.handle_message("add squats")

    assert reply.reply == ErrorMessage.GENERIC_APOLOGY.value.message
    assert reply.actionResult is not None
    assert reply.actionResult.success is False


@pytest.mark.asyncio
async def test_rules_only_reminder_lands_today(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    service = await _service(
        one_hot_encoder, store, today, classify_replies=[UpstreamUnavailable("no key")]
    )

    reply = await service.handle_message("Remind me to take vitamins at 8am")

    assert reply.classification is not None
    assert reply.classification.method == ClassificationMethod.fallback
    row = store.all(Table.reminders)[0]
    assert (row["reminder_name"], row["reminder_time"], row["date"]) == ("take vitamins", "08:00", "2025-10-18")


@pytest.mark.asyncio
async def test_rules_only_measurement_update_keeps_other_fields(one_hot_encoder, store, today) -> None:  # type: ignore[no-untyped-def]
    await store.insert(Table.body_measurements, {"weight": 72, "chest": 38})
    service = await _service(
        one_hot_encoder, store, today, classify_replies=[UpstreamUnavailable("no key")]
    )

    reply = await service.handle_message("Change my chest to 40")

    assert reply.actionResult is not None and reply.actionResult.success
    row = store.all(Table.body_measurements)[0]
    assert (row["weight"], row["chest"]) == (72, 40)
