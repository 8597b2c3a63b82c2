from __future__ import annotations

import asyncio

import pytest

from core.entities import CorpusExample
from core.intent_corpus import INTENT_CORPUS
from core.vector_matcher import VectorMatcher
from model.intent import EntityKind, IntentKind

CORPUS = (
    CorpusExample("add push ups", IntentKind.add, EntityKind.workout),
    CorpusExample("show my workouts", IntentKind.query, EntityKind.workout),
    CorpusExample("add milk to shopping list", IntentKind.add, EntityKind.shopping),
    CorpusExample("hello", IntentKind.chat, EntityKind.general),
)


class FlakyEncoder:
    def __init__(self, inner, failures: int = 1) -> None:  # type: ignore[no-untyped-def]
        self._inner = inner
        self._failures = failures

    def __call__(self, texts):  # type: ignore[no-untyped-def]
        if self._failures > 0:
            self._failures -= 1
            raise RuntimeError("model download failed")
        return self._inner(texts)


@pytest.mark.asyncio
async def test_exact_exemplar_matches_itself(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(CORPUS, encoder=one_hot_encoder, threshold=0.65)
    assert await matcher.initialize() is True

    hit = await matcher.match("Add Push Ups")

    assert hit is not None
    assert hit.intent == IntentKind.add
    assert hit.entity == EntityKind.workout
    assert hit.confidence >= 0.99
    assert hit.matched_text == "add push ups"


@pytest.mark.asyncio
async def test_below_threshold_is_a_miss(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(CORPUS, encoder=one_hot_encoder, threshold=0.65)
    await matcher.initialize()

    assert await matcher.match("book a flight to paris") is None


@pytest.mark.asyncio
async def test_match_before_initialize_returns_none(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(CORPUS, encoder=one_hot_encoder)

    assert matcher.is_ready is False
    assert await matcher.match("add push ups") is None
    assert await matcher.top_matches("add push ups") == []


@pytest.mark.asyncio
async def test_concurrent_initialize_builds_once(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(CORPUS, encoder=one_hot_encoder)

    results = await asyncio.gather(*(matcher.initialize() for _ in range(5)))

    assert results == [True] * 5
    assert one_hot_encoder.calls == 1
    assert matcher.is_ready


@pytest.mark.asyncio
async def test_failed_initialize_can_be_retried(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(CORPUS, encoder=FlakyEncoder(one_hot_encoder))

    assert await matcher.initialize() is False
    assert matcher.is_ready is False
    assert await matcher.match("add push ups") is None

    assert await matcher.initialize() is True
    assert (await matcher.match("add push ups")) is not None


@pytest.mark.asyncio
async def test_top_matches_sorted_by_similarity(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(CORPUS, encoder=one_hot_encoder)
    await matcher.initialize()

    pairs = await matcher.top_matches("hello", n=3)

    assert len(pairs) == 3
    assert pairs[0][0].utterance == "hello"
    assert pairs[0][1] == pytest.approx(1.0)
    scores = [score for _, score in pairs]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_every_corpus_exemplar_matches_itself(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(INTENT_CORPUS, encoder=one_hot_encoder)
    await matcher.initialize()

    for example in INTENT_CORPUS:
        hit = await matcher.match(example.utterance, threshold=0.99)
        assert hit is not None, example.utterance
        assert (hit.intent, hit.entity) == (example.intent, example.entity)


@pytest.mark.asyncio
async def test_match_rebuilds_in_background_after_failed_warmup(one_hot_encoder) -> None:  # type: ignore[no-untyped-def]
    matcher = VectorMatcher(CORPUS, encoder=FlakyEncoder(one_hot_encoder))
    assert await matcher.initialize() is False

    # first lookup misses but kicks off a fresh build
    assert await matcher.match("add push ups") is None
    for _ in range(100):
        if matcher.is_ready:
            break
        await asyncio.sleep(0.01)

    assert matcher.is_ready is True
    hit = await matcher.match("add push ups")
    assert hit is not None and hit.matched_text == "add push ups"
