# service/intent_service.py
import time
from datetime import date
from typing import Any, Callable, Dict, Optional
from core import deterministic_classifier
from core.generative_classifier import GenerativeClassifier
from core.temporal import normalize_values
from core.value_extractor import ValueExtractor, has_identifying_values
from core.vector_matcher import VectorMatcher, get_vector_matcher
from model.action import ActionKind, ActionResult
from model.api import ChatReply
from model.intent import Classification, ClassificationMethod, IntentKind
from service.action_executor import ActionExecutor
from util.enums import ErrorMessage
from util.errors import AppError
import logging

logger = logging.getLogger(__name__)

_CHAT_REPLY = "Hi! I can log workouts, meals, steps, measurements, reminders and lists for you."
_QUERY_REPLY = "Looking up your {entity} isn't something I can do here yet."


def render_reply(classification: Classification, result: Optional[ActionResult]) -> str:
    """Short templated reply; full conversational answers live elsewhere."""
    if result is None:
        if classification.intent == IntentKind.chat:
            return _CHAT_REPLY
        return _QUERY_REPLY.format(entity=classification.entity.value)
    if result.success:
        return result.message or "Done!"
    return f"Couldn't do that: {result.error}"


class IntentService:
    """
    Flow:
    - classify(): vector match -> generative -> deterministic; the first tier that
      answers wins. Matched mutations get their values from the extractor.
    - Dates and times in the values are normalized before anyone sees them.
    - handle_message(): classify, execute mutations, reply. Only input errors propagate.
    """

    def __init__(
        self,
        matcher: Optional[VectorMatcher] = None,
        generative: Optional[GenerativeClassifier] = None,
        extractor: Optional[ValueExtractor] = None,
        executor: Optional[ActionExecutor] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._matcher = matcher if matcher is not None else get_vector_matcher()
        self._generative = generative if generative is not None else GenerativeClassifier()
        self._extractor = extractor if extractor is not None else ValueExtractor()
        self._executor = executor if executor is not None else ActionExecutor(today=today)
        self._today = today

    @property
    def matcher(self) -> VectorMatcher:
        return self._matcher

    async def classify(self, utterance: str) -> Classification:
        text = (utterance or "").strip()
        if not text:
            raise AppError(
                ErrorMessage.EMPTY_MESSAGE.value.message,
                ErrorMessage.EMPTY_MESSAGE.value.http_status,
            )

        result = await self._from_matcher(text)
        if result is None:
            result = await self._from_generative(text)
        if result is None:
            result = deterministic_classifier.classify(text)

        values = normalize_values(result.extracted_values, self._today())
        logger.info(
            "intent.classified method=%s intent=%s entity=%s conf=%.2f",
            result.method.value,
            result.intent.value,
            result.entity.value,
            result.confidence,
        )
        return result.model_copy(update={"extracted_values": values})

    async def _from_matcher(self, text: str) -> Optional[Classification]:
        hit = await self._matcher.match(text)
        if hit is None:
            return None

        values: Dict[str, Any] = {}
        method = ClassificationMethod.semantic
        if hit.intent not in (IntentKind.query, IntentKind.chat):
            extraction = await self._extractor.extract(text, hit.intent, hit.entity)
            values = extraction.values
            method = (
                ClassificationMethod.semantic_llm
                if extraction.strategy == "llm"
                else ClassificationMethod.semantic_regex
            )
        time_ref = values.get("date") or values.get("time_reference")
        return Classification(
            intent=hit.intent,
            entity=hit.entity,
            extracted_values=values,
            time_reference=str(time_ref) if time_ref else None,
            original_query=text,
            confidence=hit.confidence,
            method=method,
        )

    async def _from_generative(self, text: str) -> Optional[Classification]:
        result = await self._generative.classify(text)
        if result is None or not result.is_mutation:
            return result
        if has_identifying_values(result.entity, result.extracted_values):
            return result
        # model named the action but not the thing; let the extractor fill in
        extraction = await self._extractor.extract(text, result.intent, result.entity)
        merged = {**extraction.values, **result.extracted_values}
        return result.model_copy(update={"extracted_values": merged})

    async def execute(
        self,
        classification: Classification,
        override_values: Optional[Dict[str, Any]] = None,
    ) -> ActionResult:
        if override_values is not None:
            override_values = normalize_values(override_values, self._today())
        return await self._executor.execute(classification, override_values)

    async def handle_message(self, message: str) -> ChatReply:
        t0 = time.perf_counter()
        try:
            classification = await self.classify(message)
            result: Optional[ActionResult] = None
            if classification.is_mutation:
                result = await self.execute(classification)
            reply = render_reply(classification, result)
        except AppError:
            raise
        except Exception:
            logger.exception("intent.chat.error")
            return ChatReply(
                reply=ErrorMessage.GENERIC_APOLOGY.value.message,
                actionResult=ActionResult(success=False, action=ActionKind.none),
                processingMs=int((time.perf_counter() - t0) * 1000),
            )

        ms = int((time.perf_counter() - t0) * 1000)
        logger.info(
            "intent.chat.done ms=%d action=%s",
            ms,
            result.action.value if result and result.action else None,
        )
        return ChatReply(
            reply=reply,
            classification=classification,
            actionResult=result,
            processingMs=ms,
        )
