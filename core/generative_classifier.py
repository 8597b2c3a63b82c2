# core/generative_classifier.py
from typing import Any, Dict, Optional
from config.settings import settings
from core import llm_client
from core.llm_client import CompleteFn
from model.intent import Classification, ClassificationMethod, EntityKind, IntentKind
from util.errors import MalformedModelOutput, UpstreamUnavailable
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


def _user_prompt(utterance: str) -> str:
    return f"{utterance}\n\nReturn the JSON object only."


def _coerce(parsed: Dict[str, Any], utterance: str) -> Optional[Classification]:
    """
    Map the model's JSON onto a Classification, or None when intent/entity fall
    outside the closed sets. Both the nested {"details": {...}} shape from the
    prompt and a flat shape are accepted.
    """
    intent_raw = str(parsed.get("intent") or "").strip().lower()
    entity_raw = str(parsed.get("entity") or "").strip().lower()
    try:
        intent = IntentKind(intent_raw)
        entity = EntityKind(entity_raw)
    except ValueError:
        logger.warning(
            "intent.llm.invalid intent=%r entity=%r", intent_raw[:20], entity_raw[:20]
        )
        return None

    details = parsed.get("details")
    if not isinstance(details, dict):
        details = parsed
    values = details.get("extracted_values")
    if not isinstance(values, dict):
        values = {}
    time_ref = details.get("time_reference")

    return Classification(
        intent=intent,
        entity=entity,
        extracted_values={k: v for k, v in values.items() if v is not None},
        time_reference=str(time_ref) if time_ref else None,
        original_query=utterance,
        confidence=parsed.get("confidence", 0.8),
        method=ClassificationMethod.llm,
    )


class GenerativeClassifier:
    """
    Second cascade tier: one schema-constrained LLM call, no retry.
    Upstream failures and malformed output both come back as None.
    """

    def __init__(self, complete: CompleteFn = llm_client.complete) -> None:
        self._complete = complete

    async def classify(self, utterance: str) -> Optional[Classification]:
        try:
            with timed(logger, "intent.llm.classify"):
                raw = await self._complete(
                    settings.CLASSIFY_SYSTEM_PROMPT,
                    _user_prompt(utterance),
                    json_mode=True,
                    temperature=settings.LLM_TEMPERATURE,
                    max_tokens=settings.CLASSIFY_MAX_TOKENS,
                )
            parsed = llm_client.parse_json_object(raw)
        except UpstreamUnavailable as e:
            logger.warning("intent.llm.unavailable err=%s", e)
            return None
        except MalformedModelOutput as e:
            logger.warning("intent.llm.malformed err=%s", e)
            return None

        result = _coerce(parsed, utterance)
        if result is not None:
            logger.info(
                "intent.llm.ok intent=%s entity=%s conf=%.2f",
                result.intent.value,
                result.entity.value,
                result.confidence,
            )
        return result
