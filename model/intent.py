# model/intent.py
from enum import Enum
from typing import Any
from pydantic import BaseModel, Field, field_validator


class IntentKind(str, Enum):
    query = "query"
    add = "add"
    update = "update"
    delete = "delete"
    chat = "chat"


class EntityKind(str, Enum):
    workout = "workout"
    diet = "diet"
    recipe = "recipe"
    steps = "steps"
    measurement = "measurement"
    reminder = "reminder"
    shopping = "shopping"
    wishlist = "wishlist"
    analytics = "analytics"
    general = "general"
    book = "book"
    anime = "anime"


class ClassificationMethod(str, Enum):
    semantic = "semantic"
    semantic_llm = "semantic+llm"
    semantic_regex = "semantic+regex"
    llm = "llm"
    fallback = "fallback"


MUTATING_INTENTS = frozenset({IntentKind.add, IntentKind.update, IntentKind.delete})


class Classification(BaseModel):
    intent: IntentKind
    entity: EntityKind
    extracted_values: dict[str, Any] = Field(default_factory=dict)
    time_reference: str | None = None
    original_query: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    method: ClassificationMethod

    # Model outputs and cosine scores can drift slightly outside [0, 1]
    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> float:
        try:
            num = float(v)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(1.0, num))

    @property
    def is_mutation(self) -> bool:
        return self.intent in MUTATING_INTENTS
