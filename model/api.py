# model/api.py
from typing import Any
from pydantic import BaseModel, Field
from model.action import ActionResult
from model.intent import Classification, EntityKind, IntentKind


class MessageRequest(BaseModel):
    message: str = Field(min_length=1)


class ExecuteRequest(BaseModel):
    classification: Classification
    values: dict[str, Any] | None = None


class ChatReply(BaseModel):
    reply: str
    classification: Classification | None = None
    actionResult: ActionResult | None = None
    processingMs: int = 0


class TopMatch(BaseModel):
    text: str
    intent: IntentKind
    entity: EntityKind
    similarity: float


class TopMatchesResponse(BaseModel):
    ready: bool
    matches: list[TopMatch]


class HealthResponse(BaseModel):
    ok: bool
    matcherReady: bool
    llmConfigured: bool
    storeReachable: bool
