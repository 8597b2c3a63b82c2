# controller/assistant_controller.py
from fastapi import APIRouter, Depends, Query, status
from core.vector_matcher import VectorMatcher
from model.action import ActionResult
from model.api import (
    ChatReply,
    ExecuteRequest,
    MessageRequest,
    TopMatch,
    TopMatchesResponse,
)
from model.intent import Classification
from service.intent_service import IntentService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    get_intent_service,
    get_matcher,
    rate_limited,
)

assistant_router = APIRouter(dependencies=rate_limited())


@assistant_router.post(
    InternalURIs.CLASSIFY,
    response_model=Classification,
    status_code=status.HTTP_200_OK,
)
async def classify(
    payload: MessageRequest,
    service: IntentService = Depends(get_intent_service),
) -> Classification:
    return await service.classify(payload.message)


@assistant_router.post(InternalURIs.EXECUTE, response_model=ActionResult)
async def execute(
    payload: ExecuteRequest,
    service: IntentService = Depends(get_intent_service),
) -> ActionResult:
    return await service.execute(payload.classification, payload.values)


@assistant_router.post(InternalURIs.CHAT, response_model=ChatReply)
async def chat(
    payload: MessageRequest,
    service: IntentService = Depends(get_intent_service),
) -> ChatReply:
    return await service.handle_message(payload.message)


@assistant_router.get(InternalURIs.TOP_MATCHES, response_model=TopMatchesResponse)
async def top_matches(
    q: str = Query(..., min_length=1),
    n: int = Query(5, ge=1, le=20),
    matcher: VectorMatcher = Depends(get_matcher),
) -> TopMatchesResponse:
    pairs = await matcher.top_matches(q, n=n)
    return TopMatchesResponse(
        ready=matcher.is_ready,
        matches=[
            TopMatch(
                text=ex.utterance,
                intent=ex.intent,
                entity=ex.entity,
                similarity=round(score, 4),
            )
            for ex, score in pairs
        ],
    )
