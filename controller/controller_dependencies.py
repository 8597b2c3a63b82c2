# controller/controller_dependencies.py
from functools import lru_cache
from fastapi import Depends
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from core.vector_matcher import VectorMatcher, get_vector_matcher
from service.intent_service import IntentService


@lru_cache(maxsize=1)
def get_intent_service() -> IntentService:
    return IntentService(matcher=get_vector_matcher())


def get_matcher() -> VectorMatcher:
    return get_vector_matcher()


def rate_limited() -> list:
    return [
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]
