# main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
from starlette.middleware.cors import CORSMiddleware
import routes
from config.cache import close_redis, get_redis, redis_alive
from config.settings import settings
from core.llm_client import llm_configured
from core.vector_matcher import get_vector_matcher
from model.api import HealthResponse
from util.enums import Color, Environment
from util.errors import AppError
from util.logger import init_logger

logger = logging.getLogger(__name__)


async def _client_ip(request: Request) -> str:
    # rate-limit key; behind a proxy the first forwarded hop is the caller
    if settings.TRUST_PROXY:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _error_body(error: str, message: str) -> dict:
    return {"ok": False, "error": error, "message": message}


@asynccontextmanager
async def lifespan(fastApi: FastAPI):
    init_logger()
    print(f"{Color.GREEN}Starting ISHA intent core ({settings.APP_ENV})...{Color.RESET}")
    try:
        redis = await get_redis()
        await FastAPILimiter.init(redis, identifier=_client_ip)
    except Exception as e:
        logger.error("app.start.redis.error url=%s err=%s", settings.REDIS_URL, e)
        raise

    # The corpus index builds in the background; until it is ready every
    # request is answered by the generative and rule tiers. A failed build
    # is started again by the next lookup.
    warmup = asyncio.create_task(get_vector_matcher().initialize())
    logger.info(
        "app.start env=%s llm=%s threshold=%.2f",
        settings.APP_ENV,
        llm_configured(),
        settings.SEMANTIC_MATCH_THRESHOLD,
    )

    try:
        yield
    finally:
        warmup.cancel()
        try:
            await close_redis()
        except Exception as e:
            logger.warning("app.stop.redis.error err=%s", e)
        print(f"{Color.RED}ISHA intent core stopped{Color.RESET}")


app: FastAPI = FastAPI(title="ISHA intent core", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOWED_ORIGIN],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)


@app.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(
        ok=True,
        matcherReady=get_vector_matcher().is_ready,
        llmConfigured=llm_configured(),
        storeReachable=await redis_alive(),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("bad_request", str(exc.detail)),
    )


@app.exception_handler(429)
async def ratelimit_handler(request: Request, exc):
    wait = settings.RATE_LIMIT_SECONDS
    return JSONResponse(
        status_code=429,
        content=_error_body("rate_limited", f"Too many requests. Try again in {wait}s."),
        headers={"Retry-After": str(wait)},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("app.request.error path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "Something went wrong on our side."),
    )


routes.register_routes(app)

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=reload)
