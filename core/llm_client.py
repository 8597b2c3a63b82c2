# core/llm_client.py
import json
from typing import Any, Dict, Optional, Protocol
import httpx
from config.settings import settings
from util.errors import MalformedModelOutput, UpstreamUnavailable
from util.functions import strip_code_fences
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


class CompleteFn(Protocol):
    async def __call__(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        json_mode: bool = ...,
        temperature: float = ...,
        max_tokens: int = ...,
    ) -> str: ...


def llm_configured() -> bool:
    return bool(settings.ANTHROPIC_API_KEY)


async def _post_json(
    url: str,
    headers: Dict[str, str],
    payload: Dict[str, Any],
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Make a JSON POST to `url`. Transport errors and non-2xx raise UpstreamUnavailable.
    A body that is not a JSON object raises MalformedModelOutput.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.post(url, headers=headers, json=payload)
            r.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise UpstreamUnavailable(f"llm status {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise UpstreamUnavailable(f"llm request failed: {type(e).__name__}") from e
    try:
        data = r.json()
    except ValueError as e:
        raise MalformedModelOutput("llm response body is not JSON") from e
    if not isinstance(data, dict):
        raise MalformedModelOutput(f"llm response body is a {type(data).__name__}, not an object")
    return data


def _first_text(data: Dict[str, Any]) -> str:
    content = data.get("content") or []
    if content and isinstance(content, list):
        node = content[0]
        if isinstance(node, dict) and node.get("type") == "text":
            return node.get("text") or ""
    return ""


async def complete(
    system_prompt: str,
    user_prompt: str,
    *,
    json_mode: bool = True,
    temperature: float = settings.LLM_TEMPERATURE,
    max_tokens: int = settings.EXTRACT_MAX_TOKENS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    One Anthropic Messages call; returns the reply text.

    json_mode prefills the assistant turn with "{" so the model continues a JSON
    object; the brace is put back on the returned text.
    """
    if not llm_configured():
        raise UpstreamUnavailable("ANTHROPIC_API_KEY is not set")

    messages = [{"role": "user", "content": user_prompt}]
    if json_mode:
        messages.append({"role": "assistant", "content": "{"})

    headers = {
        "x-api-key": settings.ANTHROPIC_API_KEY,
        "anthropic-version": settings.ANTHROPIC_VERSION,
        "content-type": "application/json",
    }
    payload = {
        "model": settings.ANTHROPIC_MODEL,
        "max_tokens": max_tokens,
        "system": system_prompt,
        "messages": messages,
        "temperature": temperature,
    }
    with timed(logger, "ai.complete", model=settings.ANTHROPIC_MODEL, json=json_mode):
        data = await _post_json(
            settings.ANTHROPIC_API_URL,
            headers,
            payload,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            transport=transport,
        )

    text = _first_text(data)
    if json_mode and not text.lstrip().startswith("{"):
        text = "{" + text
    return text


def parse_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse a model reply into a dict. Code fences are tolerated; anything that is
    not a JSON object raises MalformedModelOutput.
    """
    text = strip_code_fences(raw)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        # a trailing sentence after the object is a common failure
        end = text.rfind("}")
        if end == -1:
            raise MalformedModelOutput("no JSON object in model output")
        try:
            parsed = json.loads(text[: end + 1])
        except json.JSONDecodeError as e:
            raise MalformedModelOutput(f"invalid JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise MalformedModelOutput(f"expected object, got {type(parsed).__name__}")
    return parsed
