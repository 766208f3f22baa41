from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from monitor_match.config import DISCOVERY_REQUIRED_ENVS, Settings, assert_required_envs, mask_secret
from monitor_match.errors import CompletionError, MalformedResponseError, SchemaMismatchError
from monitor_match.telemetry import CompletionMeta, calculate_cost

logger = logging.getLogger(__name__)

Message = dict[str, str]
SchemaT = TypeVar("SchemaT", bound=BaseModel)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class Completion:
    content: str
    meta: CompletionMeta


class CompletionClient(Protocol):
    async def complete(
        self,
        messages: Sequence[Message],
        model: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> Completion: ...


class OpenRouterClient:
    """OpenAI-compatible chat completions over httpx.

    Transport errors are retried only when ``llm_retry_attempts`` > 1. If the
    requested model fails and a different ``fallback_model`` is configured,
    the call is repeated once on the fallback model.
    """

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        assert_required_envs(DISCOVERY_REQUIRED_ENVS, {"OPENROUTER_API_KEY": settings.openrouter_api_key})
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.openrouter_base_url,
            timeout=settings.request_timeout_seconds,
            transport=transport,
            headers={
                "Authorization": f"Bearer {settings.openrouter_api_key}",
                "HTTP-Referer": settings.app_url,
                "X-Title": settings.app_title,
            },
        )
        logger.debug(
            "openrouter client ready base_url=%s key=%s",
            settings.openrouter_base_url,
            mask_secret(settings.openrouter_api_key),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> OpenRouterClient:
        return self

    async def __aexit__(self, exc_type, exc, exc_tb) -> None:
        await self.aclose()

    async def complete(
        self,
        messages: Sequence[Message],
        model: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> Completion:
        try:
            return await self._complete_once(messages, model, temperature, max_tokens)
        except CompletionError as exc:
            fallback = self.settings.fallback_model
            if fallback is None or fallback == model:
                raise
            logger.warning("model %s failed (%s), trying fallback %s", model, exc, fallback)
            return await self._complete_once(messages, fallback, temperature, max_tokens)

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.llm_retry_attempts),
            wait=wait_fixed(self.settings.llm_retry_delay_seconds),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._client.post("/chat/completions", json=payload)
        return response

    async def _complete_once(
        self,
        messages: Sequence[Message],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        payload = {
            "model": model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        started = time.perf_counter()
        try:
            response = await self._post(payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise CompletionError(f"completion request failed: {exc}", model=model) from exc
        except ValueError as exc:
            raise CompletionError(f"completion response is not JSON: {exc}", model=model) from exc
        latency_ms = int((time.perf_counter() - started) * 1000)

        if not isinstance(data, dict):
            raise CompletionError("completion response is not an object", model=model)
        if data.get("error"):
            raise CompletionError(f"provider error: {data['error']}", model=model)

        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        usage = data.get("usage") or {}
        prompt_tokens = int(usage.get("prompt_tokens") or 0)
        completion_tokens = int(usage.get("completion_tokens") or 0)
        meta = CompletionMeta(
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms,
            cost=calculate_cost(model, prompt_tokens, completion_tokens),
        )
        return Completion(content=message.get("content") or "", meta=meta)


def extract_json(content: str, *, model: str | None = None) -> Any:
    """Parse the JSON payload of a completion: bare, fenced, or embedded in prose."""
    text = content.strip()
    candidates = [text]
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    bare = _BARE_OBJECT.search(text)
    if bare:
        candidates.append(bare.group(0))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise MalformedResponseError(content, model=model)


async def json_completion(
    client: CompletionClient,
    messages: Sequence[Message],
    model: str,
    schema: type[SchemaT],
    *,
    max_tokens: int = 1024,
) -> tuple[SchemaT, CompletionMeta]:
    completion = await client.complete(messages, model, temperature=0.3, max_tokens=max_tokens)
    payload = extract_json(completion.content, model=completion.meta.model)
    try:
        data = schema.model_validate(payload)
    except ValidationError as exc:
        raise SchemaMismatchError(
            schema.__name__,
            f"{exc.error_count()} validation error(s)",
            payload,
            model=completion.meta.model,
        ) from exc
    return data, completion.meta


def build_completion_client(settings: Settings) -> OpenRouterClient:
    return OpenRouterClient(settings)
