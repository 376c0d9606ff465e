from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from makeable.agent.blocks import Block, Turn, from_wire, turn_to_wire
from makeable.errors import UpstreamError, UpstreamTimeout

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


@dataclass
class AssistantMessage:
    content: List[Block]
    stop_reason: Optional[str] = None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text[:500]


class AnthropicClient:
    """Minimal Messages API client.

    Timeouts are retried up to ``timeout_retries`` times before surfacing as
    UpstreamTimeout; every other failure is raised immediately as UpstreamError.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        base_url: str = "https://api.anthropic.com",
        timeout: float = 300.0,
        timeout_retries: int = 2,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.model = model
        self.timeout_retries = timeout_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
        )

    async def __aenter__(self) -> "AnthropicClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        attempt = 0
        while True:
            try:
                return await self._client.post("/v1/messages", json=body)
            except httpx.TimeoutException as exc:
                if attempt >= self.timeout_retries:
                    raise UpstreamTimeout(f"LLM request timed out after {attempt + 1} attempt(s)") from exc
                attempt += 1
                logger.warning("LLM request timed out, retrying (%s/%s)", attempt, self.timeout_retries)
                await asyncio.sleep(self.retry_delay * attempt)
            except httpx.HTTPError as exc:
                raise UpstreamError(f"LLM transport error: {exc}") from exc

    async def create_message(
        self,
        *,
        system: str,
        turns: Sequence[Turn],
        tools: Sequence[Dict[str, Any]],
        max_tokens: int,
    ) -> AssistantMessage:
        body = {
            "model": self.model,
            "max_tokens": max_tokens,
            "system": system,
            "tools": list(tools),
            "messages": [turn_to_wire(turn) for turn in turns],
        }
        response = await self._post(body)
        if response.status_code >= 400:
            raise UpstreamError(_error_message(response), status=response.status_code)
        try:
            payload = response.json()
            raw_blocks = payload["content"]
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamError("Malformed response from LLM API", status=response.status_code) from exc

        content = [block for block in (from_wire(item) for item in raw_blocks if isinstance(item, dict)) if block is not None]
        return AssistantMessage(content=content, stop_reason=payload.get("stop_reason"))
