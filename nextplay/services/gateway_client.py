"""Client for the upstream chat-completions gateway.

The gateway speaks the OpenAI-style contract:

- ``POST {base_url}/chat/completions`` with ``Authorization: Bearer <key>``
- body ``{model, messages, stream}`` (plus optional ``tools``/``tool_choice``)
- streamed replies are ``data: {json}`` lines closed by ``data: [DONE]``
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nextplay.core.exceptions import QuotaExhausted, RateLimited, UpstreamError
from nextplay.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class AiGatewayClient:
    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings or get_settings()

        api_key = self._settings.ai_gateway_api_key
        self._client = httpx.AsyncClient(
            base_url=self._settings.ai_gateway_url.rstrip("/"),
            headers={"Authorization": f"Bearer {api_key}"} if api_key else None,
            # Read timeout doubles as the idle timeout between streamed chunks.
            timeout=httpx.Timeout(
                self._settings.ai_gateway_timeout,
                read=self._settings.stream_idle_timeout,
            ),
            transport=transport,
        )

    @property
    def model(self) -> str:
        return self._settings.ai_model

    def _require_api_key(self) -> None:
        if not self._settings.ai_gateway_api_key:
            raise RuntimeError("AI_GATEWAY_API_KEY is not configured")

    async def open_chat_stream(self, messages: list[dict[str, str]]) -> httpx.Response:
        """Start a streamed completion and return the open response.

        The body has not been read; the caller iterates it and must close it.
        Non-success statuses are raised as errors after the body is drained.
        """
        self._require_api_key()
        payload = {"model": self.model, "messages": messages, "stream": True}
        request = self._client.build_request("POST", "/chat/completions", json=payload)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.exception("AI gateway request failed")
            raise UpstreamError(body=str(e)) from e

        if response.is_success:
            return response

        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        finally:
            await response.aclose()
        raise self._error_for(response.status_code, body)

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: dict[str, Any] | str | None = None,
    ) -> dict[str, Any]:
        """Non-streamed completion; returns the decoded JSON body."""
        self._require_api_key()
        payload: dict[str, Any] = {"model": self.model, "messages": messages}
        if tools:
            payload["tools"] = tools
            if tool_choice is not None:
                payload["tool_choice"] = tool_choice

        try:
            response = await self._client.post("/chat/completions", json=payload)
        except httpx.HTTPError as e:
            logger.exception("AI gateway request failed")
            raise UpstreamError(body=str(e)) from e

        if not response.is_success:
            raise self._error_for(response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                upstream_status=response.status_code, body=response.text
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _error_for(status_code: int, body: str) -> Exception:
        if status_code == 429:
            return RateLimited()
        if status_code == 402:
            return QuotaExhausted()
        logger.error("AI gateway error: status=%s body=%s", status_code, body)
        return UpstreamError(upstream_status=status_code, body=body)
