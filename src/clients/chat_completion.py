"""OpenAI-compatible chat completions client.

HTTP client for ``POST {base_url}/chat/completions``. Serves both OpenAI and
Groq, which exposes the same wire format under
``https://api.groq.com/openai/v1``.

Supports:
- Blocking completion returning the first choice's content
- Token streaming over Server-Sent Events (``stream: true``)
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from pydantic import BaseModel, Field

from src.core.constants import DEFAULT_TEMPERATURE, Timeouts
from src.core.exceptions import ChatCompletionClientError


logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


# =============================================================================
# Request/Response Models
# =============================================================================

class ChatMessage(BaseModel):
    """Chat message in OpenAI format."""

    role: str = Field(..., description="Message role: user, system, assistant")
    content: str = Field(..., description="Message content")


class ChatCompletionRequest(BaseModel):
    """OpenAI-compatible chat completion request."""

    model: str = Field(..., description="Model ID")
    messages: list[ChatMessage] = Field(..., description="Conversation messages")
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    stream: bool = Field(default=False)


class ChatCompletionChoice(BaseModel):
    """Choice in chat completion response."""

    index: int = 0
    message: ChatMessage
    finish_reason: str | None = None


class Usage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    """OpenAI-compatible chat completion response."""

    id: str = ""
    object: str = "chat.completion"
    created: int = 0
    model: str = ""
    choices: list[ChatCompletionChoice]
    usage: Usage | None = None


# =============================================================================
# Chat Completion Client
# =============================================================================

class ChatCompletionClient:
    """HTTP client for an OpenAI-compatible chat completions endpoint.

    Usage:
        client = ChatCompletionClient(
            base_url="https://api.openai.com/v1",
            api_key="sk-...",
            model="gpt-3.5-turbo",
        )
        answer = await client.complete([{"role": "user", "content": "Hello"}])

        async for token in client.stream(messages):
            ...

    Attributes:
        base_url: API base URL (without the /chat/completions suffix)
        model: Model ID sent with every request
        temperature: Sampling temperature; None leaves it to the provider
        timeout: Request timeout in seconds
        provider: Provider name used in logs and errors
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        temperature: float | None = None,
        timeout: float = Timeouts.LLM_DEFAULT,
        provider: str = "openai",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model.strip()
        self.temperature = temperature
        self.timeout = timeout
        self.provider = provider
        self._api_key = api_key
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        return self._client

    async def close(self) -> None:
        """Release HTTP client resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_payload(self, messages: list[dict[str, str]], stream: bool) -> dict[str, Any]:
        request = ChatCompletionRequest(
            model=self.model,
            messages=[
                ChatMessage(role=m.get("role", "user"), content=m.get("content", ""))
                for m in messages
            ],
            stream=stream,
        )
        payload = request.model_dump(exclude_none=True)
        if self.temperature is None:
            payload.pop("temperature", None)
        else:
            payload["temperature"] = self.temperature
        return payload

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Generate a chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'

        Returns:
            Generated completion text

        Raises:
            ChatCompletionClientError: On HTTP or transport errors
            ValueError: When the response has no choices
        """
        logger.info(
            "Calling %s chat completions: model=%s, messages=%d",
            self.provider,
            self.model,
            len(messages),
        )

        client = self._get_client()
        try:
            response = await client.post(
                "/chat/completions",
                json=self._build_payload(messages, stream=False),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ChatCompletionClientError(
                f"{self.provider} returned {e.response.status_code}: {e.response.text}",
                provider=self.provider,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ChatCompletionClientError(
                f"{self.provider} request failed: {e}",
                provider=self.provider,
            ) from e

        completion = ChatCompletionResponse.model_validate(response.json())
        if not completion.choices:
            raise ValueError("No completion choices returned")

        logger.info(
            "Completion received: tokens=%s, model=%s",
            completion.usage.total_tokens if completion.usage else "unknown",
            completion.model,
        )
        return completion.choices[0].message.content

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Stream a chat completion token by token.

        Args:
            messages: List of message dicts with 'role' and 'content'

        Yields:
            Non-empty content deltas in arrival order

        Raises:
            ChatCompletionClientError: On HTTP or transport errors
        """
        client = self._get_client()
        try:
            async with client.stream(
                "POST",
                "/chat/completions",
                json=self._build_payload(messages, stream=True),
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise ChatCompletionClientError(
                        f"{self.provider} returned {response.status_code}: {body}",
                        provider=self.provider,
                        status_code=response.status_code,
                    )
                async for line in response.aiter_lines():
                    token = parse_stream_line(line)
                    if token is None:
                        continue
                    if token == SSE_DONE:
                        break
                    yield token
        except httpx.HTTPError as e:
            raise ChatCompletionClientError(
                f"{self.provider} stream failed: {e}",
                provider=self.provider,
            ) from e


def parse_stream_line(line: str) -> str | None:
    """Extract the content delta from one SSE line.

    Args:
        line: Raw line from the event stream

    Returns:
        The delta text, ``"[DONE]"`` for the terminator, or None for
        keep-alives, blank lines and chunks without content
    """
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return None

    data = line[len(SSE_DATA_PREFIX):].strip()
    if data == SSE_DONE:
        return SSE_DONE

    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed stream chunk: %s", data[:100])
        return None

    choices = chunk.get("choices") or []
    if not choices:
        return None
    content = (choices[0].get("delta") or {}).get("content")
    return content or None
