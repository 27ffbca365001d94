"""Model provider abstraction with retry logic."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol, Sequence, runtime_checkable

import httpx

from ..core.errors import ModelCallError
from ..models.message import Message
from ..models.provider import ModelReply, ToolSchema
from ..utils.sanitize import sanitize_error

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


@runtime_checkable
class ModelProvider(Protocol):
    """Protocol that all model providers must implement."""

    name: str

    async def complete(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply: ...


class BaseProvider:
    """Base class with shared HTTP, retry and config handling."""

    name: str = "base"

    def __init__(
        self,
        provider_config: dict,
        common_config: dict,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = provider_config
        self.common = common_config
        self.transport = transport
        self.max_attempts = max(1, common_config.get("retry_attempts", 3))
        self.retry_delay = common_config.get("retry_delay_seconds", 2)

    async def complete(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply:
        raise NotImplementedError

    async def complete_with_retry(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply:
        """Wrap complete() with retries for rate limits, 5xx and timeouts."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.complete(model, messages, tools)
            except ModelCallError as e:
                if not e.retryable or attempt >= self.max_attempts:
                    raise
                is_rate_limit = e.status_code == 429
                # Rate limits back off harder than transient server errors.
                base_delay = self.retry_delay * (5 if is_rate_limit else 1)
                await asyncio.sleep(base_delay * min(attempt, 3))
        raise ModelCallError("Max retries exceeded")

    async def _post_json(self, url: str, body: dict, headers: Optional[dict] = None) -> dict:
        """POST a JSON body and return the decoded response, raising ModelCallError."""
        timeout = self.common.get("timeout_seconds", 120)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                response = await client.post(url, json=body, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ModelCallError(
                sanitize_error(f"{self.name}: {status} | {e.response.text}"),
                status_code=status,
                retryable=status in RETRYABLE_STATUS,
            ) from e
        except httpx.TimeoutException as e:
            raise ModelCallError(f"{self.name}: request timed out", retryable=True) from e
        except httpx.HTTPError as e:
            raise ModelCallError(
                sanitize_error(f"{self.name}: {type(e).__name__}: {e}"),
                retryable=True,
            ) from e
        except ValueError as e:
            raise ModelCallError(f"{self.name}: invalid JSON response: {e}") from e


def get_model_provider(
    config: dict,
    provider_override: Optional[str] = None,
    endpoint_override: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BaseProvider:
    """Factory function to create the configured model provider."""
    ai_config = config.get("ai", {})
    provider_name = provider_override or ai_config.get("provider", "openai")

    provider_config = dict(ai_config.get(provider_name, {}))
    if endpoint_override:
        provider_config["endpoint"] = endpoint_override

    common_config = {
        k: v
        for k, v in ai_config.items()
        if k not in ("anthropic", "openai", "ollama")
    }

    if provider_name == "openai":
        from .openai_provider import OpenAIProvider
        return OpenAIProvider(provider_config, common_config, transport)
    elif provider_name == "anthropic":
        from .anthropic import AnthropicProvider
        return AnthropicProvider(provider_config, common_config, transport)
    elif provider_name == "ollama":
        from .ollama import OllamaProvider
        return OllamaProvider(provider_config, common_config, transport)
    else:
        raise ValueError(f"Unknown AI provider: {provider_name}")
