"""Azure OpenAI chat-completions client.

POST {endpoint}/openai/deployments/{deployment}/chat/completions?api-version=...
with the key in the ``api-key`` header. HTTP failures are mapped onto the
package's error taxonomy so callers can tell them apart.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from yaml_prompt_invoker.common.config import DEFAULT_API_VERSION, AzureOpenAISettings
from yaml_prompt_invoker.common.errors import (
    AuthenticationFailed,
    CompletionFailed,
    EndpointUnreachable,
    RateLimited,
)
from yaml_prompt_invoker.common.schema import ChatMessage, CompletionResult, ExecutionSettings

LOGGER = logging.getLogger("yaml_prompt_invoker.azure.chat")


def _error_detail(r: httpx.Response) -> str:
    """Pull ``error.message`` out of an Azure error body, else the raw text."""
    try:
        data = r.json()
    except ValueError:
        return r.text.strip() or r.reason_phrase
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return r.text.strip() or r.reason_phrase


@dataclass
class AzureChatClient:
    """Synchronous client for one Azure OpenAI chat deployment."""

    endpoint: str
    deployment_name: str
    api_key: str
    api_version: str = DEFAULT_API_VERSION
    timeout: float = 120.0

    @classmethod
    def from_settings(cls, settings: AzureOpenAISettings) -> "AzureChatClient":
        settings.require()
        return cls(
            endpoint=settings.endpoint,
            deployment_name=settings.deployment_name,
            api_key=settings.api_key,
            api_version=settings.api_version,
        )

    @property
    def url(self) -> str:
        return f"{self.endpoint.rstrip('/')}/openai/deployments/{self.deployment_name}/chat/completions"

    def complete(
        self,
        messages: list[ChatMessage],
        settings: ExecutionSettings | None = None,
    ) -> CompletionResult:
        """
        Send one chat-completion request.

        Args:
            messages: Conversation to send, usually system + user.
            settings: Sampling parameters from the template.

        Raises:
            EndpointUnreachable: Connection or timeout failure.
            AuthenticationFailed: 401/403 from the service.
            RateLimited: 429 from the service.
            CompletionFailed: Any other error status or an unusable body.
        """
        payload: dict[str, Any] = {
            "messages": [m.to_dict() for m in messages],
            "stream": False,
        }
        if settings is not None:
            payload.update(settings.to_payload())
        headers = {"api-key": self.api_key}
        params = {"api-version": self.api_version}

        start = time.time()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                r = client.post(self.url, params=params, headers=headers, json=payload)
        except httpx.TransportError as e:
            LOGGER.error("Chat request to %s failed: %s", self.endpoint, e)
            raise EndpointUnreachable(f"Could not reach {self.endpoint}: {e}") from e
        latency_ms = int((time.time() - start) * 1000)

        if r.status_code in (401, 403):
            raise AuthenticationFailed(f"Authentication failed ({r.status_code}): {_error_detail(r)}")
        if r.status_code == 429:
            LOGGER.warning("Rate limited by %s", self.endpoint)
            raise RateLimited(f"Rate limited: {_error_detail(r)}", retry_after=r.headers.get("retry-after"))
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            LOGGER.error("Chat request returned %s", r.status_code)
            raise CompletionFailed(f"Chat completion failed ({r.status_code}): {_error_detail(r)}") from e

        try:
            data = r.json()
            choice = data["choices"][0]
            text = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionFailed(f"Malformed chat completion response: {e}") from e
        if not text or not str(text).strip():
            raise CompletionFailed(f"Empty completion (finish_reason={choice.get('finish_reason')})")

        usage = data.get("usage") or {}
        result = CompletionResult(
            text=str(text).strip(),
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            finish_reason=choice.get("finish_reason"),
            latency_ms=latency_ms,
        )
        LOGGER.info(
            "Latency: %sms | in=%s out=%s finish=%s",
            result.latency_ms,
            result.prompt_tokens,
            result.completion_tokens,
            result.finish_reason,
        )
        return result
