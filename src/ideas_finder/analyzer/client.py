"""Synchronous chat-completion client for the hosted model endpoint.

One POST per call, no streaming and no retry: a failed call aborts only the
section that issued it, and the orchestrator decides whether that is fatal.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from ideas_finder.analyzer.schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    Usage,
)
from ideas_finder.config.settings import ModelSettings
from ideas_finder.errors import ModelCallError, ModelResponseError

logger = logging.getLogger(__name__)

# Provider error bodies can be whole HTML pages.
_ERROR_BODY_LIMIT = 2000


@dataclass
class CompletionResult:
    """Completion text plus the provider's usage counters."""

    text: str
    usage: Usage | None
    model: str = ""
    elapsed_seconds: float = 0.0


class ModelClient:
    """Sends single user-role prompts to the configured chat-completion API.

    Args:
        settings: Endpoint, model id, sampling parameters and API key.
        http_client: Optional pre-built client (tests inject one backed by
            ``httpx.MockTransport``).  When omitted the client is created
            lazily and closed by :meth:`close`.
    """

    def __init__(
        self, settings: ModelSettings, http_client: httpx.Client | None = None
    ) -> None:
        self.settings = settings
        self._client = http_client
        self._owns_client = http_client is None

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.timeout_seconds)
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> ModelClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def complete(self, prompt: str) -> CompletionResult:
        """Send *prompt* and wait for the full completion.

        Raises:
            ModelCallError: Non-2xx response (carries status and body).
            ModelResponseError: 2xx body that is not a chat completion.
            httpx.HTTPError: Transport failure (propagated unchanged).
        """
        request = ChatCompletionRequest(
            model=self.settings.model_id,
            messages=[ChatMessage(role="user", content=prompt)],
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )

        logger.debug(
            "POST %s (model=%s, prompt %d chars)",
            self.settings.endpoint,
            self.settings.model_id,
            len(prompt),
        )
        start = time.monotonic()
        response = self._http().post(
            self.settings.endpoint,
            json=request.model_dump(),
            headers={
                "Authorization": f"Bearer {self.settings.api_key}",
                "Content-Type": "application/json",
            },
        )
        elapsed = time.monotonic() - start

        if not response.is_success:
            body = response.text[:_ERROR_BODY_LIMIT]
            logger.error(
                "Model API returned %d after %.1fs: %s",
                response.status_code,
                elapsed,
                body[:200],
            )
            raise ModelCallError(response.status_code, body)

        try:
            parsed = ChatCompletionResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise ModelResponseError(
                f"Unexpected chat-completion body: {str(exc)[:200]}"
            ) from exc

        logger.debug(
            "Completion received in %.1fs (%d chars)", elapsed, len(parsed.content)
        )
        return CompletionResult(
            text=parsed.content,
            usage=parsed.usage,
            model=parsed.model or self.settings.model_id,
            elapsed_seconds=elapsed,
        )
