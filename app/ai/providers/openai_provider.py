from __future__ import annotations

import json
import logging
import os
import time
from typing import Optional, Sequence

from openai import OpenAI, OpenAIError

from app.ai.types import (
    ChatMessage,
    CompletionError,
    CompletionOptions,
    CompletionResponse,
    TokenUsage,
)

logger = logging.getLogger(__name__)


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


class OpenAIProvider:
    """JSON-mode chat completions used by the extraction passes."""

    def __init__(
        self,
        model: str,
        high_quality_model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 2,
        temperature: float = 0.2,
        max_output_tokens: int = 4000,
    ):
        self._model = model
        self._high_quality_model = high_quality_model or model
        self._temperature = temperature
        self._max_output_tokens = int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS", str(max_output_tokens)))
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key or _looks_like_placeholder(key):
            raise CompletionError("OPENAI_API_KEY is missing", code="llm_disabled")

        self._client = OpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    @property
    def model(self) -> str:
        return self._model

    def _resolve_model(self, options: CompletionOptions | None) -> str:
        if options and (options.force_high_quality or options.requires_accuracy):
            return self._high_quality_model
        return self._model

    def complete_json(
        self,
        messages: Sequence[ChatMessage],
        *,
        options: CompletionOptions | None = None,
    ) -> CompletionResponse:
        model = self._resolve_model(options)
        temperature = self._temperature
        if options and options.temperature is not None:
            temperature = options.temperature
        elif options and options.requires_accuracy:
            temperature = 0.1

        started = time.perf_counter()
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                temperature=temperature,
                response_format={"type": "json_object"},
                max_tokens=self._max_output_tokens,
            )
        except OpenAIError as exc:
            logger.warning(json.dumps({"event": "completion_request_failed", "model": model, "error": type(exc).__name__}))
            raise CompletionError(str(exc) or type(exc).__name__, code="completion_failed") from exc
        latency_ms = int((time.perf_counter() - started) * 1000)

        content = response.choices[0].message.content if response.choices else ""
        if not content:
            raise CompletionError("Completion service returned an empty response.", code="empty_response")

        usage = getattr(response, "usage", None)
        token_usage = TokenUsage(
            prompt=int(getattr(usage, "prompt_tokens", 0) or 0),
            completion=int(getattr(usage, "completion_tokens", 0) or 0),
            total=int(getattr(usage, "total_tokens", 0) or 0),
        )

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError:
            # Malformed output is handed back raw so the repair strategy can work on it.
            logger.warning("openai_json_invalid model=%s content_len=%s", model, len(content))
            parsed = None

        return CompletionResponse(
            raw=content,
            parsed=parsed,
            usage=token_usage,
            model=model,
            latency_ms=latency_ms,
        )
