from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from app.ai.types import (
    ChatMessage,
    CompletionClient,
    CompletionOptions,
    CompletionOutput,
    CompletionResponse,
    ExtractionFunction,
    TokenUsage,
)
from app.schemas.extraction import ITEM_MODELS, PASS_CATEGORIES, ExtractedData

from .json_repair import StructuredOutputError, repair_json
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

_LIST_KEYS = ("items", "data", "results")
_CATEGORY_KEYS: dict[str, tuple[str, ...]] = {
    "power_phrases": ("power_phrases", "powerPhrases", "achievements"),
    "skills": ("skills", "transferable_skills", "transferableSkills"),
    "competencies": ("competencies", "hidden_competencies", "hiddenCompetencies"),
    "soft_skills": ("soft_skills", "softSkills"),
}
_TEXT_FIELDS = {
    "power_phrases": "phrase",
    "skills": "stated_skill",
    "competencies": "competency_area",
    "soft_skills": "soft_skill",
}
_REASONING_KEYS = ("reasoning", "ai_reasoning", "aiReasoning")


@dataclass
class ParsedCompletion:
    category: str
    data: ExtractedData
    raw: str
    malformed: bool = False
    reasoning: str | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str | None = None
    latency_ms: int | None = None
    payload: Any = None

    @property
    def items(self) -> list[Any]:
        return self.data.bucket(self.category)


def _raw_text(output: Any) -> str:
    if isinstance(output, str):
        return output
    try:
        return json.dumps(output, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(output)


def _payload_items(payload: Any, category: str) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    for key in _CATEGORY_KEYS.get(category, ()) + _LIST_KEYS:
        value = payload.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, dict):
            nested = _payload_items(value, category)
            if nested:
                return nested
    if _TEXT_FIELDS.get(category) in payload:
        return [payload]
    return []


def _reasoning(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in _REASONING_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def payload_to_extracted_data(payload: Any, category: str) -> ExtractedData:
    model = ITEM_MODELS[category]
    text_field = _TEXT_FIELDS[category]
    items = []
    for raw_item in _payload_items(payload, category):
        if isinstance(raw_item, str):
            raw_item = {text_field: raw_item}
        if not isinstance(raw_item, dict):
            continue
        try:
            items.append(model.model_validate(raw_item))
        except ValidationError as exc:
            logger.debug("extraction_item_skipped category=%s errors=%s", category, exc.error_count())
    return ExtractedData.model_validate({category: items})


def parse_completion_output(output: CompletionOutput, category: str) -> ParsedCompletion:
    """Coerce whatever a completion function returned into the pass bucket."""
    usage = TokenUsage()
    model = None
    latency_ms = None

    if isinstance(output, CompletionResponse):
        usage, model, latency_ms = output.usage, output.model, output.latency_ms
        raw = output.raw
        payload = output.parsed if output.parsed is not None else raw
    else:
        raw = _raw_text(output) if output is not None else ""
        payload = output

    malformed = False
    if isinstance(payload, str):
        try:
            payload = repair_json(payload)
        except StructuredOutputError:
            malformed = bool(payload.strip())
            payload = None

    return ParsedCompletion(
        category=category,
        data=payload_to_extracted_data(payload, category),
        raw=raw,
        malformed=malformed,
        reasoning=_reasoning(payload),
        usage=usage,
        model=model,
        latency_ms=latency_ms,
        payload=payload,
    )


def build_extraction_functions(client: CompletionClient) -> dict[str, ExtractionFunction]:
    def _make(category: str) -> ExtractionFunction:
        def _extract(prompt: str, options: CompletionOptions | None = None) -> CompletionResponse:
            messages = [
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(role="user", content=prompt),
            ]
            return client.complete_json(messages, options=options)

        _extract.__name__ = f"extract_{category}"
        return _extract

    return {category: _make(category) for category in PASS_CATEGORIES}
