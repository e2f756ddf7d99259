from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable

from app.ai.types import CompletionOptions, ExtractionFunction, TokenUsage
from app.schemas.extraction import ExtractedData
from app.schemas.orchestration import ExtractionError
from app.schemas.validation import ValidationResult
from app.validation.rules import ValidationContext

from .completion import ParsedCompletion, parse_completion_output, payload_to_extracted_data
from .json_repair import StructuredOutputError, try_repair_json
from .prompts import build_enhanced_guidance, build_repair_prompt, build_section_prompt

logger = logging.getLogger(__name__)

MIN_SECTION_CHARS = 50
SECTION_HEADERS = (
    "experience",
    "work history",
    "employment",
    "education",
    "skills",
    "certifications",
    "achievements",
    "summary",
    "objective",
)


@dataclass(slots=True)
class PassContext:
    category: str
    resume_text: str
    prompt: str
    extract_fn: ExtractionFunction
    validation_context: ValidationContext
    options: CompletionOptions | None = None


@dataclass(slots=True)
class ExtractionAttempt:
    parsed: ParsedCompletion
    validation: ValidationResult


@dataclass(frozen=True, slots=True)
class RecoveryStrategy:
    name: str
    cost: int
    should_attempt: Callable[[ExtractionError, int], bool]
    execute: Callable[[PassContext, ExtractionAttempt], ParsedCompletion]


def split_resume_into_sections(resume_text: str) -> list[tuple[str, str]]:
    """Loose header split used for section-by-section recovery: (title, text) pairs."""
    sections: list[tuple[str, str]] = []
    title = "Introduction"
    lines: list[str] = []
    for line in (resume_text or "").split("\n"):
        lowered = line.strip().lower()
        if len(line) < 50 and any(header in lowered for header in SECTION_HEADERS):
            if "\n".join(lines).strip():
                sections.append((title, "\n".join(lines)))
            title = line.strip()
            lines = []
        else:
            lines.append(line)
    if "\n".join(lines).strip():
        sections.append((title, "\n".join(lines)))
    return sections


def _enhanced_prompt(context: PassContext, previous: ExtractionAttempt) -> ParsedCompletion:
    prompt = context.prompt + build_enhanced_guidance(previous.validation.issues)
    return parse_completion_output(context.extract_fn(prompt, context.options), context.category)


def _different_model(context: PassContext, previous: ExtractionAttempt) -> ParsedCompletion:
    options = CompletionOptions(force_high_quality=True, requires_accuracy=True)
    return parse_completion_output(context.extract_fn(context.prompt, options), context.category)


def _json_repair(context: PassContext, previous: ExtractionAttempt) -> ParsedCompletion:
    raw = previous.parsed.raw
    repaired = try_repair_json(raw)
    if repaired is not None:
        return ParsedCompletion(
            category=context.category,
            data=payload_to_extracted_data(repaired, context.category),
            raw=raw,
            payload=repaired,
        )

    fixed = parse_completion_output(context.extract_fn(build_repair_prompt(raw), context.options), context.category)
    if fixed.malformed:
        raise StructuredOutputError("Completion service could not repair its output.", raw=fixed.raw)
    return fixed


def _section_by_section(context: PassContext, previous: ExtractionAttempt) -> ParsedCompletion:
    items: list = []
    prompt_tokens = completion_tokens = total_tokens = 0
    model = None
    for title, text in split_resume_into_sections(context.resume_text):
        if len(text.strip()) < MIN_SECTION_CHARS:
            continue
        try:
            parsed = parse_completion_output(
                context.extract_fn(build_section_prompt(text, context.prompt), context.options),
                context.category,
            )
        except Exception as exc:
            logger.warning(
                json.dumps(
                    {
                        "event": "section_extraction_failed",
                        "category": context.category,
                        "section": title,
                        "error": str(exc),
                    }
                )
            )
            continue
        items.extend(parsed.items)
        prompt_tokens += parsed.usage.prompt
        completion_tokens += parsed.usage.completion
        total_tokens += parsed.usage.total
        model = model or parsed.model

    return ParsedCompletion(
        category=context.category,
        data=ExtractedData.model_validate({context.category: items}),
        raw=json.dumps({"items": [item.model_dump() for item in items]}, ensure_ascii=False),
        usage=TokenUsage(prompt=prompt_tokens, completion=completion_tokens, total=total_tokens),
        model=model,
    )


enhanced_prompt_strategy = RecoveryStrategy(
    name="enhanced_prompt",
    cost=1,
    should_attempt=lambda error, attempt: attempt == 1 and error.type == "low_confidence",
    execute=_enhanced_prompt,
)
json_repair_strategy = RecoveryStrategy(
    name="json_repair",
    cost=1,
    should_attempt=lambda error, attempt: error.type == "malformed_json",
    execute=_json_repair,
)
section_by_section_strategy = RecoveryStrategy(
    name="section_by_section",
    cost=2,
    should_attempt=lambda error, attempt: error.type == "incomplete_extraction",
    execute=_section_by_section,
)
different_model_strategy = RecoveryStrategy(
    name="different_model",
    cost=3,
    should_attempt=lambda error, attempt: attempt == 2 and error.type == "low_confidence",
    execute=_different_model,
)

RETRY_STRATEGIES: tuple[RecoveryStrategy, ...] = (
    enhanced_prompt_strategy,
    json_repair_strategy,
    section_by_section_strategy,
    different_model_strategy,
)


def select_strategies(
    error: ExtractionError,
    attempt: int,
    strategies: tuple[RecoveryStrategy, ...] = RETRY_STRATEGIES,
) -> list[RecoveryStrategy]:
    return sorted(
        (strategy for strategy in strategies if strategy.should_attempt(error, attempt)),
        key=lambda strategy: strategy.cost,
    )
