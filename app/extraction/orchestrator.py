from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from app.ai.types import ExtractionFunction, TokenUsage
from app.core.config import settings
from app.frameworks.alignment import validate_against_framework
from app.frameworks.catalog import FrameworkProvider
from app.frameworks.prompt_context import build_framework_prompt_context
from app.observability.service import ExtractionObservability
from app.observability.store import get_extraction_store
from app.schemas.extraction import PASS_CATEGORIES, ExtractedData
from app.schemas.orchestration import (
    OrchestrationMetadata,
    OrchestrationResult,
    PassResult,
    PreExtractionContext,
)
from app.schemas.validation import ValidationSummary
from app.validation.engine import run_validation
from app.validation.rules import ValidationContext, calculate_text_coverage

from . import events
from .completion import ParsedCompletion
from .prompts import build_pass_prompt
from .recovery import PassContext
from .retry import RetryConfig, extract_with_retry
from .strategy import analyze_pre_extraction, completion_options_for

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationConfig:
    resume_text: str
    vault_id: str
    user_id: str
    extraction_functions: Mapping[str, ExtractionFunction]
    target_roles: Sequence[str] = ()
    target_industries: Sequence[str] = ()
    max_attempts: int | None = None
    min_confidence: float | None = None
    on_event: Callable[[str, dict[str, Any]], None] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


def _sum_usage(responses: Sequence[ParsedCompletion]) -> TokenUsage:
    return TokenUsage(
        prompt=sum(item.usage.prompt for item in responses),
        completion=sum(item.usage.completion for item in responses),
        total=sum(item.usage.total for item in responses),
    )


def _item_counts(extracted: ExtractedData) -> dict[str, int]:
    counts = {category: len(extracted.bucket(category)) for category in PASS_CATEGORIES}
    counts["total"] = sum(counts.values())
    return counts


class ExtractionOrchestrator:
    """Runs pre-extraction analysis, every pass with retry, and final cross-validation for one résumé."""

    def __init__(
        self,
        observability: ExtractionObservability | None = None,
        *,
        catalog: FrameworkProvider | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self._observability = observability or ExtractionObservability(get_extraction_store())
        self._catalog = catalog
        self._sleep = sleep or time.sleep

    def run(self, config: OrchestrationConfig) -> OrchestrationResult:
        started = time.perf_counter()
        obs = self._observability
        session = obs.start_session(
            vault_id=config.vault_id,
            user_id=config.user_id,
            extraction_version=settings.extraction_version,
            metadata={
                "resume_length": len(config.resume_text or ""),
                "target_roles": list(config.target_roles),
                "target_industries": list(config.target_industries),
                **config.metadata,
            },
        )
        session_id = session.id
        emitter = events.EventEmitter(
            events.logging_sink,
            events.observability_sink(obs, session_id),
            config.on_event,
        )

        try:
            return self._run(config, session_id, emitter, started)
        except Exception as exc:
            emitter.emit(events.EXTRACTION_FAILED, session_id=session_id, error=str(exc), error_type=type(exc).__name__)
            obs.end_session(session_id, "failed", {"error": str(exc)})
            raise

    def _run(
        self,
        config: OrchestrationConfig,
        session_id: str,
        emitter: events.EventEmitter,
        started: float,
    ) -> OrchestrationResult:
        obs = self._observability

        emitter.emit(events.PHASE_STARTED, phase="pre_extraction")
        context = analyze_pre_extraction(
            config.resume_text,
            config.target_roles,
            config.target_industries,
            self._catalog,
        )
        role_info = context.role_info
        framework_context = context.framework_context
        emitter.emit(
            events.PRE_EXTRACTION_COMPLETE,
            role_detected=role_info.primary_role if role_info else None,
            industry=role_info.industry if role_info else None,
            framework_match=framework_context.match_quality if framework_context else None,
            sections=len(context.resume_structure.sections),
            word_count=context.resume_structure.total_word_count,
        )
        obs.save_checkpoint(session_id, "pre_extraction", {"context": context.model_dump(mode="json")})

        emitter.emit(events.PHASE_STARTED, phase="extraction")
        extracted = ExtractedData()
        pass_results: list[PassResult] = []
        total_cost = 0
        retry_count = 0
        pass_order = context.extraction_strategy.pass_order

        for index, pass_type in enumerate(pass_order):
            extract_fn = config.extraction_functions.get(pass_type)
            if extract_fn is None:
                logger.error(json.dumps({"event": "extraction_function_missing", "pass_type": pass_type}))
                emitter.emit(events.PASS_SKIPPED, pass_type=pass_type, reason="no_extraction_function")
                pass_results.append(
                    PassResult(pass_type=pass_type, success=False, error="no_extraction_function")
                )
                continue

            emitter.emit(events.PASS_STARTED, pass_type=pass_type)
            obs.log_progress(
                session_id,
                pass_type,
                stage="extracting",
                percent=int(index * 100 / max(1, len(pass_order))),
                message=f"Extracting {pass_type.replace('_', ' ')}",
            )
            result, responses, latency_ms = self._run_pass(config, context, pass_type, extract_fn, emitter)

            extracted = extracted.merged_with(result.data, [pass_type])
            total_cost += result.metadata.total_cost
            retry_count += max(0, result.metadata.attempts - 1)

            usage = _sum_usage(responses)
            last = responses[-1] if responses else None
            if last is not None and last.payload is not None:
                parsed_data = last.payload
            else:
                parsed_data = result.data.model_dump(mode="json")[pass_type]
            obs.capture_ai_response(
                session_id,
                pass_type,
                raw_response=last.raw if last else "",
                parsed_data=parsed_data,
                usage=usage,
                prompt_version=settings.prompt_version,
                model=(last.model if last and last.model else context.extraction_strategy.recommended_model),
                latency_ms=latency_ms,
                reasoning=last.reasoning if last else None,
            )
            obs.log_validation(session_id, pass_type, result.validation)

            items = len(extracted.bucket(pass_type))
            emitter.emit(
                events.PASS_COMPLETED,
                pass_type=pass_type,
                items_extracted=items,
                confidence=result.validation.confidence,
                retries=max(0, result.metadata.attempts - 1),
                strategy=result.metadata.final_strategy,
                latency_ms=latency_ms,
            )
            obs.save_checkpoint(session_id, f"pass_{pass_type}", {"extracted": extracted.model_dump(mode="json")})
            pass_results.append(
                PassResult(
                    pass_type=pass_type,
                    success=result.success,
                    items_extracted=items,
                    confidence=result.validation.confidence,
                    attempts=result.metadata.attempts,
                    final_strategy=result.metadata.final_strategy,
                    latency_ms=latency_ms,
                    error=result.error.type if result.error else None,
                )
            )

        emitter.emit(events.PHASE_STARTED, phase="validation")
        framework = framework_context.framework if framework_context else None
        overall = run_validation(
            extracted,
            ValidationContext(
                resume_text=config.resume_text,
                categories=PASS_CATEGORIES,
                framework=framework,
                role_info=role_info,
            ),
        )
        obs.log_validation(session_id, "overall", overall)

        alignment = validate_against_framework(extracted, framework) if framework is not None else None

        emitter.emit(events.PHASE_STARTED, phase="storage")
        duration_ms = int((time.perf_counter() - started) * 1000)
        item_counts = _item_counts(extracted)
        coverage = calculate_text_coverage(
            config.resume_text,
            " ".join(item.phrase for item in extracted.power_phrases),
        )
        final_data = {
            "item_counts": item_counts,
            "overall_confidence": overall.confidence,
            "validation_passed": overall.passed,
            "resume_coverage": coverage,
            "duration_ms": duration_ms,
            "total_cost": total_cost,
            "retry_count": retry_count,
            "extracted": extracted.model_dump(mode="json"),
            "framework_alignment": alignment.model_dump(mode="json") if alignment else None,
        }
        obs.save_checkpoint(session_id, "final", final_data)
        obs.end_session(session_id, "completed", final_data)
        emitter.emit(
            events.EXTRACTION_COMPLETED,
            session_id=session_id,
            total_items=item_counts["total"],
            overall_confidence=overall.confidence,
            duration_ms=duration_ms,
        )

        return OrchestrationResult(
            success=True,
            session_id=session_id,
            extracted=extracted,
            validation=ValidationSummary.from_result(overall),
            metadata=OrchestrationMetadata(duration_ms=duration_ms, total_cost=total_cost, retry_count=retry_count),
            pre_extraction_context=context,
            pass_results=pass_results,
            framework_alignment=alignment,
        )

    def _run_pass(
        self,
        config: OrchestrationConfig,
        context: PreExtractionContext,
        pass_type: str,
        extract_fn: ExtractionFunction,
        emitter: events.EventEmitter,
    ):
        framework_context = context.framework_context
        framework = framework_context.framework if framework_context else None
        guidance = ""
        if framework is not None and context.extraction_strategy.should_use_framework:
            guidance = build_framework_prompt_context(framework, pass_type)

        pass_context = PassContext(
            category=pass_type,
            resume_text=config.resume_text,
            prompt=build_pass_prompt(pass_type, config.resume_text, guidance),
            extract_fn=extract_fn,
            options=completion_options_for(context.extraction_strategy),
            validation_context=ValidationContext(
                resume_text=config.resume_text,
                categories=(pass_type,),
                framework=framework,
                role_info=context.role_info,
            ),
        )
        retry_config = RetryConfig(context=pass_context, sleep=self._sleep, events=emitter)
        if config.max_attempts is not None:
            retry_config.max_attempts = config.max_attempts
        if config.min_confidence is not None:
            retry_config.min_confidence = config.min_confidence

        responses: list[ParsedCompletion] = []
        pass_started = time.perf_counter()
        result = extract_with_retry(retry_config, responses)
        latency_ms = int((time.perf_counter() - pass_started) * 1000)
        return result, responses, latency_ms


def orchestrate_extraction(
    config: OrchestrationConfig,
    *,
    observability: ExtractionObservability | None = None,
    catalog: FrameworkProvider | None = None,
    sleep: Callable[[float], None] | None = None,
) -> OrchestrationResult:
    return ExtractionOrchestrator(observability, catalog=catalog, sleep=sleep).run(config)
