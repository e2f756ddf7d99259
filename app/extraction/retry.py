from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from app.core.config.extraction import get_extraction_value
from app.schemas.extraction import ExtractedData
from app.schemas.orchestration import ExtractionError, RetryMetadata, RetryResult
from app.validation.engine import failed_validation, run_validation
from app.validation.rules import ALL_VALIDATION_RULES, ValidationRule

from .completion import ParsedCompletion, parse_completion_output
from .events import NULL_EMITTER, RECOVERY_ATTEMPTED, RETRY_ATTEMPT, TRANSIENT_FAILURE, EventEmitter
from .recovery import RETRY_STRATEGIES, ExtractionAttempt, PassContext, RecoveryStrategy, select_strategies

logger = logging.getLogger(__name__)

BASE_ATTEMPT_COST = 1


def _default_max_attempts() -> int:
    return int(get_extraction_value("retry.max_attempts", 3))


def _default_min_confidence() -> float:
    return float(get_extraction_value("retry.min_confidence", 70))


def _default_backoff_ms() -> int:
    return int(get_extraction_value("retry.base_backoff_ms", 1000))


@dataclass
class RetryConfig:
    context: PassContext
    max_attempts: int = field(default_factory=_default_max_attempts)
    min_confidence: float = field(default_factory=_default_min_confidence)
    base_backoff_ms: int = field(default_factory=_default_backoff_ms)
    validation_rules: Sequence[ValidationRule] = ALL_VALIDATION_RULES
    strategies: tuple[RecoveryStrategy, ...] = RETRY_STRATEGIES
    sleep: Callable[[float], None] = time.sleep
    events: EventEmitter = NULL_EMITTER


@dataclass
class _PassState:
    attempt: int = 0
    total_cost: int = 0
    best: ExtractionAttempt | None = None
    last_error: ExtractionError | None = None
    responses: list[ParsedCompletion] = field(default_factory=list)

    def consider(self, candidate: ExtractionAttempt) -> bool:
        if self.best is None or candidate.validation.confidence > self.best.validation.confidence:
            self.best = candidate
            return True
        return False


def backoff_ms(base_ms: int, attempt: int) -> int:
    return base_ms * 2 ** (attempt - 1)


def classify_attempt(attempt: ExtractionAttempt) -> ExtractionError:
    issues = [issue.model_dump() for issue in attempt.validation.issues]
    if attempt.parsed.malformed:
        error_type = "malformed_json"
    elif not attempt.parsed.items:
        error_type = "incomplete_extraction"
    else:
        error_type = "low_confidence"
    return ExtractionError(type=error_type, confidence=attempt.validation.confidence, issues=issues)


def _validate(parsed: ParsedCompletion, config: RetryConfig) -> ExtractionAttempt:
    validation = run_validation(parsed.data, config.context.validation_context, config.validation_rules)
    return ExtractionAttempt(parsed=parsed, validation=validation)


def _success(attempt: ExtractionAttempt, state: _PassState, strategy: str) -> RetryResult:
    return RetryResult(
        success=True,
        data=attempt.parsed.data,
        validation=attempt.validation,
        metadata=RetryMetadata(attempts=state.attempt, final_strategy=strategy, total_cost=state.total_cost),
    )


def _recover(failed: ExtractionAttempt, state: _PassState, config: RetryConfig) -> RetryResult | None:
    """Chain recoveries until one improves on the best attempt or attempts run out.

    Each recovery consumes an attempt; a recovery that does not improve is re-classified
    and strategies are chosen again for its attempt number.
    """
    context = config.context
    tried: set[str] = set()
    while state.attempt < config.max_attempts:
        candidates = [
            strategy
            for strategy in select_strategies(state.last_error, state.attempt, config.strategies)
            if strategy.name not in tried
        ]
        if not candidates:
            return None
        strategy = candidates[0]
        tried.add(strategy.name)
        state.attempt += 1
        config.events.emit(
            RECOVERY_ATTEMPTED,
            category=context.category,
            strategy=strategy.name,
            attempt=state.attempt,
            error_type=state.last_error.type,
        )
        try:
            recovered = strategy.execute(context, failed)
        except Exception as exc:
            logger.warning(
                json.dumps(
                    {
                        "event": "recovery_strategy_failed",
                        "category": context.category,
                        "strategy": strategy.name,
                        "error": str(exc),
                    }
                )
            )
            continue

        state.total_cost += strategy.cost
        state.responses.append(recovered)
        candidate = _validate(recovered, config)
        if state.consider(candidate):
            logger.info(
                json.dumps(
                    {
                        "event": "recovery_succeeded",
                        "category": context.category,
                        "strategy": strategy.name,
                        "confidence": candidate.validation.confidence,
                    }
                )
            )
            return _success(candidate, state, strategy.name)
        state.last_error = classify_attempt(candidate)
        failed = candidate
    return None


def _execute(config: RetryConfig, state: _PassState) -> RetryResult:
    context = config.context
    while state.attempt < config.max_attempts:
        state.attempt += 1
        if state.attempt > 1:
            config.events.emit(RETRY_ATTEMPT, category=context.category, attempt=state.attempt)

        try:
            parsed = parse_completion_output(context.extract_fn(context.prompt, context.options), context.category)
        except Exception as exc:
            state.last_error = ExtractionError(type="extraction_failure", error=str(exc))
            config.events.emit(TRANSIENT_FAILURE, category=context.category, attempt=state.attempt, error=str(exc))
            if state.attempt < config.max_attempts:
                config.sleep(backoff_ms(config.base_backoff_ms, state.attempt) / 1000.0)
            continue

        state.total_cost += BASE_ATTEMPT_COST
        state.responses.append(parsed)
        attempt = _validate(parsed, config)
        state.consider(attempt)

        if attempt.validation.passed or attempt.validation.confidence >= config.min_confidence:
            strategy = "initial_extraction" if state.attempt == 1 else "retry_recovery"
            return _success(attempt, state, strategy)

        state.last_error = classify_attempt(attempt)
        recovered = _recover(attempt, state, config)
        if recovered is not None:
            return recovered

    return _exhausted(config, state)


def _exhausted(config: RetryConfig, state: _PassState) -> RetryResult:
    last = state.last_error
    error = ExtractionError(
        type="exhausted",
        confidence=last.confidence if last else None,
        issues=last.issues if last else [],
        error=last.error if last else None,
        last_type=last.type if last else None,
    )
    logger.warning(
        json.dumps(
            {
                "event": "extraction_exhausted",
                "category": config.context.category,
                "attempts": state.attempt,
                "last_error": last.type if last else None,
            }
        )
    )
    best = state.best
    return RetryResult(
        success=False,
        data=best.parsed.data if best else ExtractedData(),
        validation=best.validation if best else failed_validation("Extraction failed after all retry attempts"),
        error=error,
        metadata=RetryMetadata(attempts=state.attempt, final_strategy="fallback", total_cost=state.total_cost),
    )


def extract_with_retry(config: RetryConfig, responses: list[ParsedCompletion] | None = None) -> RetryResult:
    """Run one pass to acceptance, recovery or exhaustion; never raises for completion failures.

    ``responses`` collects every parsed completion so callers can capture usage and raw output.
    """
    state = _PassState()
    result = _execute(config, state)
    if responses is not None:
        responses.extend(state.responses)
    return result
