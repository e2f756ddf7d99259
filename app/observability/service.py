from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Sequence

from app.ai.types import TokenUsage
from app.core.config.extraction import get_extraction_value
from app.extraction.events import RETRY_EVENT_TYPES
from app.schemas.observability import (
    AIInsights,
    AIResponseCapture,
    Checkpoint,
    ExtractionEventRecord,
    ExtractionReport,
    ExtractionSession,
    PassReasoning,
    PerformanceMetrics,
    QualityMetrics,
    TokenUsageRecord,
    ValidationLog,
)
from app.schemas.validation import ValidationResult

from .store import ExtractionStore

logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_CONFIDENCE = 75.0


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id
        self.code = "session_not_found"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_percent(value: float) -> float:
    return value * 100.0 if value <= 1.0 else value


def calculate_response_confidence(parsed_data: Any) -> float:
    """Confidence (0-100) reported by a completion: explicit field, else mean item score."""
    if not parsed_data:
        return 0.0
    if isinstance(parsed_data, dict):
        for key in ("confidence", "confidence_score", "confidenceScore"):
            value = parsed_data.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return _as_percent(float(value))
        items = parsed_data.get("items")
    else:
        items = parsed_data

    if isinstance(items, list):
        scores = []
        for item in items:
            if not isinstance(item, dict):
                continue
            score = item.get("confidence_score", item.get("confidenceScore"))
            if isinstance(score, (int, float)) and not isinstance(score, bool) and score > 0:
                scores.append(_as_percent(float(score)))
        if scores:
            return sum(scores) / len(scores)
    return DEFAULT_RESPONSE_CONFIDENCE


def extract_reasoning(parsed_data: Any) -> str | None:
    if not isinstance(parsed_data, dict):
        return None
    for key in ("ai_reasoning", "aiReasoning", "reasoning"):
        value = parsed_data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class ExtractionObservability:
    """Session tracking on top of an ExtractionStore.

    Every write is fire-and-forget: store failures are logged and swallowed so that
    observability can never abort an extraction. Only ``generate_report`` raises.
    """

    def __init__(self, store: ExtractionStore):
        self._store = store

    def _safe_write(self, event: str, session_id: str, write, *args: Any) -> bool:
        try:
            write(*args)
            return True
        except Exception as exc:
            logger.warning(json.dumps({"event": event, "session_id": session_id, "error": str(exc)}))
            return False

    def start_session(
        self,
        *,
        vault_id: str,
        user_id: str,
        extraction_version: str = "v3",
        metadata: dict[str, Any] | None = None,
    ) -> ExtractionSession:
        session = ExtractionSession(
            id=str(uuid.uuid4()),
            vault_id=vault_id,
            user_id=user_id,
            extraction_version=extraction_version,
            started_at=_utc_now(),
            status="running",
            metadata=metadata or {},
        )
        if self._safe_write("session_start_failed", session.id, self._store.insert_session, session):
            logger.info(json.dumps({"event": "extraction_session_started", "session_id": session.id}))
        return session

    def log_event(self, session_id: str, event_type: str, event_data: dict[str, Any] | None = None) -> None:
        record = ExtractionEventRecord(
            session_id=session_id,
            event_type=event_type,
            event_data=event_data or {},
            timestamp=_utc_now(),
        )
        self._safe_write("event_log_failed", session_id, self._store.insert_event, record)

    def log_progress(self, session_id: str, pass_type: str, *, stage: str, percent: int, message: str) -> None:
        self.log_event(
            session_id,
            "progress_update",
            {"pass": pass_type, "stage": stage, "percent": percent, "message": message},
        )

    def capture_ai_response(
        self,
        session_id: str,
        pass_type: str,
        *,
        raw_response: str,
        parsed_data: Any,
        usage: TokenUsage | None = None,
        prompt_version: str,
        model: str,
        latency_ms: int,
        reasoning: str | None = None,
    ) -> None:
        usage = usage or TokenUsage()
        confidence = calculate_response_confidence(parsed_data)
        capture = AIResponseCapture(
            session_id=session_id,
            pass_type=pass_type,
            prompt_version=prompt_version,
            model_used=model,
            raw_response=raw_response,
            parsed_data=parsed_data,
            token_usage=TokenUsageRecord(prompt=usage.prompt, completion=usage.completion, total=usage.total),
            latency_ms=latency_ms,
            ai_reasoning=reasoning or extract_reasoning(parsed_data),
            confidence_score=confidence,
            created_at=_utc_now(),
        )
        self._safe_write("ai_response_capture_failed", session_id, self._store.insert_capture, capture)

    def log_validation(self, session_id: str, validation_type: str, result: ValidationResult) -> None:
        log = ValidationLog(
            session_id=session_id,
            validation_type=validation_type,
            passed=result.passed,
            confidence=result.confidence,
            issues=list(result.issues),
            recommendations=list(result.recommendations),
            created_at=_utc_now(),
        )
        self._safe_write("validation_log_failed", session_id, self._store.insert_validation_log, log)

    def save_checkpoint(self, session_id: str, phase: str, checkpoint_data: dict[str, Any]) -> None:
        checkpoint = Checkpoint(
            session_id=session_id,
            phase=phase,
            checkpoint_data=checkpoint_data,
            created_at=_utc_now(),
        )
        self._safe_write("checkpoint_save_failed", session_id, self._store.insert_checkpoint, checkpoint)

    def end_session(self, session_id: str, status: str = "completed", final_data: dict[str, Any] | None = None) -> None:
        if self._safe_write(
            "session_end_failed",
            session_id,
            self._store.finish_session,
            session_id,
            status,
            _utc_now(),
            final_data or {},
        ):
            logger.info(json.dumps({"event": "extraction_session_ended", "session_id": session_id, "status": status}))

    def generate_report(self, session_id: str) -> ExtractionReport:
        session = self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        events = self._store.list_events(session_id)
        captures = self._store.list_captures(session_id)
        validations = self._store.list_validation_logs(session_id)

        ended_at = session.ended_at or _utc_now()
        duration_ms = int((ended_at - session.started_at).total_seconds() * 1000)

        total_tokens = sum(capture.token_usage.total for capture in captures)
        cost_per_1k = float(get_extraction_value("observability.cost_per_1k_tokens", 0.002))
        average_latency = sum(c.latency_ms for c in captures) / len(captures) if captures else 0.0
        average_confidence = sum(c.confidence_score for c in captures) / len(captures) if captures else 0.0
        retry_count = sum(1 for event in events if event.event_type in RETRY_EVENT_TYPES)

        issues = [issue for log in validations for issue in log.issues]
        final_data = session.final_data or {}

        return ExtractionReport(
            session_id=session_id,
            duration_ms=max(0, duration_ms),
            status=session.status,
            quality_metrics=QualityMetrics(
                average_confidence=average_confidence,
                item_counts=final_data.get("item_counts") or {},
                validation_results=validations,
                resume_coverage=float(final_data.get("resume_coverage") or 0.0),
            ),
            performance=PerformanceMetrics(
                total_tokens_used=total_tokens,
                total_cost=total_tokens / 1000.0 * cost_per_1k,
                average_latency=average_latency,
                retry_count=retry_count,
            ),
            ai_insights=AIInsights(
                models_used=_distinct(capture.model_used for capture in captures),
                prompt_versions=_distinct(capture.prompt_version for capture in captures),
                reasoning=[
                    PassReasoning(pass_type=capture.pass_type, reasoning=capture.ai_reasoning)
                    for capture in captures
                    if capture.ai_reasoning
                ],
            ),
            issues=issues,
            recommendations=_report_recommendations(issues, final_data, captures),
        )


def _distinct(values) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _report_recommendations(issues, final_data: dict[str, Any], captures: Sequence[AIResponseCapture]) -> list[str]:
    recommendations: list[str] = []
    critical = sum(1 for issue in issues if issue.severity == "critical")
    if critical:
        recommendations.append(f"Found {critical} critical issues that should be addressed immediately.")

    threshold = float(get_extraction_value("observability.low_confidence_threshold", 70))
    low_confidence = sum(1 for capture in captures if capture.confidence_score < threshold)
    if low_confidence:
        recommendations.append(
            f"{low_confidence} extraction passes had low confidence (<{threshold:.0f}%). Consider manual review."
        )

    power_phrases = (final_data.get("item_counts") or {}).get("power_phrases")
    if isinstance(power_phrases, int) and power_phrases < 5:
        recommendations.append("Low number of power phrases extracted. Resume may need more quantified achievements.")
    return recommendations
