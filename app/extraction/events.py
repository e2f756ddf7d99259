from __future__ import annotations

import json
import logging
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

PHASE_STARTED = "phase_started"
PRE_EXTRACTION_COMPLETE = "pre_extraction_complete"
PASS_STARTED = "pass_started"
PASS_COMPLETED = "pass_completed"
PASS_SKIPPED = "pass_skipped"
RETRY_ATTEMPT = "retry_attempt"
RECOVERY_ATTEMPTED = "recovery_attempted"
TRANSIENT_FAILURE = "transient_failure"
PROGRESS_UPDATE = "progress_update"
EXTRACTION_COMPLETED = "extraction_completed"
EXTRACTION_FAILED = "extraction_failed"

RETRY_EVENT_TYPES = frozenset({RETRY_ATTEMPT, RECOVERY_ATTEMPTED})

EventSink = Callable[[str, dict[str, Any]], None]


class EventRecorder(Protocol):
    def log_event(self, session_id: str, event_type: str, event_data: dict[str, Any] | None = None) -> None: ...


def logging_sink(event_type: str, data: dict[str, Any]) -> None:
    logger.info(json.dumps({"event": event_type, **data}, default=str))


def observability_sink(recorder: EventRecorder, session_id: str) -> EventSink:
    def _sink(event_type: str, data: dict[str, Any]) -> None:
        recorder.log_event(session_id, event_type, data)

    return _sink


class EventEmitter:
    """Fan out progress events to every registered sink; a failing sink never stops the others."""

    def __init__(self, *sinks: EventSink | None):
        self._sinks: list[EventSink] = [sink for sink in sinks if sink is not None]

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event_type: str, **data: Any) -> None:
        for sink in self._sinks:
            try:
                sink(event_type, data)
            except Exception as exc:
                logger.warning(json.dumps({"event": "event_sink_failed", "event_type": event_type, "error": str(exc)}))


NULL_EMITTER = EventEmitter()
