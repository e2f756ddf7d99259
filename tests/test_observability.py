import unittest
import sys
from pathlib import Path
from unittest.mock import MagicMock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.types import TokenUsage
from app.extraction import events
from app.observability import (
    ExtractionObservability,
    SQLiteExtractionStore,
    SessionNotFoundError,
    calculate_response_confidence,
)
from app.schemas.validation import ValidationIssue, ValidationResult


class ResponseConfidenceTests(unittest.TestCase):
    def test_explicit_confidence_wins(self):
        self.assertAlmostEqual(calculate_response_confidence({"confidence": 0.82, "items": []}), 82.0)
        self.assertEqual(calculate_response_confidence({"confidence": 64}), 64.0)

    def test_mean_item_score(self):
        payload = {"items": [{"confidence_score": 0.9}, {"confidenceScore": 0.7}, {"phrase": "no score"}]}
        self.assertAlmostEqual(calculate_response_confidence(payload), 80.0)

    def test_defaults(self):
        self.assertEqual(calculate_response_confidence({"items": [{"phrase": "x"}]}), 75.0)
        self.assertEqual(calculate_response_confidence(None), 0.0)
        self.assertEqual(calculate_response_confidence([]), 0.0)


class ExtractionObservabilityTests(unittest.TestCase):
    def setUp(self):
        self.store = SQLiteExtractionStore(":memory:")
        self.obs = ExtractionObservability(self.store)

    def tearDown(self):
        self.store.close()

    def _capture(self, session_id, pass_type, total_tokens, confidence, model="gpt-4o-mini"):
        self.obs.capture_ai_response(
            session_id,
            pass_type,
            raw_response="{}",
            parsed_data={"items": [{"confidence_score": confidence}], "reasoning": f"{pass_type} reasoning"},
            usage=TokenUsage(prompt=total_tokens - 100, completion=100, total=total_tokens),
            prompt_version="v3.0",
            model=model,
            latency_ms=400,
        )

    def test_session_lifecycle(self):
        session = self.obs.start_session(vault_id="vault-1", user_id="user-1", metadata={"resume_length": 1200})
        stored = self.store.get_session(session.id)
        self.assertEqual(stored.status, "running")
        self.assertEqual(stored.metadata, {"resume_length": 1200})

        self.obs.save_checkpoint(session.id, "pre_extraction", {"sections": 5})
        self.obs.end_session(session.id, "completed", {"item_counts": {"power_phrases": 7}})

        stored = self.store.get_session(session.id)
        self.assertEqual(stored.status, "completed")
        self.assertIsNotNone(stored.ended_at)
        self.assertEqual(stored.final_data["item_counts"]["power_phrases"], 7)
        checkpoints = self.store.list_checkpoints(session.id)
        self.assertEqual([checkpoint.phase for checkpoint in checkpoints], ["pre_extraction"])
        self.assertEqual(checkpoints[0].checkpoint_data, {"sections": 5})

    def test_report_aggregates_session(self):
        session = self.obs.start_session(vault_id="vault-1", user_id="user-1")
        self._capture(session.id, "power_phrases", 1500, 0.9)
        self._capture(session.id, "skills", 500, 0.5, model="gpt-4o")
        self.obs.log_event(session.id, events.RETRY_ATTEMPT, {"attempt": 2})
        self.obs.log_event(session.id, events.RECOVERY_ATTEMPTED, {"strategy": "enhanced_prompt"})
        self.obs.log_progress(session.id, "skills", stage="extracting", percent=25, message="Extracting skills")
        self.obs.log_validation(
            session.id,
            "power_phrases",
            ValidationResult(
                passed=False,
                confidence=85.0,
                issues=[ValidationIssue(rule="completeness_check", severity="critical", message="too few")],
            ),
        )
        self.obs.end_session(
            session.id,
            "completed",
            {"item_counts": {"power_phrases": 3, "total": 6}, "resume_coverage": 42.5},
        )

        report = self.obs.generate_report(session.id)
        self.assertEqual(report.status, "completed")
        self.assertGreaterEqual(report.duration_ms, 0)
        self.assertEqual(report.performance.total_tokens_used, 2000)
        self.assertAlmostEqual(report.performance.total_cost, 0.004)
        self.assertEqual(report.performance.average_latency, 400.0)
        self.assertEqual(report.performance.retry_count, 2)
        self.assertAlmostEqual(report.quality_metrics.average_confidence, 70.0)
        self.assertEqual(report.quality_metrics.item_counts, {"power_phrases": 3, "total": 6})
        self.assertEqual(report.quality_metrics.resume_coverage, 42.5)
        self.assertEqual(len(report.quality_metrics.validation_results), 1)
        self.assertEqual(report.ai_insights.models_used, ["gpt-4o-mini", "gpt-4o"])
        self.assertEqual(report.ai_insights.prompt_versions, ["v3.0"])
        self.assertEqual(report.ai_insights.reasoning[0].reasoning, "power_phrases reasoning")
        self.assertEqual(len(report.issues), 1)
        self.assertEqual(
            report.recommendations,
            [
                "Found 1 critical issues that should be addressed immediately.",
                "1 extraction passes had low confidence (<70%). Consider manual review.",
                "Low number of power phrases extracted. Resume may need more quantified achievements.",
            ],
        )

    def test_events_are_kept_in_order(self):
        session = self.obs.start_session(vault_id="vault-1", user_id="user-1")
        for event_type in (events.PASS_STARTED, events.PASS_COMPLETED, events.EXTRACTION_COMPLETED):
            self.obs.log_event(session.id, event_type, {"pass_type": "skills"})
        stored = self.store.list_events(session.id)
        self.assertEqual(
            [event.event_type for event in stored],
            [events.PASS_STARTED, events.PASS_COMPLETED, events.EXTRACTION_COMPLETED],
        )
        self.assertEqual(stored[0].event_data, {"pass_type": "skills"})

    def test_unknown_session_report_raises(self):
        with self.assertRaises(SessionNotFoundError) as ctx:
            self.obs.generate_report("missing-session")
        self.assertEqual(ctx.exception.code, "session_not_found")

    def test_store_failures_never_raise(self):
        store = MagicMock()
        for method in ("insert_session", "insert_event", "insert_capture", "insert_validation_log", "insert_checkpoint", "finish_session"):
            getattr(store, method).side_effect = RuntimeError("disk full")
        obs = ExtractionObservability(store)

        session = obs.start_session(vault_id="vault-1", user_id="user-1")
        obs.log_event(session.id, events.PASS_STARTED, {})
        self._capture_with(obs, session.id)
        obs.log_validation(session.id, "overall", ValidationResult(passed=True, confidence=100.0))
        obs.save_checkpoint(session.id, "final", {})
        obs.end_session(session.id, "completed", {})
        self.assertEqual(store.finish_session.call_count, 1)

    def _capture_with(self, obs, session_id):
        obs.capture_ai_response(
            session_id,
            "skills",
            raw_response="",
            parsed_data=None,
            prompt_version="v3.0",
            model="gpt-4o-mini",
            latency_ms=10,
        )


class EventEmitterTests(unittest.TestCase):
    def test_failing_sink_does_not_stop_others(self):
        received = []

        def broken(event_type, data):
            raise RuntimeError("sink down")

        emitter = events.EventEmitter(broken, None, lambda event_type, data: received.append((event_type, data)))
        emitter.emit(events.PASS_STARTED, pass_type="skills")
        self.assertEqual(received, [(events.PASS_STARTED, {"pass_type": "skills"})])

    def test_observability_sink_records_events(self):
        recorder = MagicMock()
        sink = events.observability_sink(recorder, "session-1")
        sink(events.PASS_SKIPPED, {"pass_type": "skills"})
        recorder.log_event.assert_called_once_with("session-1", events.PASS_SKIPPED, {"pass_type": "skills"})


if __name__ == "__main__":
    unittest.main()
