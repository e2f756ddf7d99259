import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.extraction import events
from app.extraction.orchestrator import ExtractionOrchestrator, OrchestrationConfig, orchestrate_extraction
from app.frameworks import LocalFrameworkCatalog
from app.observability import ExtractionObservability, SQLiteExtractionStore
from extraction_fakes import PM_BULLET, SAMPLE_RESUME, ScriptedExtractor, sample_extraction_functions, scored_items


class ExplodingFunctions(dict):
    def get(self, key, default=None):
        raise RuntimeError("function registry unavailable")


class OrchestratorTests(unittest.TestCase):
    def setUp(self):
        self.store = SQLiteExtractionStore(":memory:")
        self.obs = ExtractionObservability(self.store)
        self.catalog = LocalFrameworkCatalog()
        self.received = []

    def tearDown(self):
        self.store.close()

    def _config(self, functions, **overrides):
        values = {
            "resume_text": SAMPLE_RESUME,
            "vault_id": "vault-42",
            "user_id": "user-7",
            "extraction_functions": functions,
            "on_event": lambda event_type, data: self.received.append((event_type, data)),
        }
        values.update(overrides)
        return OrchestrationConfig(**values)

    def _run(self, config):
        return orchestrate_extraction(config, observability=self.obs, catalog=self.catalog, sleep=lambda seconds: None)

    def test_full_pipeline(self):
        result = self._run(self._config(sample_extraction_functions()))

        self.assertTrue(result.success)
        self.assertEqual(len(result.extracted.power_phrases), 5)
        self.assertEqual(len(result.extracted.skills), 4)
        self.assertEqual(len(result.extracted.competencies), 1)
        self.assertEqual(len(result.extracted.soft_skills), 1)
        self.assertTrue(result.validation.passed)
        self.assertEqual(result.validation.critical_issues, 0)
        self.assertEqual(result.metadata.retry_count, 0)
        self.assertEqual(result.metadata.total_cost, 4)

        context = result.pre_extraction_context
        self.assertEqual(context.role_info.primary_role, "Senior Drilling Engineer")
        self.assertEqual(context.framework_context.match_quality, "exact")
        self.assertEqual([item.pass_type for item in result.pass_results], ["power_phrases", "skills", "competencies", "soft_skills"])
        self.assertTrue(all(item.final_strategy == "initial_extraction" for item in result.pass_results))
        self.assertEqual(result.framework_alignment.framework_role, "Drilling Engineering Supervisor")
        self.assertEqual(result.framework_alignment.missing_expected_fields, ["competency_contract_management"])

    def test_session_is_fully_recorded(self):
        result = self._run(self._config(sample_extraction_functions()))
        session = self.store.get_session(result.session_id)

        self.assertEqual(session.status, "completed")
        self.assertEqual(session.vault_id, "vault-42")
        self.assertEqual(session.metadata["resume_length"], len(SAMPLE_RESUME))
        self.assertEqual(session.final_data["item_counts"]["total"], 11)
        self.assertEqual(
            [checkpoint.phase for checkpoint in self.store.list_checkpoints(result.session_id)],
            ["pre_extraction", "pass_power_phrases", "pass_skills", "pass_competencies", "pass_soft_skills", "final"],
        )
        captures = self.store.list_captures(result.session_id)
        self.assertEqual(len(captures), 4)
        self.assertEqual(captures[0].ai_reasoning, "Selected statements with explicit evidence.")
        validation_types = [log.validation_type for log in self.store.list_validation_logs(result.session_id)]
        self.assertEqual(validation_types[-1], "overall")

        report = self.obs.generate_report(result.session_id)
        self.assertEqual(report.status, "completed")
        self.assertEqual(report.quality_metrics.item_counts["power_phrases"], 5)
        self.assertEqual(report.performance.retry_count, 0)

    def test_progress_events_reach_callback(self):
        self._run(self._config(sample_extraction_functions()))
        types = [event_type for event_type, _ in self.received]
        self.assertEqual(types[0], events.PHASE_STARTED)
        self.assertEqual(types[1], events.PRE_EXTRACTION_COMPLETE)
        self.assertEqual(types.count(events.PASS_STARTED), 4)
        self.assertEqual(types.count(events.PASS_COMPLETED), 4)
        self.assertEqual(types[-1], events.EXTRACTION_COMPLETED)
        phases = [data["phase"] for event_type, data in self.received if event_type == events.PHASE_STARTED]
        self.assertEqual(phases, ["pre_extraction", "extraction", "validation", "storage"])

    def test_missing_function_skips_pass(self):
        functions = sample_extraction_functions()
        del functions["competencies"]
        result = self._run(self._config(functions))

        self.assertTrue(result.success)
        skipped = [item for item in result.pass_results if item.pass_type == "competencies"][0]
        self.assertFalse(skipped.success)
        self.assertEqual(skipped.error, "no_extraction_function")
        self.assertEqual(result.extracted.competencies, [])
        self.assertIn(events.PASS_SKIPPED, [event_type for event_type, _ in self.received])

    def test_framework_guidance_is_added_to_prompts(self):
        extractor = ScriptedExtractor(scored_items(90))
        functions = sample_extraction_functions()
        functions["skills"] = extractor
        self._run(self._config(functions))
        self.assertIn('ROLE CONTEXT: Skills for "Drilling Engineering Supervisor"', extractor.calls[0][0])
        self.assertIsNone(extractor.calls[0][1])

    def test_long_resume_runs_passes_on_high_quality_tier(self):
        long_resume = SAMPLE_RESUME + "\n".join([PM_BULLET] * 130) + "\n"
        extractor = ScriptedExtractor(scored_items(90))
        functions = sample_extraction_functions()
        functions["skills"] = extractor
        result = self._run(self._config(functions, resume_text=long_resume))

        self.assertEqual(result.pre_extraction_context.extraction_strategy.recommended_model, "gpt-4o")
        self.assertTrue(extractor.calls[0][1].force_high_quality)

    def test_retries_are_counted_and_reported(self):
        functions = sample_extraction_functions()
        functions["power_phrases"] = ScriptedExtractor('{"items": [ {"phrase": oops', {"items": []})
        config = self._config(functions, max_attempts=2, min_confidence=90)
        result = self._run(config)

        power = result.pass_results[0]
        self.assertFalse(power.success)
        self.assertEqual(power.attempts, 2)
        self.assertEqual(power.final_strategy, "fallback")
        self.assertEqual(power.error, "exhausted")
        self.assertEqual(result.metadata.retry_count, 1)
        self.assertFalse(result.validation.passed)

        report = self.obs.generate_report(result.session_id)
        self.assertEqual(report.performance.retry_count, 1)

    def test_unexpected_failure_marks_session_failed(self):
        orchestrator = ExtractionOrchestrator(self.obs, catalog=self.catalog, sleep=lambda seconds: None)
        with self.assertRaises(RuntimeError):
            orchestrator.run(self._config(ExplodingFunctions()))

        failed = [data for event_type, data in self.received if event_type == events.EXTRACTION_FAILED]
        self.assertEqual(len(failed), 1)
        session = self.store.get_session(failed[0]["session_id"])
        self.assertEqual(session.status, "failed")
        self.assertEqual(session.final_data, {"error": "function registry unavailable"})


if __name__ == "__main__":
    unittest.main()
