import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.extraction.strategy import (
    analyze_pre_extraction,
    build_extraction_strategy,
    completion_options_for,
    estimate_duration_seconds,
)
from app.features.role_detector import RoleInfo
from app.frameworks import LocalFrameworkCatalog, get_default_framework, load_framework_context
from app.frameworks.models import FrameworkContext
from app.parsing.models import ResumeSection, ResumeStructure
from app.schemas.extraction import PASS_CATEGORIES
from extraction_fakes import SAMPLE_RESUME, SENIOR_PM_RESUME


def _structure(word_count: int, section_count: int) -> ResumeStructure:
    sections = [
        ResumeSection(title=f"Section {index}", content="text", start_line=index, end_line=index, word_count=1)
        for index in range(section_count)
    ]
    return ResumeStructure(sections=sections, total_word_count=word_count)


class ExtractionStrategyTests(unittest.TestCase):
    def test_duration_estimate(self):
        self.assertEqual(estimate_duration_seconds(_structure(2000, 10)), 80)
        self.assertEqual(estimate_duration_seconds(_structure(0, 0)), 30)

    def test_long_mid_level_resume_without_framework(self):
        role = RoleInfo(primary_role="Analyst", seniority="mid", confidence=70)
        strategy = build_extraction_strategy(_structure(2000, 10), role, None)
        self.assertEqual(strategy.pass_order, list(PASS_CATEGORIES))
        self.assertEqual(strategy.focus_areas, ["comprehensive_extraction"])
        self.assertEqual(strategy.recommended_model, "gpt-4o")
        self.assertFalse(strategy.should_use_framework)

    def test_executive_with_confident_framework(self):
        role = RoleInfo(primary_role="VP Drilling", seniority="executive", confidence=85)
        framework_context = load_framework_context("Drilling Supervisor", "Oil & Gas", LocalFrameworkCatalog())
        strategy = build_extraction_strategy(_structure(400, 4), role, framework_context)
        self.assertEqual(strategy.focus_areas, ["management_scope", "leadership", "strategic_thinking"])
        self.assertEqual(strategy.recommended_model, "gpt-4o")
        self.assertTrue(strategy.should_use_framework)

    def test_weak_framework_match_is_not_used(self):
        role = RoleInfo(primary_role="Chef", seniority="mid", confidence=40)
        framework_context = FrameworkContext(
            framework=get_default_framework(),
            match_quality="default",
            match_score=0.0,
            confidence=50.0,
        )
        strategy = build_extraction_strategy(_structure(300, 3), role, framework_context)
        self.assertEqual(strategy.recommended_model, "gpt-4o-mini")
        self.assertFalse(strategy.should_use_framework)
        self.assertEqual(strategy.focus_areas, ["management_scope"])

    def test_pre_extraction_analysis(self):
        context = analyze_pre_extraction(SAMPLE_RESUME, catalog=LocalFrameworkCatalog())
        self.assertEqual(context.version, "v3.0")
        self.assertEqual(context.role_info.primary_role, "Senior Drilling Engineer")
        self.assertEqual(context.framework_context.match_quality, "exact")
        self.assertTrue(context.extraction_strategy.should_use_framework)
        self.assertIn("leadership", context.extraction_strategy.focus_areas)
        self.assertEqual(len(context.resume_structure.sections), 5)

    def test_senior_project_manager_with_partial_framework(self):
        context = analyze_pre_extraction(SENIOR_PM_RESUME, catalog=LocalFrameworkCatalog())
        structure = context.resume_structure
        self.assertEqual(structure.total_word_count, 1173)
        self.assertEqual(len(structure.sections), 5)

        role_info = context.role_info
        self.assertEqual(role_info.primary_role, "Senior Project Manager")
        self.assertEqual(role_info.industry, "Construction")
        self.assertEqual(role_info.seniority, "senior")
        self.assertEqual(role_info.confidence, 85)

        framework_context = context.framework_context
        self.assertEqual(framework_context.match_quality, "partial")
        self.assertEqual(framework_context.framework.role, "Project Manager")
        self.assertAlmostEqual(framework_context.confidence, 56.0)

        strategy = context.extraction_strategy
        self.assertEqual(
            strategy.focus_areas,
            ["management_scope", "leadership", "strategic_thinking", "comprehensive_extraction"],
        )
        self.assertEqual(strategy.estimated_duration, 58)
        self.assertEqual(strategy.recommended_model, "gpt-4o-mini")
        self.assertFalse(strategy.should_use_framework)
        self.assertIsNone(completion_options_for(strategy))

    def test_high_quality_tier_forces_completion_options(self):
        role = RoleInfo(primary_role="VP Drilling", seniority="executive", confidence=85)
        strategy = build_extraction_strategy(_structure(400, 4), role, None)
        options = completion_options_for(strategy)
        self.assertTrue(options.force_high_quality)
        self.assertFalse(options.requires_accuracy)

    def test_framework_failure_leaves_context_empty(self):
        class BrokenCatalog:
            def frameworks(self):
                raise RuntimeError("catalog offline")

        context = analyze_pre_extraction(SAMPLE_RESUME, ["Drilling Supervisor"], ["Oil & Gas"], BrokenCatalog())
        self.assertIsNone(context.framework_context)
        self.assertEqual(context.role_info.primary_role, "Drilling Supervisor")
        self.assertFalse(context.extraction_strategy.should_use_framework)


if __name__ == "__main__":
    unittest.main()
