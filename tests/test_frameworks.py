import json
import tempfile
import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.frameworks import (
    DEFAULT_FRAMEWORK_NOTE,
    FrameworkCatalogError,
    LocalFrameworkCatalog,
    StaticFrameworkCatalog,
    build_framework_prompt_context,
    calculate_string_similarity,
    find_competency_framework,
    find_similar_framework,
    get_default_framework,
    load_framework_context,
    validate_against_framework,
)
from app.schemas.extraction import ExtractedData


class FrameworkMatcherTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.catalog = LocalFrameworkCatalog()

    def test_string_similarity(self):
        self.assertEqual(calculate_string_similarity("Project Manager", "project manager"), 1.0)
        self.assertEqual(calculate_string_similarity("Project Manager", "Senior Project Manager"), 0.8)
        self.assertAlmostEqual(calculate_string_similarity("data analyst", "data engineer"), 1 / 3)
        self.assertEqual(calculate_string_similarity("", "chef"), 0.0)

    def test_exact_match_by_alias_and_industry(self):
        context = load_framework_context("drilling supervisor", "Oil & Gas", self.catalog)
        self.assertEqual(context.match_quality, "exact")
        self.assertEqual(context.framework.role, "Drilling Engineering Supervisor")
        self.assertEqual(context.match_score, 100.0)
        self.assertEqual(context.confidence, 95.0)
        self.assertEqual(context.adaptations, [])

    def test_exact_match_requires_matching_industry(self):
        self.assertIsNone(find_competency_framework("Project Manager", "Technology", self.catalog))
        self.assertIsNotNone(find_competency_framework("Project Manager", None, self.catalog))

    def test_partial_match_records_cross_industry_adaptation(self):
        context = load_framework_context("Project Manager", "Technology", self.catalog)
        self.assertEqual(context.match_quality, "partial")
        self.assertEqual(context.framework.role, "Project Manager")
        self.assertAlmostEqual(context.match_score, 70.0)
        self.assertAlmostEqual(context.confidence, 70.0)
        self.assertEqual(context.adaptations, ['Cross-industry adaptation from "General" to "Technology"'])

    def test_partial_match_records_role_adaptation(self):
        similar = find_similar_framework("Senior Project Manager", "Construction", self.catalog)
        self.assertIsNotNone(similar)
        self.assertEqual(similar.framework.role, "Project Manager")
        self.assertAlmostEqual(similar.match_score, 56.0)
        self.assertEqual(
            similar.adaptations,
            [
                'Adapted from "Project Manager" to "Senior Project Manager"',
                'Cross-industry adaptation from "General" to "Construction"',
            ],
        )

    def test_unknown_role_falls_back_to_generic_framework(self):
        context = load_framework_context("Pastry Chef", "Hospitality", self.catalog)
        self.assertEqual(context.match_quality, "default")
        self.assertEqual(context.framework.role, "Generic Professional")
        self.assertEqual(context.match_score, 0.0)
        self.assertEqual(context.confidence, 50.0)
        self.assertEqual(context.adaptations, [DEFAULT_FRAMEWORK_NOTE])

    def test_static_catalog_is_used_instead_of_default(self):
        catalog = StaticFrameworkCatalog([get_default_framework()])
        context = load_framework_context("Generic Professional", "General", catalog)
        self.assertEqual(context.match_quality, "exact")

    def test_invalid_catalog_file_raises(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "frameworks.json"
            path.write_text(json.dumps({"not": "a list"}), encoding="utf-8")
            with self.assertRaises(FrameworkCatalogError):
                LocalFrameworkCatalog(path).frameworks()


class FrameworkPromptContextTests(unittest.TestCase):
    def setUp(self):
        self.framework = find_competency_framework("Drilling Engineering Supervisor", "Oil & Gas", LocalFrameworkCatalog())

    def test_power_phrase_context_lists_benchmarks(self):
        text = build_framework_prompt_context(self.framework, "power_phrases")
        self.assertIn('ROLE CONTEXT: Analyzing resume for "Drilling Engineering Supervisor" in Oil & Gas', text)
        self.assertIn("Team Size: typical range 3-12 people", text)
        self.assertIn("management/leadership scope is CRITICAL", text)

    def test_each_pass_has_its_own_context(self):
        for pass_type in ("skills", "competencies", "soft_skills"):
            with self.subTest(pass_type=pass_type):
                self.assertIn("Drilling Engineering Supervisor", build_framework_prompt_context(self.framework, pass_type))

    def test_missing_framework_or_unknown_pass_is_empty(self):
        self.assertEqual(build_framework_prompt_context(None, "skills"), "")
        self.assertEqual(build_framework_prompt_context(self.framework, "education"), "")


class FrameworkAlignmentTests(unittest.TestCase):
    def setUp(self):
        self.framework = find_competency_framework("Drilling Engineering Supervisor", "Oil & Gas", LocalFrameworkCatalog())

    def test_flags_missing_management_and_competencies(self):
        data = ExtractedData.model_validate(
            {
                "power_phrases": [{"phrase": "Completed 20 wells ahead of schedule"}],
                "skills": [{"stated_skill": "Well control"}, {"stated_skill": "Drilling"}],
            }
        )
        alignment = validate_against_framework(data, self.framework)
        self.assertEqual(alignment.framework_role, "Drilling Engineering Supervisor")
        self.assertIn("management_evidence", alignment.missing_expected_fields)
        self.assertIn("competency_afe_generation", alignment.missing_expected_fields)
        self.assertIn("competency_contract_management", alignment.missing_expected_fields)
        self.assertNotIn("competency_well_control", alignment.missing_expected_fields)
        self.assertEqual(alignment.unusual_claims, [])

    def test_flags_claims_far_above_benchmarks(self):
        data = ExtractedData.model_validate(
            {
                "power_phrases": [
                    {"phrase": "Supervised 40 rig crew members", "impact_metrics": {"teamSize": "40 people"}},
                    {"phrase": "Managed a $2B drilling budget", "impact_metrics": {"budget": "$2B"}},
                ]
            }
        )
        alignment = validate_against_framework(data, self.framework)
        self.assertNotIn("management_evidence", alignment.missing_expected_fields)
        fields = {claim.field: claim for claim in alignment.unusual_claims}
        self.assertEqual(fields["team_size"].value, 40.0)
        self.assertEqual(fields["budget"].value, 2_000_000_000.0)
        self.assertIn("typical for Drilling Engineering Supervisor", fields["budget"].expected)


if __name__ == "__main__":
    unittest.main()
