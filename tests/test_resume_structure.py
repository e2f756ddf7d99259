import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.features.role_detector import (
    DEFAULT_ROLE,
    detect_role_and_industry,
    detect_seniority,
    resolve_role_info,
    score_industries,
)
from app.parsing.structure import classify_header, parse_resume_structure
from extraction_fakes import SAMPLE_RESUME, SENIOR_PM_RESUME

PROSE_RESUME = (
    "John\n"
    "Email: j@x.com\n"
    "Phone: 555\n"
    "SUMMARY\n"
    "Experienced engineer\n"
    "Experienced leader in ops\n"
    "Career focused on growth\n"
)


def covered_line_ratio(text):
    structure = parse_resume_structure(text)
    covered = set()
    for section in structure.sections:
        covered.update(range(section.start_line, section.end_line + 1))
    non_blank = [number for number, line in enumerate(text.split("\n"), start=1) if line.strip()]
    return sum(1 for number in non_blank if number in covered) / len(non_blank)


class ResumeStructureTests(unittest.TestCase):
    def test_sections_are_typed_in_order(self):
        structure = parse_resume_structure(SAMPLE_RESUME)
        self.assertEqual(
            [section.type for section in structure.sections],
            ["contact", "summary", "experience", "education", "skills"],
        )
        self.assertEqual(structure.sections[0].title, "Header")
        self.assertEqual(structure.sections[2].title, "EXPERIENCE")
        self.assertTrue(structure.has_contact_info)
        self.assertTrue(structure.has_work_history)
        self.assertTrue(structure.has_education)
        self.assertTrue(structure.has_skills)

    def test_line_numbers_and_word_totals(self):
        structure = parse_resume_structure(SAMPLE_RESUME)
        header = structure.sections[0]
        self.assertEqual(header.start_line, 1)
        summary = structure.section("summary")
        self.assertEqual(summary.start_line, 4)
        self.assertIn("Drilling engineering leader", summary.content)
        self.assertEqual(structure.total_word_count, sum(s.word_count for s in structure.sections))
        self.assertEqual(structure.estimated_pages, 1)
        self.assertEqual(structure.total_char_count, len(SAMPLE_RESUME))

    def test_empty_input_yields_empty_structure(self):
        structure = parse_resume_structure("")
        self.assertEqual(structure.sections, [])
        self.assertEqual(structure.total_word_count, 0)
        self.assertEqual(structure.estimated_pages, 0)
        self.assertFalse(structure.has_work_history)

    def test_header_without_content_is_dropped(self):
        structure = parse_resume_structure("EXPERIENCE\n\nEDUCATION\nMBA, Rice University\n")
        self.assertEqual([section.type for section in structure.sections], ["education"])

    def test_long_lines_are_never_headers(self):
        self.assertIsNone(classify_header("Experience " + "x" * 60))
        self.assertEqual(classify_header("  Work History  "), "experience")
        self.assertEqual(classify_header("Technical Skills"), "skills")
        self.assertIsNone(classify_header(""))

    def test_prose_lines_are_not_headers(self):
        for line in ("Experienced engineer", "Career focused on growth", "Email: j@x.com", "Phone: 555", "About the team"):
            self.assertIsNone(classify_header(line), line)
        self.assertEqual(classify_header("Professional Experience"), "experience")
        self.assertEqual(classify_header("Career Summary"), "summary")
        self.assertEqual(classify_header("Education & Training"), "education")
        self.assertEqual(classify_header("SKILLS:"), "skills")
        self.assertEqual(classify_header("Contact Information"), "contact")

    def test_prose_stays_in_section_content(self):
        structure = parse_resume_structure(PROSE_RESUME)
        self.assertEqual([(s.title, s.start_line) for s in structure.sections], [("Header", 1), ("SUMMARY", 4)])
        self.assertIn("Email: j@x.com", structure.sections[0].content)
        self.assertIn("Career focused on growth", structure.sections[1].content)
        self.assertFalse(structure.has_work_history)

    def test_sections_cover_non_blank_lines(self):
        for text in (SAMPLE_RESUME, SENIOR_PM_RESUME, PROSE_RESUME):
            self.assertGreaterEqual(covered_line_ratio(text), 0.95)

    def test_parsing_is_idempotent(self):
        self.assertEqual(parse_resume_structure(SAMPLE_RESUME), parse_resume_structure(SAMPLE_RESUME))
        self.assertEqual(parse_resume_structure(SENIOR_PM_RESUME), parse_resume_structure(SENIOR_PM_RESUME))


class RoleDetectorTests(unittest.TestCase):
    def test_detects_title_industry_and_seniority(self):
        structure = parse_resume_structure(SAMPLE_RESUME)
        role_info = detect_role_and_industry(SAMPLE_RESUME, structure)
        self.assertEqual(role_info.primary_role, "Senior Drilling Engineer")
        self.assertEqual(role_info.industry, "Oil & Gas")
        self.assertEqual(role_info.seniority, "senior")
        self.assertEqual(role_info.confidence, 85)
        self.assertEqual(role_info.alternative_roles, ["Drilling Engineer"])

    def test_no_experience_section_uses_default_role(self):
        text = "SUMMARY\nCurious generalist.\n"
        role_info = detect_role_and_industry(text, parse_resume_structure(text))
        self.assertEqual(role_info.primary_role, DEFAULT_ROLE)
        self.assertEqual(role_info.confidence, 30)

    def test_seniority_rules(self):
        self.assertEqual(detect_seniority("Chief Technology Officer"), "executive")
        self.assertEqual(detect_seniority("Director of Operations"), "senior")
        self.assertEqual(detect_seniority("Senior Director of Engineering"), "senior")
        self.assertEqual(detect_seniority("Junior Analyst"), "entry")
        self.assertEqual(detect_seniority("Accountant"), "mid")

    def test_industry_keywords_count_plurals(self):
        scores = score_industries("Delivered projects and completed wells")
        self.assertEqual(scores["Construction"], 1)
        self.assertEqual(scores["Oil & Gas"], 1)
        self.assertEqual(score_industries("without items")["Technology"], 0)

    def test_target_roles_override_detection(self):
        structure = parse_resume_structure(SAMPLE_RESUME)
        detected = detect_role_and_industry(SAMPLE_RESUME, structure)
        resolved = resolve_role_info(detected, ["Project Manager", "Program Manager"], ["Construction"])
        self.assertEqual(resolved.primary_role, "Project Manager")
        self.assertEqual(resolved.industry, "Construction")
        self.assertEqual(resolved.confidence, 90)
        self.assertEqual(resolved.alternative_roles, ["Program Manager"])
        self.assertIs(resolve_role_info(detected, [], []), detected)


if __name__ == "__main__":
    unittest.main()
