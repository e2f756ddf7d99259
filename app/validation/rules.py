from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

from app.core.config.extraction import get_extraction_value
from app.features.role_detector import RoleInfo
from app.frameworks.models import CompetencyFramework
from app.parsing.utils import jaccard_similarity, split_words
from app.schemas.extraction import PASS_CATEGORIES, ExtractedData
from app.schemas.validation import ValidationIssue

_MANAGEMENT_PHRASE_RE = re.compile(r"manage|supervis|led|team|direct|oversee", re.IGNORECASE)
_LEADERSHIP_EVIDENCE_RE = re.compile(r"manage|supervise|lead|direct|guide|oversee", re.IGNORECASE)
SENIOR_TITLE_MARKERS = ("VP", "Vice President", "Director", "Senior Manager", "Head of", "Chief", "Lead")


@dataclass(slots=True)
class ValidationContext:
    resume_text: str
    categories: tuple[str, ...] = PASS_CATEGORIES
    framework: CompetencyFramework | None = None
    role_info: RoleInfo | None = None

    def covers(self, *categories: str) -> bool:
        return all(category in self.categories for category in categories)


@dataclass(frozen=True, slots=True)
class ValidationRule:
    name: str
    validate: Callable[[ExtractedData, ValidationContext], list[ValidationIssue]]
    description: str = field(default="", compare=False)


def calculate_text_coverage(resume_text: str, extracted_text: str) -> float:
    """Percent of distinct long résumé words (over 3 chars) reused by the extracted text."""
    if not resume_text or not extracted_text:
        return 0.0
    resume_words = {word for word in split_words(resume_text.lower()) if len(word) > 3}
    if not resume_words:
        return 0.0
    matched = [word for word in split_words(extracted_text.lower()) if len(word) > 3 and word in resume_words]
    return len(matched) / len(resume_words) * 100.0


def check_completeness(data: ExtractedData, context: ValidationContext) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    min_phrases = int(get_extraction_value("validation.min_power_phrases", 5))
    min_skills = int(get_extraction_value("validation.min_skills", 3))
    min_coverage = float(get_extraction_value("validation.min_coverage_percent", 30))

    if context.covers("power_phrases"):
        count = len(data.power_phrases)
        if count < min_phrases:
            issues.append(
                ValidationIssue(
                    rule="completeness_check",
                    severity="critical",
                    message=f"Extracted only {count} power phrases, expected at least {min_phrases} for resume of this length",
                    suggested_fix="retry_with_enhanced_prompt",
                    metadata={"actual_count": count, "expected_min": min_phrases},
                )
            )

    if context.covers("skills"):
        count = len(data.skills)
        if count < min_skills:
            issues.append(
                ValidationIssue(
                    rule="completeness_check",
                    severity="warning",
                    message=f"Extracted only {count} skills, expected at least {min_skills}",
                    suggested_fix="targeted_skill_extraction",
                    metadata={"actual_count": count, "expected_min": min_skills},
                )
            )

    if context.covers("power_phrases") and data.power_phrases:
        extracted_text = " ".join(item.phrase for item in data.power_phrases)
        coverage = calculate_text_coverage(context.resume_text, extracted_text)
        if coverage < min_coverage:
            issues.append(
                ValidationIssue(
                    rule="completeness_check",
                    severity="warning",
                    message=f"Only {coverage:.1f}% of resume text was used in extraction",
                    suggested_fix="extract_unused_sections",
                    metadata={"coverage": coverage},
                )
            )

    framework = context.framework
    if context.covers("power_phrases") and framework is not None and framework.management_benchmarks:
        if not any(_MANAGEMENT_PHRASE_RE.search(item.phrase) for item in data.power_phrases):
            issues.append(
                ValidationIssue(
                    rule="completeness_check",
                    severity="critical",
                    message=f'Role "{framework.role}" requires management evidence, but none was found',
                    suggested_fix="targeted_management_extraction",
                    metadata={"role": framework.role},
                )
            )
    return issues


def check_consistency(data: ExtractedData, context: ValidationContext) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    role = context.role_info.primary_role if context.role_info else ""
    if role and context.covers("power_phrases"):
        has_senior_title = any(marker in role for marker in SENIOR_TITLE_MARKERS)
        has_evidence = any(_LEADERSHIP_EVIDENCE_RE.search(item.phrase) for item in data.power_phrases)
        if has_senior_title and not has_evidence:
            issues.append(
                ValidationIssue(
                    rule="consistency_check",
                    severity="critical",
                    message=f'Title "{role}" suggests management role, but no management evidence found',
                    suggested_fix="targeted_management_extraction",
                    metadata={"title": role},
                )
            )

    if context.covers("skills", "power_phrases"):
        phrases = [item.phrase.lower() for item in data.power_phrases]
        for skill in data.skills:
            if skill.confidence_score <= 0.8:
                continue
            name = skill.stated_skill.lower()
            if not any(name in phrase for phrase in phrases):
                issues.append(
                    ValidationIssue(
                        rule="consistency_check",
                        severity="warning",
                        message=f'Skill "{skill.stated_skill}" has high confidence but no supporting evidence in achievements',
                        suggested_fix="link_skill_to_evidence",
                        metadata={"skill": skill.stated_skill},
                    )
                )
    return issues


def check_plausibility(data: ExtractedData, context: ValidationContext) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    max_team_size = float(get_extraction_value("validation.max_team_size", 1000))
    max_budget = float(get_extraction_value("validation.max_budget", 10_000_000_000))

    team_sizes: list[float] = []
    budgets: list[float] = []
    for item in data.power_phrases:
        team_size = item.metric("team_size")
        percentage = item.metric("percentage", "percent", "percentage_improvement")
        budget = item.metric("budget")

        if team_size is not None:
            team_sizes.append(team_size)
            if team_size > max_team_size:
                issues.append(
                    ValidationIssue(
                        rule="plausibility_check",
                        severity="warning",
                        message=f"Team size of {team_size:,.0f} seems unusually high",
                        suggested_fix="flag_for_user_verification",
                        metadata={"phrase": item.phrase, "team_size": team_size},
                    )
                )

        if percentage is not None and percentage > 100:
            issues.append(
                ValidationIssue(
                    rule="plausibility_check",
                    severity="critical",
                    message=f"Percentage improvement of {percentage:g}% is impossible (>100%)",
                    suggested_fix="reparse_achievement",
                    metadata={"phrase": item.phrase, "percentage": percentage},
                )
            )

        if budget is not None:
            budgets.append(budget)
            if budget > max_budget:
                issues.append(
                    ValidationIssue(
                        rule="plausibility_check",
                        severity="warning",
                        message=f"Budget of ${budget / 1_000_000_000:.1f}B seems unusually high",
                        suggested_fix="flag_for_user_verification",
                        metadata={"phrase": item.phrase, "budget": budget},
                    )
                )

    framework = context.framework
    if framework is None:
        return issues

    team_benchmark = framework.benchmark("Team Size")
    if team_benchmark and team_sizes and max(team_sizes) > team_benchmark.max_value * 2:
        claimed = max(team_sizes)
        issues.append(
            ValidationIssue(
                rule="plausibility_check",
                severity="warning",
                message=f"Claimed team size of {claimed:,.0f} is 2x higher than typical for {framework.role}",
                suggested_fix="flag_for_user_verification",
                metadata={"claimed_size": claimed, "typical_max": team_benchmark.max_value, "role": framework.role},
            )
        )

    budget_benchmark = framework.benchmark("Budget", "Budget Responsibility")
    if budget_benchmark and budgets and max(budgets) > budget_benchmark.max_value * 3:
        claimed = max(budgets)
        issues.append(
            ValidationIssue(
                rule="plausibility_check",
                severity="warning",
                message=f"Claimed budget of ${claimed:,.0f} is 3x higher than typical for {framework.role}",
                suggested_fix="flag_for_user_verification",
                metadata={"claimed_budget": claimed, "typical_max": budget_benchmark.max_value, "role": framework.role},
            )
        )
    return issues


def check_redundancy(data: ExtractedData, context: ValidationContext) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    threshold = float(get_extraction_value("validation.redundancy_similarity", 0.85))
    phrases = data.power_phrases
    for index, first in enumerate(phrases):
        for second in phrases[index + 1:]:
            similarity = jaccard_similarity(first.phrase, second.phrase)
            if similarity > threshold:
                issues.append(
                    ValidationIssue(
                        rule="redundancy_check",
                        severity="info",
                        message=f"Phrases appear to be duplicates ({similarity * 100:.0f}% similar)",
                        suggested_fix="consolidate_duplicates",
                        metadata={"phrase1": first.phrase, "phrase2": second.phrase, "similarity": similarity},
                    )
                )
    return issues


completeness_rule = ValidationRule("completeness_check", check_completeness, "Minimum item counts and coverage")
consistency_rule = ValidationRule("consistency_check", check_consistency, "Title and skill evidence alignment")
plausibility_rule = ValidationRule("plausibility_check", check_plausibility, "Metric sanity and benchmark ranges")
redundancy_rule = ValidationRule("redundancy_check", check_redundancy, "Near-duplicate achievements")

ALL_VALIDATION_RULES: tuple[ValidationRule, ...] = (
    completeness_rule,
    consistency_rule,
    plausibility_rule,
    redundancy_rule,
)
