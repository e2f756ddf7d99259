from __future__ import annotations

import json
import logging
from typing import Sequence

from app.core.config.extraction import get_extraction_value
from app.schemas.extraction import ExtractedData
from app.schemas.validation import ValidationIssue, ValidationResult

from .rules import ALL_VALIDATION_RULES, ValidationContext, ValidationRule

logger = logging.getLogger(__name__)

SEVERITY_PENALTIES = {"critical": 15, "warning": 5, "info": 1}

_RECOMMENDATIONS: tuple[tuple[str, str], ...] = (
    ("retry_with_enhanced_prompt", "Re-extract with more specific prompts for missing areas"),
    ("targeted_management_extraction", "Perform targeted extraction for management/leadership evidence"),
    ("targeted_skill_extraction", "Run a focused skills extraction to capture missing skills"),
    ("extract_unused_sections", "Extract achievements from resume sections that were not used"),
    ("link_skill_to_evidence", "Link high-confidence skills to supporting achievements"),
    ("reparse_achievement", "Re-parse achievements with impossible metric values"),
    ("flag_for_user_verification", "Review claims that seem unusually high against resume"),
    ("consolidate_duplicates", "Merge duplicate or highly similar achievements"),
)


def calculate_confidence(issues: Sequence[ValidationIssue]) -> float:
    score = 100 - sum(SEVERITY_PENALTIES.get(issue.severity, 0) for issue in issues)
    return float(max(0, min(100, score)))


def generate_recommendations(issues: Sequence[ValidationIssue]) -> list[str]:
    fixes = {issue.suggested_fix for issue in issues if issue.suggested_fix}
    return [message for fix, message in _RECOMMENDATIONS if fix in fixes]


def run_validation(
    data: ExtractedData,
    context: ValidationContext,
    rules: Sequence[ValidationRule] = ALL_VALIDATION_RULES,
) -> ValidationResult:
    issues: list[ValidationIssue] = []
    for rule in rules:
        try:
            issues.extend(rule.validate(data, context))
        except Exception as exc:
            logger.warning(json.dumps({"event": "validation_rule_failed", "rule": rule.name, "error": str(exc)}))
            issues.append(
                ValidationIssue(
                    rule=rule.name,
                    severity="warning",
                    message=f"Validation rule failed: {exc}",
                    suggested_fix="skip_validation",
                )
            )

    confidence = calculate_confidence(issues)
    has_critical = any(issue.severity == "critical" for issue in issues)
    review_threshold = float(get_extraction_value("validation.review_confidence_threshold", 75))
    return ValidationResult(
        passed=not has_critical,
        confidence=confidence,
        issues=issues,
        recommendations=generate_recommendations(issues),
        requires_user_review=confidence < review_threshold or has_critical,
    )


def failed_validation(message: str) -> ValidationResult:
    """Result used when a pass produced nothing that could be validated."""
    issue = ValidationIssue(
        rule="extraction",
        severity="critical",
        message=message,
        suggested_fix="retry_with_enhanced_prompt",
    )
    return ValidationResult(
        passed=False,
        confidence=0.0,
        issues=[issue],
        recommendations=generate_recommendations([issue]),
        requires_user_review=True,
    )
