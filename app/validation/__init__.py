from .engine import calculate_confidence, failed_validation, generate_recommendations, run_validation
from .rules import (
    ALL_VALIDATION_RULES,
    ValidationContext,
    ValidationRule,
    calculate_text_coverage,
    check_completeness,
    check_consistency,
    check_plausibility,
    check_redundancy,
)

__all__ = [
    "ALL_VALIDATION_RULES",
    "ValidationContext",
    "ValidationRule",
    "calculate_confidence",
    "calculate_text_coverage",
    "check_completeness",
    "check_consistency",
    "check_plausibility",
    "check_redundancy",
    "failed_validation",
    "generate_recommendations",
    "run_validation",
]
