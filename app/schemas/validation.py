from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

IssueSeverity = Literal["critical", "warning", "info"]


class ValidationIssue(BaseModel):
    rule: str
    severity: IssueSeverity
    message: str
    suggested_fix: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    passed: bool
    confidence: float = Field(ge=0.0, le=100.0)
    issues: list[ValidationIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    requires_user_review: bool = False

    def count(self, severity: IssueSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def critical_issues(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "critical"]


class ValidationSummary(BaseModel):
    overall_confidence: float
    passed: bool
    critical_issues: int = 0
    issues: list[ValidationIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    requires_user_review: bool = False

    @classmethod
    def from_result(cls, result: ValidationResult) -> ValidationSummary:
        return cls(
            overall_confidence=result.confidence,
            passed=result.passed,
            critical_issues=result.count("critical"),
            issues=list(result.issues),
            recommendations=list(result.recommendations),
            requires_user_review=result.requires_user_review,
        )
