from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.schemas.extraction import ExtractedData

from .models import CompetencyFramework

_MANAGEMENT_RE = re.compile(r"manag|supervis|led|direct|oversee|guide|coordinat", re.IGNORECASE)

TEAM_SIZE_ASPECTS = ("Team Size",)
BUDGET_ASPECTS = ("Budget", "Budget Responsibility")
TEAM_SIZE_MULTIPLIER = 2
BUDGET_MULTIPLIER = 3


class UnusualClaim(BaseModel):
    field: str
    value: Any
    expected: str
    severity: Literal["warning", "info"] = "warning"


class FrameworkAlignment(BaseModel):
    framework_role: str
    missing_expected_fields: list[str] = Field(default_factory=list)
    unusual_claims: list[UnusualClaim] = Field(default_factory=list)


def _competency_key(name: str) -> str:
    return "competency_" + re.sub(r"\s+", "_", name.strip().lower())


def validate_against_framework(extracted: ExtractedData, framework: CompetencyFramework) -> FrameworkAlignment:
    missing: list[str] = []
    claims: list[UnusualClaim] = []

    if framework.management_benchmarks:
        if not any(_MANAGEMENT_RE.search(item.phrase) for item in extracted.power_phrases):
            missing.append("management_evidence")

    skill_names = [item.stated_skill.lower() for item in extracted.skills]
    for competency in framework.technical_competencies:
        if competency.required_level not in ("advanced", "expert"):
            continue
        keywords = [keyword.lower() for keyword in competency.keywords]
        if not any(keyword in skill for skill in skill_names for keyword in keywords):
            missing.append(_competency_key(competency.name))

    team_benchmark = framework.benchmark(*TEAM_SIZE_ASPECTS)
    budget_benchmark = framework.benchmark(*BUDGET_ASPECTS)
    for phrase in extracted.power_phrases:
        team_size = phrase.metric("team_size")
        if team_benchmark and team_size is not None and team_size > team_benchmark.max_value * TEAM_SIZE_MULTIPLIER:
            claims.append(
                UnusualClaim(
                    field="team_size",
                    value=team_size,
                    expected=(
                        f"{team_benchmark.min_value:,.0f}-{team_benchmark.max_value:,.0f} "
                        f"typical for {framework.role}"
                    ),
                )
            )

        budget = phrase.metric("budget")
        if budget_benchmark and budget is not None and budget > budget_benchmark.max_value * BUDGET_MULTIPLIER:
            claims.append(
                UnusualClaim(
                    field="budget",
                    value=budget,
                    expected=(
                        f"${budget_benchmark.min_value:,.0f}-${budget_benchmark.max_value:,.0f} "
                        f"typical for {framework.role}"
                    ),
                )
            )

    return FrameworkAlignment(
        framework_role=framework.role,
        missing_expected_fields=missing,
        unusual_claims=claims,
    )
