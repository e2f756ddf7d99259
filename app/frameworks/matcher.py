from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from app.core.config.extraction import get_extraction_value
from app.parsing.utils import word_set

from .catalog import FrameworkProvider, LocalFrameworkCatalog
from .models import (
    CompetencyFramework,
    EducationRequirement,
    ExperienceLevel,
    FrameworkContext,
    ManagementBenchmark,
    TechnicalCompetency,
)

logger = logging.getLogger(__name__)

EXACT_MATCH_CONFIDENCE = 95.0
DEFAULT_MATCH_CONFIDENCE = 50.0
DEFAULT_FRAMEWORK_NOTE = "Using generic framework - no role-specific benchmarks available"
ROLE_WEIGHT = 70.0
INDUSTRY_WEIGHT = 30.0

_default_catalog: LocalFrameworkCatalog | None = None


@dataclass(slots=True)
class SimilarFramework:
    framework: CompetencyFramework
    match_score: float
    adaptations: list[str] = field(default_factory=list)


def get_default_catalog() -> FrameworkProvider:
    global _default_catalog
    if _default_catalog is None:
        from app.core.config import settings

        _default_catalog = LocalFrameworkCatalog(settings.frameworks_path or None)
    return _default_catalog


def calculate_string_similarity(first: str, second: str) -> float:
    """1.0 for equal strings, 0.8 when one contains the other, else word Jaccard."""
    left = (first or "").strip().lower()
    right = (second or "").strip().lower()
    if left == right:
        return 1.0
    if left and right and (left in right or right in left):
        return 0.8

    left_words = word_set(left)
    right_words = word_set(right)
    union = left_words | right_words
    if not union:
        return 0.0
    return len(left_words & right_words) / len(union)


def _same(first: str, second: str) -> bool:
    return first.strip().lower() == second.strip().lower()


def find_competency_framework(
    role: str,
    industry: str | None = None,
    catalog: FrameworkProvider | None = None,
) -> CompetencyFramework | None:
    if not role or not role.strip():
        return None

    provider = catalog or get_default_catalog()
    for framework in provider.frameworks():
        if industry and not _same(framework.industry, industry):
            continue
        if _same(framework.role, role) or any(_same(alias, role) for alias in framework.aliases):
            return framework
    return None


def find_similar_framework(
    role: str,
    industry: str | None = None,
    catalog: FrameworkProvider | None = None,
) -> SimilarFramework | None:
    if not role or not role.strip():
        return None

    provider = catalog or get_default_catalog()
    min_score = float(get_extraction_value("frameworks.fuzzy_min_score", 50))

    best: SimilarFramework | None = None
    for framework in provider.frameworks():
        role_similarity = max(
            [calculate_string_similarity(framework.role, role)]
            + [calculate_string_similarity(alias, role) for alias in framework.aliases]
        )
        score = ROLE_WEIGHT * role_similarity
        if industry:
            score += INDUSTRY_WEIGHT * calculate_string_similarity(framework.industry, industry)

        if score <= min_score or (best is not None and score <= best.match_score):
            continue

        adaptations: list[str] = []
        if role_similarity < 1.0:
            adaptations.append(f'Adapted from "{framework.role}" to "{role}"')
        if industry and not _same(framework.industry, industry):
            adaptations.append(f'Cross-industry adaptation from "{framework.industry}" to "{industry}"')
        best = SimilarFramework(framework=framework, match_score=score, adaptations=adaptations)

    return best


def get_default_framework() -> CompetencyFramework:
    return CompetencyFramework(
        role="Generic Professional",
        industry="General",
        aliases=[],
        technical_competencies=[
            TechnicalCompetency(
                name="Domain Expertise",
                required_level="advanced",
                category="Technical",
                keywords=["expertise", "knowledge", "skills", "proficiency"],
            ),
            TechnicalCompetency(
                name="Problem Solving",
                required_level="advanced",
                category="Cognitive",
                keywords=["problem solving", "analysis", "troubleshooting", "solutions"],
            ),
        ],
        management_benchmarks=[
            ManagementBenchmark(
                aspect="Team Size",
                min_value=1,
                typical_value=5,
                max_value=50,
                unit="people",
                keywords=["team", "staff", "people", "employees", "managed", "supervised", "led"],
            ),
            ManagementBenchmark(
                aspect="Budget",
                min_value=10_000,
                typical_value=500_000,
                max_value=10_000_000,
                unit="USD",
                keywords=["budget", "financial", "spending", "cost", "expenditure", "P&L"],
            ),
        ],
        education_requirements=[EducationRequirement(level="bachelor", fields=["any"], required=False)],
        certifications=[],
        experience_level=ExperienceLevel(min_years=2, max_years=20, typical=5),
    )


def load_framework_context(
    role: str,
    industry: str | None = None,
    catalog: FrameworkProvider | None = None,
) -> FrameworkContext:
    exact = find_competency_framework(role, industry, catalog)
    if exact is not None:
        logger.info(json.dumps({"event": "framework_matched", "quality": "exact", "framework": exact.role}))
        return FrameworkContext(
            framework=exact,
            match_quality="exact",
            match_score=100.0,
            adaptations=[],
            confidence=EXACT_MATCH_CONFIDENCE,
        )

    similar = find_similar_framework(role, industry, catalog)
    if similar is not None:
        max_confidence = float(get_extraction_value("frameworks.partial_max_confidence", 85))
        logger.info(
            json.dumps(
                {
                    "event": "framework_matched",
                    "quality": "partial",
                    "framework": similar.framework.role,
                    "score": round(similar.match_score, 1),
                }
            )
        )
        return FrameworkContext(
            framework=similar.framework,
            match_quality="partial",
            match_score=similar.match_score,
            adaptations=similar.adaptations,
            confidence=min(similar.match_score, max_confidence),
        )

    logger.info(json.dumps({"event": "framework_matched", "quality": "default", "role": role}))
    return FrameworkContext(
        framework=get_default_framework(),
        match_quality="default",
        match_score=0.0,
        adaptations=[DEFAULT_FRAMEWORK_NOTE],
        confidence=DEFAULT_MATCH_CONFIDENCE,
    )
