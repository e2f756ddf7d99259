from __future__ import annotations

import json
import logging
from typing import Sequence

from app.ai.types import CompletionOptions
from app.core.config.extraction import get_extraction_value
from app.features.role_detector import RoleInfo, detect_role_and_industry, resolve_role_info
from app.frameworks.catalog import FrameworkProvider
from app.frameworks.matcher import load_framework_context
from app.frameworks.models import FrameworkContext
from app.parsing.models import ResumeStructure
from app.parsing.structure import parse_resume_structure
from app.schemas.extraction import PASS_CATEGORIES
from app.schemas.orchestration import ExtractionStrategy, PreExtractionContext

logger = logging.getLogger(__name__)

PRE_EXTRACTION_VERSION = "v3.0"


def estimate_duration_seconds(structure: ResumeStructure) -> int:
    return round(30 + 10 * structure.total_word_count / 500 + 5 * len(structure.sections) / 5)


def build_extraction_strategy(
    structure: ResumeStructure,
    role_info: RoleInfo | None,
    framework_context: FrameworkContext | None,
) -> ExtractionStrategy:
    focus_areas: list[str] = []
    framework = framework_context.framework if framework_context else None
    if framework is not None and framework.management_benchmarks:
        focus_areas.append("management_scope")

    seniority = role_info.seniority if role_info else None
    if seniority in ("senior", "executive"):
        focus_areas.extend(["leadership", "strategic_thinking"])

    comprehensive_words = int(get_extraction_value("strategy.comprehensive_word_count", 1000))
    if structure.total_word_count > comprehensive_words:
        focus_areas.append("comprehensive_extraction")

    high_quality_words = int(get_extraction_value("strategy.high_quality_word_count", 1500))
    if structure.total_word_count > high_quality_words or seniority == "executive":
        model = str(get_extraction_value("strategy.high_quality_model", "gpt-4o"))
    else:
        model = str(get_extraction_value("strategy.baseline_model", "gpt-4o-mini"))

    min_confidence = float(get_extraction_value("strategy.framework_min_confidence", 60))
    should_use_framework = (
        framework_context is not None
        and framework_context.framework is not None
        and framework_context.confidence > min_confidence
    )

    strategy = ExtractionStrategy(
        pass_order=list(PASS_CATEGORIES),
        focus_areas=focus_areas,
        estimated_duration=estimate_duration_seconds(structure),
        recommended_model=model,
        should_use_framework=should_use_framework,
    )
    logger.info(
        json.dumps(
            {
                "event": "extraction_strategy_built",
                "focus_areas": strategy.focus_areas,
                "estimated_duration": strategy.estimated_duration,
                "recommended_model": strategy.recommended_model,
                "should_use_framework": strategy.should_use_framework,
            }
        )
    )
    return strategy


def completion_options_for(strategy: ExtractionStrategy) -> CompletionOptions | None:
    """Route passes to the high-quality tier when the strategy recommends it."""
    high_quality_model = str(get_extraction_value("strategy.high_quality_model", "gpt-4o"))
    if strategy.recommended_model == high_quality_model:
        return CompletionOptions(force_high_quality=True)
    return None


def analyze_pre_extraction(
    resume_text: str,
    target_roles: Sequence[str] | None = None,
    target_industries: Sequence[str] | None = None,
    catalog: FrameworkProvider | None = None,
) -> PreExtractionContext:
    structure = parse_resume_structure(resume_text)
    role_info = resolve_role_info(
        detect_role_and_industry(resume_text, structure),
        target_roles,
        target_industries,
    )

    framework_context: FrameworkContext | None
    try:
        framework_context = load_framework_context(role_info.primary_role, role_info.industry, catalog)
    except Exception as exc:
        logger.warning(json.dumps({"event": "framework_load_failed", "role": role_info.primary_role, "error": str(exc)}))
        framework_context = None

    return PreExtractionContext(
        resume_structure=structure,
        role_info=role_info,
        framework_context=framework_context,
        extraction_strategy=build_extraction_strategy(structure, role_info, framework_context),
        version=PRE_EXTRACTION_VERSION,
    )
