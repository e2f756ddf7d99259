from .alignment import FrameworkAlignment, UnusualClaim, validate_against_framework
from .catalog import FrameworkCatalogError, FrameworkProvider, LocalFrameworkCatalog, StaticFrameworkCatalog
from .matcher import (
    DEFAULT_FRAMEWORK_NOTE,
    calculate_string_similarity,
    find_competency_framework,
    find_similar_framework,
    get_default_framework,
    load_framework_context,
)
from .models import CompetencyFramework, FrameworkContext, ManagementBenchmark, TechnicalCompetency
from .prompt_context import build_framework_prompt_context

__all__ = [
    "DEFAULT_FRAMEWORK_NOTE",
    "CompetencyFramework",
    "FrameworkAlignment",
    "FrameworkCatalogError",
    "FrameworkContext",
    "FrameworkProvider",
    "LocalFrameworkCatalog",
    "ManagementBenchmark",
    "StaticFrameworkCatalog",
    "TechnicalCompetency",
    "UnusualClaim",
    "build_framework_prompt_context",
    "calculate_string_similarity",
    "find_competency_framework",
    "find_similar_framework",
    "get_default_framework",
    "load_framework_context",
    "validate_against_framework",
]
