from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.features.role_detector import RoleInfo
from app.frameworks.alignment import FrameworkAlignment
from app.frameworks.models import FrameworkContext
from app.parsing.models import ResumeStructure
from app.schemas.extraction import PASS_CATEGORIES, ExtractedData, PassCategory
from app.schemas.validation import ValidationResult, ValidationSummary

ErrorType = Literal["low_confidence", "incomplete_extraction", "malformed_json", "extraction_failure", "exhausted"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExtractionStrategy(BaseModel):
    pass_order: list[PassCategory] = Field(default_factory=lambda: list(PASS_CATEGORIES))
    focus_areas: list[str] = Field(default_factory=list)
    estimated_duration: int = Field(default=30, ge=0)
    recommended_model: str
    should_use_framework: bool = False


class PreExtractionContext(BaseModel):
    resume_structure: ResumeStructure
    role_info: RoleInfo | None = None
    framework_context: FrameworkContext | None = None
    extraction_strategy: ExtractionStrategy
    analyzed_at: datetime = Field(default_factory=_utc_now)
    version: str = "v3.0"


class ExtractionError(BaseModel):
    """Classification of why a pass attempt was not accepted."""

    type: ErrorType
    confidence: float | None = None
    issues: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None
    last_type: ErrorType | None = None


class RetryMetadata(BaseModel):
    attempts: int = Field(default=0, ge=0)
    final_strategy: str = "initial_extraction"
    total_cost: int = Field(default=0, ge=0)


class RetryResult(BaseModel):
    success: bool
    data: ExtractedData = Field(default_factory=ExtractedData)
    validation: ValidationResult
    error: ExtractionError | None = None
    metadata: RetryMetadata = Field(default_factory=RetryMetadata)


class PassResult(BaseModel):
    pass_type: PassCategory
    success: bool
    items_extracted: int = 0
    confidence: float = 0.0
    attempts: int = 0
    final_strategy: str = ""
    latency_ms: int = 0
    error: str | None = None


class OrchestrationMetadata(BaseModel):
    duration_ms: int = 0
    total_cost: int = 0
    retry_count: int = 0


class OrchestrationResult(BaseModel):
    success: bool
    session_id: str
    extracted: ExtractedData = Field(default_factory=ExtractedData)
    validation: ValidationSummary
    metadata: OrchestrationMetadata = Field(default_factory=OrchestrationMetadata)
    pre_extraction_context: PreExtractionContext | None = None
    pass_results: list[PassResult] = Field(default_factory=list)
    framework_alignment: FrameworkAlignment | None = None
    error: str | None = None
