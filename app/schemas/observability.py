from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.schemas.validation import ValidationIssue

SessionStatus = Literal["running", "completed", "failed"]


class ExtractionSession(BaseModel):
    id: str
    vault_id: str
    user_id: str
    extraction_version: str = "v3"
    started_at: datetime
    ended_at: datetime | None = None
    status: SessionStatus = "running"
    metadata: dict[str, Any] = Field(default_factory=dict)
    final_data: dict[str, Any] | None = None


class ExtractionEventRecord(BaseModel):
    session_id: str
    event_type: str
    event_data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class TokenUsageRecord(BaseModel):
    prompt: int = 0
    completion: int = 0
    total: int = 0


class AIResponseCapture(BaseModel):
    session_id: str
    pass_type: str
    prompt_version: str
    model_used: str
    raw_response: str = ""
    parsed_data: Any = None
    token_usage: TokenUsageRecord = Field(default_factory=TokenUsageRecord)
    latency_ms: int = 0
    ai_reasoning: str | None = None
    confidence_score: float = 0.0
    created_at: datetime


class ValidationLog(BaseModel):
    session_id: str
    validation_type: str
    passed: bool
    confidence: float
    issues: list[ValidationIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    created_at: datetime


class Checkpoint(BaseModel):
    session_id: str
    phase: str
    checkpoint_data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class QualityMetrics(BaseModel):
    average_confidence: float = 0.0
    item_counts: dict[str, int] = Field(default_factory=dict)
    validation_results: list[ValidationLog] = Field(default_factory=list)
    resume_coverage: float = 0.0


class PerformanceMetrics(BaseModel):
    total_tokens_used: int = 0
    total_cost: float = 0.0
    average_latency: float = 0.0
    retry_count: int = 0


class PassReasoning(BaseModel):
    pass_type: str
    reasoning: str


class AIInsights(BaseModel):
    models_used: list[str] = Field(default_factory=list)
    prompt_versions: list[str] = Field(default_factory=list)
    reasoning: list[PassReasoning] = Field(default_factory=list)


class ExtractionReport(BaseModel):
    session_id: str
    duration_ms: int = 0
    status: SessionStatus
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    performance: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    ai_insights: AIInsights = Field(default_factory=AIInsights)
    issues: list[ValidationIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
