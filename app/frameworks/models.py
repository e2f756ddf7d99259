from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CompetencyLevel = Literal["basic", "intermediate", "advanced", "expert"]
EducationLevel = Literal["high_school", "associate", "bachelor", "master", "phd"]
MatchQuality = Literal["exact", "partial", "default", "generated"]


class TechnicalCompetency(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    required_level: CompetencyLevel
    category: str
    keywords: list[str] = Field(default_factory=list)


class ManagementBenchmark(BaseModel):
    model_config = ConfigDict(frozen=True)

    aspect: str
    min_value: float
    typical_value: float
    max_value: float
    unit: str
    keywords: list[str] = Field(default_factory=list)


class EducationRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: EducationLevel
    fields: list[str] = Field(default_factory=list)
    required: bool = False


class CertificationRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    required: bool = False
    alternatives: list[str] = Field(default_factory=list)


class ExperienceLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_years: int
    max_years: int
    typical: int


class CompetencyFramework(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    industry: str
    aliases: list[str] = Field(default_factory=list)
    technical_competencies: list[TechnicalCompetency] = Field(default_factory=list)
    management_benchmarks: list[ManagementBenchmark] = Field(default_factory=list)
    education_requirements: list[EducationRequirement] = Field(default_factory=list)
    certifications: list[CertificationRequirement] = Field(default_factory=list)
    experience_level: ExperienceLevel

    def benchmark(self, *aspects: str) -> ManagementBenchmark | None:
        wanted = {aspect.lower() for aspect in aspects}
        for item in self.management_benchmarks:
            if item.aspect.lower() in wanted:
                return item
        return None


class FrameworkContext(BaseModel):
    framework: CompetencyFramework | None = None
    match_quality: MatchQuality
    match_score: float = Field(ge=0.0, le=100.0)
    adaptations: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=100.0)
