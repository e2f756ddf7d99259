from __future__ import annotations

import re
from typing import Any, Iterable, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

PassCategory = Literal["power_phrases", "skills", "competencies", "soft_skills"]

PASS_CATEGORIES: tuple[PassCategory, ...] = ("power_phrases", "skills", "competencies", "soft_skills")

_NUMBER_RE = re.compile(r"(-?\d[\d,]*(?:\.\d+)?)\s*(bn|b|mm|m|k)?\b", re.IGNORECASE)
_SUFFIX_MULTIPLIERS = {
    "k": 1_000.0,
    "m": 1_000_000.0,
    "mm": 1_000_000.0,
    "b": 1_000_000_000.0,
    "bn": 1_000_000_000.0,
}
_WORD_MULTIPLIERS = (
    ("billion", 1_000_000_000.0),
    ("million", 1_000_000.0),
    ("thousand", 1_000.0),
)


def coerce_metric_number(value: Any) -> float | None:
    """Turn 12, "12 people", "45%", "$350M" or "2.5 billion" into a float."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    match = _NUMBER_RE.search(text)
    if not match:
        return None

    number = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    if suffix:
        return number * _SUFFIX_MULTIPLIERS[suffix]

    trailing = text[match.end():].lower()
    for word, multiplier in _WORD_MULTIPLIERS:
        if trailing.lstrip().startswith(word):
            return number * multiplier
    return number


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _normalize_confidence(value: Any) -> float:
    number = coerce_metric_number(value)
    if number is None:
        return 0.7
    # Some completions report 0-100 instead of 0-1.
    if number > 1.0:
        number = number / 100.0
    return max(0.0, min(1.0, number))


class _ExtractedItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    confidence_score: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        validation_alias=AliasChoices("confidence_score", "confidenceScore", "confidence"),
    )

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        return _normalize_confidence(value)


class PowerPhrase(_ExtractedItem):
    phrase: str = Field(validation_alias=AliasChoices("phrase", "power_phrase", "powerPhrase", "achievement", "text"))
    category: str = "achievement"
    impact_metrics: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("impact_metrics", "impactMetrics", "metrics"),
    )
    keywords: list[str] = Field(default_factory=list)

    @field_validator("impact_metrics", mode="before")
    @classmethod
    def _metrics_dict(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    def metric(self, *names: str) -> float | None:
        """Look up the first present metric, accepting snake_case or camelCase keys."""
        for name in names:
            for key in (name, _camel_case(name)):
                if key in self.impact_metrics:
                    number = coerce_metric_number(self.impact_metrics[key])
                    if number is not None:
                        return number
        return None


class Skill(_ExtractedItem):
    stated_skill: str = Field(validation_alias=AliasChoices("stated_skill", "statedSkill", "skill_name", "skill", "name"))
    skill_category: str = Field(
        default="technical",
        validation_alias=AliasChoices("skill_category", "skillCategory", "category"),
    )
    cross_functional_equivalent: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "cross_functional_equivalent",
            "crossFunctionalEquivalent",
            "equivalent_skills",
        ),
    )

    @field_validator("cross_functional_equivalent", mode="before")
    @classmethod
    def _join_equivalents(cls, value: Any) -> str | None:
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in value if item) or None
        return value


class Competency(_ExtractedItem):
    competency_area: str = Field(
        validation_alias=AliasChoices("competency_area", "competencyArea", "area", "competency"),
    )
    inferred_capability: str = Field(
        default="",
        validation_alias=AliasChoices("inferred_capability", "inferredCapability", "capability"),
    )
    evidence_source: str = Field(
        default="",
        validation_alias=AliasChoices("evidence_source", "evidenceSource", "evidence", "supporting_evidence"),
    )


class SoftSkill(_ExtractedItem):
    soft_skill: str = Field(validation_alias=AliasChoices("soft_skill", "softSkill", "skill_name", "skill", "name"))
    behavioral_evidence: str = Field(
        default="",
        validation_alias=AliasChoices("behavioral_evidence", "behavioralEvidence", "evidence", "examples"),
    )

    @field_validator("behavioral_evidence", mode="before")
    @classmethod
    def _join_evidence(cls, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            return "; ".join(str(item) for item in value if item)
        return value or ""


ITEM_MODELS: dict[str, type[_ExtractedItem]] = {
    "power_phrases": PowerPhrase,
    "skills": Skill,
    "competencies": Competency,
    "soft_skills": SoftSkill,
}


class ExtractedData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    power_phrases: list[PowerPhrase] = Field(
        default_factory=list,
        validation_alias=AliasChoices("power_phrases", "powerPhrases"),
    )
    skills: list[Skill] = Field(
        default_factory=list,
        validation_alias=AliasChoices("skills", "transferable_skills", "transferableSkills"),
    )
    competencies: list[Competency] = Field(
        default_factory=list,
        validation_alias=AliasChoices("competencies", "hidden_competencies", "hiddenCompetencies"),
    )
    soft_skills: list[SoftSkill] = Field(
        default_factory=list,
        validation_alias=AliasChoices("soft_skills", "softSkills"),
    )

    @field_validator("power_phrases", "skills", "competencies", "soft_skills", mode="before")
    @classmethod
    def _always_list(cls, value: Any) -> list[Any]:
        if value is None:
            return []
        if isinstance(value, dict):
            return [value]
        return list(value)

    def bucket(self, category: str) -> list[Any]:
        return list(getattr(self, category))

    def item_count(self) -> int:
        return sum(len(getattr(self, category)) for category in PASS_CATEGORIES)

    def merged_with(self, other: ExtractedData, categories: Iterable[str]) -> ExtractedData:
        """Copy of this data with the given buckets replaced by ``other``'s."""
        updates = {category: other.bucket(category) for category in categories}
        return self.model_copy(update=updates)
