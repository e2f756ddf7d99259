from __future__ import annotations

import logging
import re
from typing import Literal, Sequence

from pydantic import BaseModel, Field

from app.parsing.models import ResumeStructure

logger = logging.getLogger(__name__)

Seniority = Literal["entry", "mid", "senior", "executive"]

DEFAULT_ROLE = "Professional"
DEFAULT_INDUSTRY = "General"
TARGET_ROLE_CONFIDENCE = 90

_TITLE_NOUNS = (
    r"(?:Engineer|Manager|Director|Supervisor|Lead|Specialist|Analyst|Consultant|Developer|"
    r"Designer|Coordinator|Officer|Executive|President|Architect|Administrator|Head)"
)
_TITLE_WORDS = r"(?:[A-Z&][A-Za-z&\-/]*\s+)*"
_TITLE_TAIL = r"(?:\s+(?:of|for)\s+[A-Z][A-Za-z&\- ]*[A-Za-z])?"
_TITLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"^({_TITLE_WORDS}{_TITLE_NOUNS}\b{_TITLE_TAIL})"),
    re.compile(rf"^\s*[•\-*]?\s*({_TITLE_WORDS}{_TITLE_NOUNS}\b{_TITLE_TAIL})"),
)
# Used only when no title-shaped line exists: a short run of capitalised words
# followed by a separator or the end of the line.
_FALLBACK_TITLE_PATTERN = re.compile(
    r"^\s*([A-Z][a-z]+(?:\s+(?:of\s+|and\s+|&\s+)?[A-Z][a-z]+){1,5})\s*(?:[|,@–—-]|\bat\b|$)"
)

_INDUSTRY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Oil & Gas": ("drilling", "oil", "gas", "petroleum", "upstream", "downstream", "refinery", "rig", "well"),
    "Technology": ("software", "developer", "programmer", "it", "cloud", "data", "ai", "machine learning"),
    "Finance": ("financial", "banking", "investment", "trading", "portfolio", "securities"),
    "Healthcare": ("medical", "healthcare", "hospital", "clinical", "patient", "pharmaceutical"),
    "Manufacturing": ("manufacturing", "production", "operations", "supply chain", "quality control"),
    "Construction": ("construction", "building", "project", "site", "contractor", "civil"),
    "Marketing": ("marketing", "brand", "campaign", "seo", "advertising", "social media"),
}
# Whole keywords plus simple plurals ("wells", "projects").
_INDUSTRY_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    industry: tuple(re.compile(rf"\b{re.escape(keyword)}(?:s|es)?\b", re.IGNORECASE) for keyword in keywords)
    for industry, keywords in _INDUSTRY_KEYWORDS.items()
}

_SENIORITY_RULES: tuple[tuple[Seniority, re.Pattern[str]], ...] = (
    ("executive", re.compile(r"\b(chief|ceo|cfo|cto|coo|vp|vice\s+president|executive)\b")),
    ("senior", re.compile(r"\b(director|senior\s+manager|head\s+of)\b")),
    ("senior", re.compile(r"\b(senior|sr\.?|lead|principal)\b")),
    ("entry", re.compile(r"\b(junior|jr\.?|associate|assistant|entry)\b")),
)


class RoleInfo(BaseModel):
    primary_role: str
    industry: str = DEFAULT_INDUSTRY
    seniority: Seniority = "mid"
    confidence: int = Field(ge=0, le=100)
    alternative_roles: list[str] = Field(default_factory=list)


def default_role_info() -> RoleInfo:
    return RoleInfo(
        primary_role=DEFAULT_ROLE,
        industry=DEFAULT_INDUSTRY,
        seniority="mid",
        confidence=30,
        alternative_roles=[],
    )


def _detect_titles(content: str) -> list[str]:
    titles: list[str] = []
    for line in content.split("\n"):
        for pattern in _TITLE_PATTERNS:
            match = pattern.match(line)
            if not match:
                continue
            title = match.group(1).strip()
            if 5 < len(title) < 60 and title not in titles:
                titles.append(title)
    return titles


def _detect_fallback_titles(content: str) -> list[str]:
    titles: list[str] = []
    for line in content.split("\n"):
        match = _FALLBACK_TITLE_PATTERN.match(line)
        if not match:
            continue
        title = match.group(1).strip()
        if 5 < len(title) < 60 and title not in titles:
            titles.append(title)
    return titles


def score_industries(text: str) -> dict[str, int]:
    """Count how many distinct keywords of each industry occur in ``text``."""
    scores: dict[str, int] = {}
    for industry, patterns in _INDUSTRY_PATTERNS.items():
        scores[industry] = sum(1 for pattern in patterns if pattern.search(text or ""))
    return scores


def detect_industry(text: str) -> tuple[str, int]:
    industry = DEFAULT_INDUSTRY
    best = 0
    for candidate, hits in score_industries(text).items():
        if hits > best:
            best = hits
            industry = candidate
    return industry, best


def detect_seniority(title: str) -> Seniority:
    lowered = (title or "").lower()
    for seniority, pattern in _SENIORITY_RULES:
        if pattern.search(lowered):
            return seniority
    return "mid"


def detect_role_and_industry(resume_text: str, structure: ResumeStructure) -> RoleInfo:
    experience = structure.section("experience")
    if experience is None:
        logger.info("role_detection_skipped reason=no_experience_section")
        return default_role_info()

    titles = _detect_titles(experience.content)
    if not titles:
        titles = _detect_fallback_titles(experience.content)

    industry, industry_hits = detect_industry(resume_text)
    primary_role = titles[0] if titles else DEFAULT_ROLE

    if industry_hits >= 3:
        confidence = 85
    elif titles:
        confidence = 70
    else:
        confidence = 40

    role_info = RoleInfo(
        primary_role=primary_role,
        industry=industry,
        seniority=detect_seniority(primary_role) if titles else "mid",
        confidence=confidence,
        alternative_roles=titles[1:4],
    )
    logger.info(
        "role_detected role=%s industry=%s seniority=%s confidence=%s",
        role_info.primary_role,
        role_info.industry,
        role_info.seniority,
        role_info.confidence,
    )
    return role_info


def resolve_role_info(
    detected: RoleInfo,
    target_roles: Sequence[str] | None = None,
    target_industries: Sequence[str] | None = None,
) -> RoleInfo:
    """Prefer caller-supplied targets over the detected role."""
    roles = [role.strip() for role in (target_roles or []) if role and role.strip()]
    if not roles:
        return detected

    industries = [item.strip() for item in (target_industries or []) if item and item.strip()]
    return RoleInfo(
        primary_role=roles[0],
        industry=industries[0] if industries else (detected.industry or DEFAULT_INDUSTRY),
        seniority=detected.seniority or "mid",
        confidence=TARGET_ROLE_CONFIDENCE,
        alternative_roles=roles[1:],
    )
