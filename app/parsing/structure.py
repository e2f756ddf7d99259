from __future__ import annotations

import logging
import math
import re

from .models import ResumeSection, ResumeStructure, SectionType
from .utils import count_words

logger = logging.getLogger(__name__)

_MAX_HEADER_LENGTH = 50
_WORDS_PER_PAGE = 300

_HEADER_PREFIX = r"(?:(?:professional|career|executive|work|technical|core|key|relevant)\s+)?"
_HEADER_SUFFIX = r"(?:\s*(?:&|and|of)\s+[a-z]+(?:\s+[a-z]+)?)?\s*:?\s*$"


def _header(keywords: str) -> re.Pattern[str]:
    # A header is the whole line: an optional qualifier, the keyword, an optional "& X" or "of X" tail.
    return re.compile(rf"^{_HEADER_PREFIX}(?:{keywords})\b{_HEADER_SUFFIX}", re.IGNORECASE)


# Order matters: the first matching pattern decides the section type.
_SECTION_PATTERNS: tuple[tuple[SectionType, re.Pattern[str]], ...] = (
    ("contact", _header(r"contact(?:\s+info(?:rmation)?|\s+details)?|personal\s+info(?:rmation)?|address|email|phone")),
    ("summary", _header(r"summary|objective|profile|about(?:\s+me)?|overview")),
    ("experience", _header(r"experience|work\s+history|employment(?:\s+history)?|career(?:\s+history)?")),
    ("education", _header(r"education|academic\s+background|academics?|qualifications|degrees")),
    ("skills", _header(r"skills|competencies|expertise|proficiencies")),
    ("certifications", _header(r"certifications?|licenses?|credentials")),
)


def classify_header(line: str) -> SectionType | None:
    """Return the section type when ``line`` looks like a section header."""
    stripped = line.strip()
    if not stripped or len(stripped) >= _MAX_HEADER_LENGTH:
        return None
    for section_type, pattern in _SECTION_PATTERNS:
        if pattern.match(stripped):
            return section_type
    return None


def _close_section(draft: dict | None, sections: list[ResumeSection]) -> None:
    if draft is None:
        return
    content = "".join(draft["lines"])
    if not content.strip():
        return
    sections.append(
        ResumeSection(
            title=draft["title"],
            content=content,
            start_line=draft["start_line"],
            end_line=draft["end_line"],
            word_count=count_words(content),
            type=draft["type"],
        )
    )


def parse_resume_structure(resume_text: str) -> ResumeStructure:
    """Split résumé text into typed sections.

    Lines before the first recognised header are grouped into a synthetic
    ``Header`` section typed ``contact``. Sections without content are dropped.
    """
    text = resume_text or ""
    sections: list[ResumeSection] = []
    draft: dict | None = None

    for line_number, line in enumerate(text.split("\n"), start=1):
        section_type = classify_header(line)
        if section_type is not None:
            _close_section(draft, sections)
            draft = {
                "title": line.strip(),
                "lines": [],
                "start_line": line_number,
                "end_line": line_number,
                "type": section_type,
            }
            continue

        if draft is None:
            draft = {
                "title": "Header",
                "lines": [],
                "start_line": line_number,
                "end_line": line_number,
                "type": "contact",
            }
        draft["lines"].append(line + "\n")
        draft["end_line"] = line_number

    _close_section(draft, sections)

    total_word_count = sum(section.word_count for section in sections)
    structure = ResumeStructure(
        sections=sections,
        total_word_count=total_word_count,
        total_char_count=len(text),
        has_contact_info=any(s.type == "contact" for s in sections),
        has_work_history=any(s.type == "experience" for s in sections),
        has_education=any(s.type == "education" for s in sections),
        has_skills=any(s.type == "skills" for s in sections),
        estimated_pages=math.ceil(total_word_count / _WORDS_PER_PAGE),
    )
    logger.debug(
        "resume_structure_parsed sections=%s words=%s pages=%s",
        len(sections),
        total_word_count,
        structure.estimated_pages,
    )
    return structure
