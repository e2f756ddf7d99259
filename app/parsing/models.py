from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SectionType = Literal["contact", "summary", "experience", "education", "skills", "certifications", "other"]


class ResumeSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    word_count: int = Field(default=0, ge=0)
    type: SectionType = "other"


class ResumeStructure(BaseModel):
    model_config = ConfigDict(frozen=True)

    sections: list[ResumeSection] = Field(default_factory=list)
    total_word_count: int = 0
    total_char_count: int = 0
    has_contact_info: bool = False
    has_work_history: bool = False
    has_education: bool = False
    has_skills: bool = False
    estimated_pages: int = 0

    def section(self, section_type: SectionType) -> ResumeSection | None:
        for item in self.sections:
            if item.type == section_type:
                return item
        return None
