from __future__ import annotations

from typing import Iterable

from app.schemas.validation import ValidationIssue

SYSTEM_PROMPT = (
    "You extract structured career intelligence from resumes. "
    "Respond with a single JSON object and nothing else."
)

_OUTPUT_CONTRACT = (
    "Return ONLY a JSON object with NO markdown and NO code fences, shaped as:\n"
    '{{"items": [ ... ], "reasoning": "one or two sentences on how you chose the items"}}\n\n'
    "Each item in \"items\" must follow this structure:\n{item_shape}"
)

_PASS_PROMPTS: dict[str, tuple[str, str]] = {
    "power_phrases": (
        "Extract quantified achievements and management scope from this resume.",
        """{
  "phrase": "Full achievement statement with quantified metrics",
  "category": "Leadership|Management|Technical|Business|Process",
  "impact_metrics": {"budget": "$350M", "team_size": 12, "percentage": 25},
  "keywords": ["directed", "managing"],
  "confidence_score": 0.9
}""",
    ),
    "skills": (
        "Extract technical and transferable skills from this resume.",
        """{
  "stated_skill": "Skill name as stated in resume",
  "skill_category": "Technical|Functional|Industry|Tool",
  "cross_functional_equivalent": "How this skill applies across industries",
  "confidence_score": 0.8
}""",
    ),
    "competencies": (
        "Extract hidden competencies and capabilities from this resume.",
        """{
  "competency_area": "Category of competency",
  "inferred_capability": "What capability this demonstrates",
  "evidence_source": "Where in resume this is shown",
  "confidence_score": 0.75
}""",
    ),
    "soft_skills": (
        "Extract soft skills with behavioral evidence from this resume.",
        """{
  "soft_skill": "Name of the soft skill",
  "behavioral_evidence": "Specific example from resume demonstrating this",
  "confidence_score": 0.75
}""",
    ),
}


def build_base_prompt(pass_type: str, resume_text: str) -> str:
    if pass_type not in _PASS_PROMPTS:
        return resume_text
    instruction, item_shape = _PASS_PROMPTS[pass_type]
    contract = _OUTPUT_CONTRACT.format(item_shape=item_shape)
    return f"{instruction}\n\n{contract}\n\nResume:\n{resume_text}"


def build_pass_prompt(pass_type: str, resume_text: str, framework_context: str = "") -> str:
    base = build_base_prompt(pass_type, resume_text)
    if not framework_context:
        return base
    return f"{framework_context}\n\n{base}"


def build_enhanced_guidance(issues: Iterable[ValidationIssue]) -> str:
    issues = list(issues)
    lines = ["", "", "IMPORTANT - Previous extraction missed key information:"]
    if any(issue.suggested_fix == "retry_with_enhanced_prompt" and "expected_min" in issue.metadata for issue in issues):
        lines.append("- Extract MORE items. The resume likely contains additional relevant information.")
    if any(issue.rule == "completeness_check" for issue in issues):
        lines.append('- Look carefully for ALL quantified achievements, even if not explicitly stated as "achievements"')
        lines.append("- Include scope metrics (team sizes, budget amounts, project scale)")
    if any(issue.suggested_fix == "targeted_management_extraction" for issue in issues):
        lines.append("- Capture management and leadership evidence: teams led, budgets owned, people supervised")
    if any(issue.suggested_fix == "reparse_achievement" for issue in issues):
        lines.append("- Percentages must be between 0 and 100; re-read metrics exactly as written")
    return "\n".join(lines) + "\n"


def build_section_prompt(section_text: str, original_prompt: str) -> str:
    return f"Extract from this specific section:\n\n{section_text}\n\n{original_prompt}"


def build_repair_prompt(raw_output: str) -> str:
    return (
        "The following JSON is malformed. Fix it and return ONLY valid JSON with no markdown:\n\n"
        f"{raw_output}\n\nReturn the corrected JSON:"
    )
