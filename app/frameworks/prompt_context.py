from __future__ import annotations

from .models import CompetencyFramework

_RULE = "=" * 60


def _banner(title: str, body: str) -> str:
    return f"\n{_RULE}\n{title}\n{_RULE}\n\n{body.strip()}\n\n{_RULE}\n"


def _format_value(value: float) -> str:
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,}"


def _power_phrases_context(framework: CompetencyFramework) -> str:
    lines: list[str] = []
    if framework.management_benchmarks:
        lines.append("MANAGEMENT/LEADERSHIP BENCHMARKS TO LOOK FOR:")
        for benchmark in framework.management_benchmarks:
            lines.append(
                f"- {benchmark.aspect}: typical range {_format_value(benchmark.min_value)}-"
                f"{_format_value(benchmark.max_value)} {benchmark.unit} "
                f"(typical: {_format_value(benchmark.typical_value)} {benchmark.unit})"
            )
            lines.append(f"  Keywords to watch for: {', '.join(benchmark.keywords)}")
        lines.append("")
        lines.append(
            f"These are TYPICAL values for {framework.role}. Extract what the resume actually states "
            "and flag values far outside these ranges."
        )
        lines.append("")

    lines.append(f"EXPECTED TECHNICAL COMPETENCIES for {framework.role}:")
    for competency in framework.technical_competencies[:5]:
        lines.append(
            f"- {competency.name} ({competency.required_level} level): "
            f"look for {', '.join(competency.keywords[:3])}"
        )
    lines.append("")
    scope = "CRITICAL" if framework.management_benchmarks else "optional"
    lines.append("EXTRACTION GUIDANCE:")
    lines.append(f"1. For this role, management/leadership scope is {scope}")
    lines.append("2. Technical achievements should align with the competencies listed above")
    lines.append("3. Quantified achievements should include impact metrics and scope metrics")
    lines.append("4. Extract what is in the resume, but note claims that seem unusually high or low")
    return _banner(f'ROLE CONTEXT: Analyzing resume for "{framework.role}" in {framework.industry}', "\n".join(lines))


def _skills_context(framework: CompetencyFramework) -> str:
    lines = ["EXPECTED CORE SKILLS (look for these specifically):"]
    for competency in framework.technical_competencies:
        lines.append(f"- {competency.name} ({competency.required_level}): {', '.join(competency.keywords)}")
    lines.append("")
    lines.append("Prioritize skills that match these expectations, but also extract any other relevant skills.")
    lines.append("If a skill is mentioned but not demonstrated, assign lower confidence.")
    return _banner(f'ROLE CONTEXT: Skills for "{framework.role}"', "\n".join(lines))


def _competencies_context(framework: CompetencyFramework) -> str:
    lines = ["FRAMEWORK COMPETENCIES:"]
    lines.extend(f"{competency.category}: {competency.name}" for competency in framework.technical_competencies)
    lines.append("")
    lines.append("Infer competencies from explicit mentions, from achievements that demonstrate them,")
    lines.append("and from responsibilities that require them.")
    lines.append("")
    lines.append(f"EXPERIENCE LEVEL: {framework.experience_level.typical} years typical")
    lines.append("Expect competencies appropriate for this experience level.")
    return _banner(f'ROLE CONTEXT: Competencies for "{framework.role}"', "\n".join(lines))


def _soft_skills_context(framework: CompetencyFramework) -> str:
    typical_years = framework.experience_level.typical
    if typical_years >= 10:
        level = "senior"
        examples = "Strategic thinking, stakeholder management, mentorship, decision-making"
    elif typical_years >= 5:
        level = "mid-level"
        examples = "Collaboration, problem-solving, communication, adaptability"
    else:
        level = "junior"
        examples = "Learning agility, attention to detail, teamwork, initiative"

    if framework.management_benchmarks:
        role_shape = "Leadership/management role - expect leadership soft skills"
    else:
        role_shape = "Individual contributor role - expect collaboration soft skills"

    body = "\n".join(
        [
            "SENIORITY EXPECTATIONS:",
            f"- Experience level: {level} ({typical_years} years typical)",
            f"- {role_shape}",
            "",
            "LOOK FOR BEHAVIORAL EVIDENCE of soft skills like:",
            f"- {examples}",
        ]
    )
    return _banner(f'ROLE CONTEXT: Soft Skills for {level} "{framework.role}"', body)


_BUILDERS = {
    "power_phrases": _power_phrases_context,
    "skills": _skills_context,
    "competencies": _competencies_context,
    "soft_skills": _soft_skills_context,
}


def build_framework_prompt_context(framework: CompetencyFramework | None, pass_type: str) -> str:
    """Per-pass guidance block appended to extraction prompts; empty for unknown passes."""
    if framework is None:
        return ""
    builder = _BUILDERS.get(pass_type)
    return builder(framework) if builder else ""
