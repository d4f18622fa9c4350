#------------------------------------------------------------
#                      markdown_view.py
#             Renders the analysis report and CV
#                   sections as markdown.

from typing import Dict, List, Optional
from ..models import Analysis, CVContent, CVProject, LanguageSummary, Profile, Statistics
from ..services.language_service import format_bytes, group_languages_by_category

REPORT_TITLE_TEMPLATE = "# GitHub Profile Analysis: {username}"
PROFILE_LINE_TEMPLATE = "**{name}** ([@{login}]({url}))"
PROFILE_DETAIL_TEMPLATE = "- **{label}:** {value}"
NO_LANGUAGE_DATA_MESSAGE = "_No language data available yet._"
NO_PROJECTS_MESSAGE = "_No projects met the ranking threshold._"
NO_SKILLS_MESSAGE = "_No skills detected._"
NO_ERRORS_MESSAGE = "_None._"
NO_STATISTICS_MESSAGE = "_No statistics available._"
LANGUAGE_CATEGORY_TEMPLATE = "**{category}**"
LANGUAGE_LINE_TEMPLATE = "- **{language}:** {percent:.1f}% ({size}, {proficiency})"
PROJECT_BLOCK_TEMPLATE = (
    "**[{name}]({url})** - {description}\n"
    "- **Score:** {score}\n"
    "- **Technologies:** {technologies}"
)
PROJECT_HIGHLIGHTS_TEMPLATE = "- **Highlights:** {highlights}"
SKILL_LINE_TEMPLATE = "- **{category}:** {skills}"
ERROR_LINE_TEMPLATE = "- {error}"
SECTION_TEMPLATE = "## {title}\n\n{body}"
NOT_SPECIFIED_LABEL = "Not specified"
NO_DESCRIPTION_LABEL = "No description provided."

STATISTIC_LABELS = (
    ("total_repos", "Repositories"),
    ("original_repos", "Original"),
    ("forked_repos", "Forked"),
    ("total_stars", "Stars"),
    ("total_forks", "Forks"),
    ("followers", "Followers"),
    ("active_repos_last_year", "Active in the last year"),
    ("years_active", "Years on GitHub"),
    ("average_stars_per_repo", "Average stars per original repo"),
    ("top_language", "Top language"),
    ("language_count", "Languages"),
    ("tech_count", "Detected technologies"),
)

def _section(title: str, body: str) -> str:
    return SECTION_TEMPLATE.format(title=title, body=body)

# This function does render the profile heading lines.
# Optional profile fields are listed only when present.
def render_profile(profile: Optional[Profile], username: str) -> str:
    if profile is None:
        return f"**{username}**"

    lines = [PROFILE_LINE_TEMPLATE.format(name=profile.name or profile.login, login=profile.login, url=profile.profile_url or "")]
    if profile.bio:
        lines.append("")
        lines.append(profile.bio)
    details = [("Location", profile.location), ("Company", profile.company), ("Website", profile.blog)]
    detail_lines = [PROFILE_DETAIL_TEMPLATE.format(label=label, value=value) for label, value in details if value]
    if detail_lines:
        lines.append("")
        lines.extend(detail_lines)
    return "\n".join(lines)

def render_statistics(statistics: Optional[Statistics]) -> str:
    if statistics is None:
        return NO_STATISTICS_MESSAGE
    lines = []
    for attribute, label in STATISTIC_LABELS:
        value = getattr(statistics, attribute)
        lines.append(PROFILE_DETAIL_TEMPLATE.format(label=label, value=NOT_SPECIFIED_LABEL if value is None else value))
    return "\n".join(lines)

# This function does render language percentage summary markdown.
# It groups the top languages by category with size and proficiency.
def render_language_summary(summary: Optional[LanguageSummary], top_n: int = 10) -> str:
    if summary is None or summary.total_bytes == 0:
        return NO_LANGUAGE_DATA_MESSAGE

    blocks = []
    for category, stats in group_languages_by_category(summary.languages[:top_n]).items():
        lines = [LANGUAGE_CATEGORY_TEMPLATE.format(category=category)]
        lines.extend(
            LANGUAGE_LINE_TEMPLATE.format(
                language=stat.name,
                percent=stat.percentage,
                size=format_bytes(stat.total_bytes),
                proficiency=stat.proficiency,
            )
            for stat in stats
        )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)

def render_project_block(project: CVProject, score: Optional[int]) -> str:
    block = PROJECT_BLOCK_TEMPLATE.format(
        name=project.name,
        url=project.url,
        description=project.description or NO_DESCRIPTION_LABEL,
        score=NOT_SPECIFIED_LABEL if score is None else score,
        technologies=", ".join(project.technologies) or NOT_SPECIFIED_LABEL,
    )
    if project.highlights:
        block += "\n" + PROJECT_HIGHLIGHTS_TEMPLATE.format(highlights=", ".join(project.highlights))
    return block

# This function does render a full project section block.
# It joins project blocks or returns an empty-state message.
def render_project_section(projects: List[CVProject], scores: Dict[str, int]) -> str:
    if not projects:
        return NO_PROJECTS_MESSAGE
    return "\n\n".join(render_project_block(project, scores.get(project.repo_name)) for project in projects)

def render_skills(skills: Dict[str, List[str]]) -> str:
    if not skills:
        return NO_SKILLS_MESSAGE
    return "\n".join(
        SKILL_LINE_TEMPLATE.format(category=category, skills=", ".join(names))
        for category, names in skills.items()
    )

def render_errors(errors: List[str]) -> str:
    if not errors:
        return NO_ERRORS_MESSAGE
    return "\n".join(ERROR_LINE_TEMPLATE.format(error=error) for error in errors)

# This function does render the complete markdown report.
# Sections appear in a fixed order with empty-state messages.
def render_report(analysis: Analysis, cv: CVContent) -> str:
    scores = {project.name: project.total_score for project in analysis.ranked_projects}
    sections = [
        REPORT_TITLE_TEMPLATE.format(username=analysis.username),
        render_profile(analysis.profile, analysis.username),
        _section("Summary", cv.summary),
        _section("Statistics", render_statistics(analysis.statistics)),
        _section("Languages", render_language_summary(analysis.languages)),
        _section("Projects", render_project_section(cv.projects, scores)),
        _section("Skills", render_skills(cv.skills)),
        _section("Warnings", render_errors(analysis.errors)),
    ]
    return "\n\n".join(sections) + "\n"
