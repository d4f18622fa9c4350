#------------------------------------------------------------
#                     summary_service.py
#       Builds summaries, project titles, and CV content
#         from an analysis, optionally via a generator.

import logging
import re
from typing import Dict, List, Optional
from ..errors import TextGenerationError
from ..models import Analysis, CVContent, CVProject, Repository, ScoredRepository, Skill

logger = logging.getLogger(__name__)

EMPHASIS_PATTERN = r"\*+"
OPTION_LABEL_PATTERN = r"Option \d+[^:]*:"
QUOTE_MARKER_PATTERN = r"^>\s*"
KEY_POINTS_TAIL_PATTERN = r"Key (Considerations|improvements).*$"
LEAD_IN_PATTERN = r"^Here (are|is)[^.]*\.\s*"
PARAGRAPH_SPLIT_PATTERN = r"\n\n+"
UNBALANCED_PAREN_PATTERN = r"\([^)]*$"
WORD_SEPARATOR_PATTERN = r"[-_]"
CAMEL_BOUNDARY_PATTERN = r"([a-z])([A-Z])"
SURROUNDING_QUOTES_PATTERN = r"^[\"']|[\"']$"

MIN_PARAGRAPH_CHARS = 20
NAME_README_EXCERPT_CHARS = 300
DESCRIPTION_README_EXCERPT_CHARS = 400
NAME_MAX_TOKENS = 30
DESCRIPTION_MAX_TOKENS = 150
SUMMARY_MAX_TOKENS = 200
SUMMARY_TOP_LANGUAGES = 3
PROMPT_TOP_LANGUAGES = 5
PROMPT_TOP_PROJECTS = 3
TOPIC_TECHNOLOGY_LIMIT = 3
TOP_PROJECT_MIN_STARS = 10
SUMMARY_MIN_TOTAL_STARS = 50
FALLBACK_SUMMARY_MIN_STARS = 10
DEFAULT_MAX_CV_PROJECTS = 6
DEFAULT_CV_TITLE = "Software Developer"
OTHER_SKILL_CATEGORY = "Other"

SUMMARY_STYLES = {
    "professional": "Write a balanced, professional summary suitable for any employer.",
    "technical": "Focus heavily on technical skills and technologies. Use technical terminology.",
    "concise": "Be extremely brief - maximum 2 sentences. Focus on core competencies only.",
}
DEFAULT_SUMMARY_STYLE = "professional"

NAME_SYSTEM_PROMPT = (
    "You are a CV writer. Output ONLY a project name. No quotes. No explanation. "
    "No options. Maximum 6 words."
)
DESCRIPTION_SYSTEM_PROMPT = (
    "You are a CV writer. Write exactly ONE concise project description (2-3 sentences max).\n"
    "NO options. NO explanations. NO \"Option 1/2/3\". NO markdown. NO asterisks.\n"
    "Just output the description directly."
)
SUMMARY_SYSTEM_PROMPT = (
    "You are a professional CV writer. Write exactly ONE summary paragraph (3-4 sentences).\n"
    "CRITICAL RULES:\n"
    "- Output ONLY the summary text\n"
    "- NO \"Option 1\", \"Option 2\", etc.\n"
    "- NO bullet points\n"
    "- NO markdown formatting\n"
    "- NO explanations or alternatives\n"
    "- NO asterisks or bold text\n"
    "- Start directly with the summary"
)

# This function does strip generator chatter from a response.
# It keeps the first substantial paragraph of plain text.
def clean_response(text: Optional[str]) -> str:
    if not text:
        return ""

    cleaned = re.sub(OPTION_LABEL_PATTERN, "", text, flags=re.IGNORECASE)
    cleaned = re.sub(EMPHASIS_PATTERN, "", cleaned)
    cleaned = re.sub(QUOTE_MARKER_PATTERN, "", cleaned, flags=re.MULTILINE)
    cleaned = re.sub(KEY_POINTS_TAIL_PATTERN, "", cleaned, flags=re.IGNORECASE | re.DOTALL)
    cleaned = re.sub(LEAD_IN_PATTERN, "", cleaned, flags=re.IGNORECASE)

    paragraphs = [p for p in re.split(PARAGRAPH_SPLIT_PATTERN, cleaned) if len(p.strip()) > MIN_PARAGRAPH_CHARS]
    if paragraphs:
        cleaned = paragraphs[0]

    cleaned = re.sub(UNBALANCED_PAREN_PATTERN, "", cleaned)
    return cleaned.strip()

def format_repo_name(name: str) -> str:
    spaced = re.sub(WORD_SEPARATOR_PATTERN, " ", name or "")
    spaced = re.sub(CAMEL_BOUNDARY_PATTERN, r"\1 \2", spaced)
    return " ".join(word[:1].upper() + word[1:].lower() for word in spaced.split())

def _generator_ready(generator) -> bool:
    return generator is not None and getattr(generator, "enabled", False)

# This function does produce a CV title for a repository.
# It falls back to the formatted repository name on any failure.
def generate_project_name(repo: Repository, readme: Optional[str] = None, generator=None) -> str:
    fallback = format_repo_name(repo.name)
    if not _generator_ready(generator):
        return fallback

    prompt_lines = [
        "Convert this GitHub repo name to a professional CV project title.",
        "",
        f"Repo: {repo.name}",
        f"Description: {repo.description or 'None'}",
        f"Language: {repo.language or 'Unknown'}",
    ]
    if readme:
        prompt_lines.append(f"README: {readme[:NAME_README_EXCERPT_CHARS]}")
    prompt_lines.extend(["", 'Output ONLY the title. Example: "Real-Time Analytics Dashboard"'])

    try:
        raw = generator.generate("\n".join(prompt_lines), NAME_SYSTEM_PROMPT, NAME_MAX_TOKENS)
    except TextGenerationError as exc:
        logger.warning("Failed to generate project name for %s: %s", repo.name, exc)
        return fallback

    first_line = (raw or "").replace("**", "").strip().split("\n")[0].strip()
    first_line = re.sub(SURROUNDING_QUOTES_PATTERN, "", first_line).strip()
    return first_line or fallback

def generate_project_description(
    repo: Repository,
    readme: Optional[str] = None,
    generator=None,
    display_name: Optional[str] = None,
) -> str:
    fallback = repo.description or ""
    if not _generator_ready(generator):
        return fallback

    tech = repo.language or ""
    if repo.topics:
        tech = ", ".join([tech, *repo.topics[:TOPIC_TECHNOLOGY_LIMIT]]) if tech else ", ".join(repo.topics[:TOPIC_TECHNOLOGY_LIMIT])

    prompt_lines = [
        "Write a CV project description.",
        "",
        f"Project: {display_name or repo.name}",
        f"Tech: {tech}",
        f"Description: {repo.description or 'No description'}",
    ]
    if readme:
        prompt_lines.append(f"README excerpt: {readme[:DESCRIPTION_README_EXCERPT_CHARS]}")
    prompt_lines.extend([
        "",
        "Write 2-3 sentences describing what this project does. Be specific but concise. "
        "Output ONLY the description.",
    ])

    try:
        raw = generator.generate("\n".join(prompt_lines), DESCRIPTION_SYSTEM_PROMPT, DESCRIPTION_MAX_TOKENS)
    except TextGenerationError as exc:
        logger.warning("Failed to generate description for %s: %s", repo.name, exc)
        return fallback
    return clean_response(raw) or fallback

def _top_language_names(analysis: Analysis, limit: int) -> List[str]:
    if analysis.languages is None:
        return []
    return [stat.name for stat in analysis.languages.languages[:limit]]

# This function does build the deterministic profile summary.
# It combines bio, top languages, a standout project, and total stars.
def generate_summary(analysis: Analysis) -> str:
    profile = analysis.profile
    statistics = analysis.statistics
    years_active = statistics.years_active if statistics else 1

    parts = []
    if profile is not None and profile.bio:
        parts.append(profile.bio)
    else:
        parts.append(f"Software developer with {years_active}+ years of experience on GitHub.")

    top_languages = _top_language_names(analysis, SUMMARY_TOP_LANGUAGES)
    if top_languages:
        parts.append(f"Specialized in {', '.join(top_languages)}.")

    if analysis.ranked_projects:
        top_repo = analysis.ranked_projects[0].repository
        if top_repo.stars > TOP_PROJECT_MIN_STARS:
            parts.append(f"Creator of {top_repo.name}, a project with {top_repo.stars} stars.")

    if statistics is not None and statistics.total_stars > SUMMARY_MIN_TOTAL_STARS:
        parts.append(
            f"Open source contributions have received {statistics.total_stars} stars "
            f"across {statistics.original_repos} repositories."
        )

    return " ".join(parts)

def _fallback_summary(analysis: Analysis) -> str:
    statistics = analysis.statistics
    years_active = statistics.years_active if statistics else 1
    summary = f"Software developer with {years_active}+ years of experience on GitHub."

    top_languages = _top_language_names(analysis, SUMMARY_TOP_LANGUAGES)
    if top_languages:
        summary += f" Specialized in {', '.join(top_languages)}."
    if statistics is not None and statistics.total_stars > FALLBACK_SUMMARY_MIN_STARS:
        summary += f" Open source contributions have received {statistics.total_stars} stars."
    return summary

# This function does phrase the profile summary through a generator.
# Any generator failure or empty reply yields the fallback summary.
def generate_professional_summary(analysis: Analysis, generator=None, style: str = DEFAULT_SUMMARY_STYLE) -> str:
    if not _generator_ready(generator) or analysis.profile is None:
        return _fallback_summary(analysis)

    profile = analysis.profile
    statistics = analysis.statistics
    top_languages = ", ".join(_top_language_names(analysis, PROMPT_TOP_LANGUAGES)) or "various languages"
    top_projects = ", ".join(project.name for project in analysis.ranked_projects[:PROMPT_TOP_PROJECTS])
    style_guide = SUMMARY_STYLES.get(style, SUMMARY_STYLES[DEFAULT_SUMMARY_STYLE])

    prompt = "\n".join([
        "Write a CV professional summary for this developer:",
        "",
        f"Name: {profile.name or profile.login}",
        f"Bio: {profile.bio or 'Not provided'}",
        f"GitHub Experience: {statistics.years_active if statistics else 1} years",
        f"Stars Earned: {statistics.total_stars if statistics else 0}",
        f"Original Repos: {statistics.original_repos if statistics else 0}",
        f"Top Languages: {top_languages}",
        f"Key Projects: {top_projects}",
        f"Location: {profile.location or 'Not specified'}",
        "",
        f"Style: {style_guide}",
        "",
        "Output ONLY the summary paragraph. No introduction, no options, no explanation.",
    ])

    try:
        raw = generator.generate(prompt, SUMMARY_SYSTEM_PROMPT, SUMMARY_MAX_TOKENS)
    except TextGenerationError as exc:
        logger.warning("Failed to generate summary: %s", exc)
        return _fallback_summary(analysis)
    return clean_response(raw) or _fallback_summary(analysis)

def group_skills_by_category(skills: List[Skill]) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for skill in skills:
        grouped.setdefault(skill.category or OTHER_SKILL_CATEGORY, []).append(skill.name)
    return grouped

def _personal_info(analysis: Analysis) -> Dict[str, Optional[str]]:
    profile = analysis.profile
    if profile is None:
        return {"name": analysis.username, "title": DEFAULT_CV_TITLE}
    return {
        "name": profile.name or profile.login,
        "title": DEFAULT_CV_TITLE,
        "email": profile.email,
        "location": profile.location,
        "website": profile.blog,
        "github": profile.profile_url,
        "bio": profile.bio,
    }

def _project_technologies(repo: Repository) -> List[str]:
    return [item for item in [repo.language, *repo.topics[:TOPIC_TECHNOLOGY_LIMIT]] if item]

def _project_highlights(repo: Repository) -> List[str]:
    highlights = []
    if repo.stars > 0:
        highlights.append(f"{repo.stars} GitHub stars")
    if repo.forks > 0:
        highlights.append(f"{repo.forks} forks")
    return highlights

def _build_cv_project(project: ScoredRepository, name: str, description: str) -> CVProject:
    repo = project.repository
    return CVProject(
        name=name,
        repo_name=repo.name,
        description=description,
        url=repo.url,
        technologies=_project_technologies(repo),
        highlights=_project_highlights(repo),
        start_date=repo.created_at,
        end_date=repo.updated_at,
    )

# This function does convert an analysis into CV content without a generator.
# Every ranked project becomes one CV project entry.
def analysis_to_cv(analysis: Analysis) -> CVContent:
    projects = [
        _build_cv_project(
            project,
            name=format_repo_name(project.name),
            description=project.extracted_description or project.repository.description or "",
        )
        for project in analysis.ranked_projects
    ]
    return CVContent(
        personal_info=_personal_info(analysis),
        summary=generate_summary(analysis),
        skills=group_skills_by_category(analysis.skills),
        projects=projects,
        statistics=analysis.statistics,
    )

# This function does build CV content with generated wording.
# Ranking is taken from the analysis as-is; only phrasing changes.
def generate_cv_content(
    analysis: Analysis,
    generator=None,
    style: str = DEFAULT_SUMMARY_STYLE,
    max_projects: int = DEFAULT_MAX_CV_PROJECTS,
) -> CVContent:
    projects = []
    for project in analysis.ranked_projects[:max_projects]:
        readme = analysis.readmes.get(project.name)
        display_name = generate_project_name(project.repository, readme, generator)
        description = generate_project_description(project.repository, readme, generator, display_name)
        projects.append(_build_cv_project(project, name=display_name, description=description))

    return CVContent(
        personal_info=_personal_info(analysis),
        summary=generate_professional_summary(analysis, generator, style),
        skills=group_skills_by_category(analysis.skills),
        projects=projects,
        statistics=analysis.statistics,
    )
