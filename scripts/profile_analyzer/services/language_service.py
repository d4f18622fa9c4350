#------------------------------------------------------------
#                    language_service.py
#      Aggregates language bytes across repositories and
#             derives proficiency-based skills.

from typing import Dict, List, Mapping
from ..models import LanguageStat, LanguageSummary, Skill
from ..utils import round_half_up

LANGUAGE_CATEGORIES = {
    "Systems Programming": ("C", "C++", "Rust", "Zig", "Assembly"),
    "Backend Development": ("Java", "Go", "Python", "Ruby", "PHP", "Scala", "Kotlin", "C#", "Elixir", "Erlang"),
    "Frontend Development": ("JavaScript", "TypeScript", "HTML", "CSS", "SCSS", "Sass", "Less"),
    "Mobile Development": ("Swift", "Kotlin", "Objective-C", "Dart"),
    "Data Science & ML": ("Python", "R", "Julia", "MATLAB"),
    "DevOps & Scripting": ("Shell", "Bash", "PowerShell", "Python", "Perl", "Lua", "HCL"),
    "Functional Programming": ("Haskell", "OCaml", "F#", "Clojure", "Scala", "Elixir", "Elm"),
    "Database": ("SQL", "PLSQL", "PLpgSQL"),
}
DEFAULT_LANGUAGE_CATEGORY = "Programming Languages"
UNCATEGORIZED_LANGUAGE_GROUP = "Other"

# (minimum bytes, tier); checked in order.
PROFICIENCY_THRESHOLDS = (
    (500_000, "Expert"),
    (100_000, "Advanced"),
    (25_000, "Intermediate"),
    (5_000, "Beginner"),
)
BASELINE_PROFICIENCY = "Familiar"

LANGUAGE_SKILL_SOURCE = "language-analysis"

def calculate_proficiency(total_bytes: int) -> str:
    for minimum, tier in PROFICIENCY_THRESHOLDS:
        if total_bytes >= minimum:
            return tier
    return BASELINE_PROFICIENCY

def get_category_for_language(language: str) -> str:
    for category, languages in LANGUAGE_CATEGORIES.items():
        if language in languages:
            return category
    return DEFAULT_LANGUAGE_CATEGORY

# This function does aggregate language statistics across repositories.
# Zero-byte entries are dropped before counting, so they never add a
# repository or a language to the totals.
def aggregate_language_stats(language_map: Mapping[str, Mapping[str, int]]) -> LanguageSummary:
    totals: Dict[str, LanguageStat] = {}
    by_repo: Dict[str, Dict[str, int]] = {}

    for repo_name, languages in language_map.items():
        kept = {lang: int(count) for lang, count in (languages or {}).items() if lang and int(count or 0) > 0}
        by_repo[repo_name] = kept
        for language, byte_count in kept.items():
            stat = totals.setdefault(language, LanguageStat(name=language))
            stat.total_bytes += byte_count
            stat.repo_count += 1
            stat.repos.append(repo_name)

    total_bytes = sum(stat.total_bytes for stat in totals.values())
    for stat in totals.values():
        stat.percentage = (stat.total_bytes / total_bytes) * 100 if total_bytes > 0 else 0.0
        stat.proficiency = calculate_proficiency(stat.total_bytes)

    ranked = sorted(totals.values(), key=lambda stat: stat.total_bytes, reverse=True)
    return LanguageSummary(
        languages=ranked,
        total_bytes=total_bytes,
        by_repo=by_repo,
        primary_language=ranked[0].name if ranked else None,
        language_count=len(ranked),
    )

def group_languages_by_category(languages: List[LanguageStat]) -> Dict[str, List[LanguageStat]]:
    grouped: Dict[str, List[LanguageStat]] = {}
    uncategorized: List[LanguageStat] = []
    for stat in languages:
        category = next((name for name, members in LANGUAGE_CATEGORIES.items() if stat.name in members), None)
        if category is None:
            uncategorized.append(stat)
        else:
            grouped.setdefault(category, []).append(stat)
    if uncategorized:
        grouped[UNCATEGORIZED_LANGUAGE_GROUP] = uncategorized
    return grouped

# This function does turn language statistics into CV skill entries.
# Languages under the minimum share of total bytes are left out.
def generate_skills_from_languages(languages: List[LanguageStat], min_percentage: float = 2) -> List[Skill]:
    return [
        Skill(
            name=stat.name,
            category=get_category_for_language(stat.name),
            level=stat.proficiency,
            source=LANGUAGE_SKILL_SOURCE,
            percentage=round_half_up(stat.percentage),
        )
        for stat in languages
        if stat.percentage >= min_percentage
    ]

def format_bytes(byte_count: int) -> str:
    if byte_count < 1024:
        return f"{byte_count} B"
    if byte_count < 1024 * 1024:
        return f"{byte_count / 1024:.1f} KB"
    return f"{byte_count / (1024 * 1024):.1f} MB"
