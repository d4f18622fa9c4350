#------------------------------------------------------------
#                     scoring_service.py
#        Filters, scores, and ranks repositories for
#                   inclusion in a CV.

import math
import re
from datetime import datetime
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from ..models import (
    ExclusionPatterns,
    Repository,
    RepositoryScore,
    ScoreBreakdown,
    ScoredRepository,
)
from ..utils import days_between, round_half_up, utc_now
from .readme_service import analyze_readme_quality, extract_description_from_readme

# Weights sum to 1.0 so the total stays within 0-100.
SCORING_WEIGHTS = {
    "stars": 0.20,
    "forks": 0.10,
    "recent_activity": 0.20,
    "code_size": 0.10,
    "has_readme": 0.10,
    "readme_quality": 0.10,
    "has_language": 0.05,
    "topic_count": 0.05,
    "is_original": 0.10,
}

STARS_LOG_FACTOR = 33
FORKS_LOG_FACTOR = 40
MAX_SUBSCORE = 100
POINTS_PER_TOPIC = 20

# (max days since update, score); checked in order.
RECENCY_BANDS = (
    (7, 100),
    (30, 90),
    (90, 70),
    (180, 50),
    (365, 30),
    (730, 15),
)
STALE_RECENCY_SCORE = 5

# (exclusive upper bound in KB, score); checked in order.
CODE_SIZE_BANDS = (
    (10, 5),
    (50, 20),
    (200, 40),
    (1000, 60),
    (5000, 80),
    (50000, 100),
)
HUGE_CODE_SIZE_SCORE = 90

FORK_MIN_STARS = 5
ARCHIVED_MIN_STARS = 10
MIN_REPO_SIZE_KB = 5

PROJECT_CATEGORY_PATTERNS = {
    "Web Applications": ("next.js", "react", "vue", "angular", "svelte", "web", "frontend", "dashboard", "website", "app"),
    "Libraries & Packages": ("lib", "library", "package", "module", "sdk", "framework", "plugin"),
    "CLI Tools": ("cli", "command", "terminal", "console", "tool"),
    "APIs & Services": ("api", "server", "backend", "service", "rest", "graphql", "microservice"),
    "Data & ML": ("data", "ml", "machine-learning", "ai", "analytics", "neural", "model", "tensorflow", "pytorch"),
    "Mobile Apps": ("mobile", "ios", "android", "react-native", "flutter", "app"),
}
OTHER_PROJECT_CATEGORY = "Other"

def score_stars(stars: int) -> float:
    if stars <= 0:
        return 0
    return min(MAX_SUBSCORE, math.log10(stars + 1) * STARS_LOG_FACTOR)

def score_forks(forks: int) -> float:
    if forks <= 0:
        return 0
    return min(MAX_SUBSCORE, math.log10(forks + 1) * FORKS_LOG_FACTOR)

# This function does map days since the last update to a recency score.
# A repository with no update timestamp falls into the stale band.
def score_recency(updated_at: Optional[datetime], now: datetime) -> int:
    if updated_at is None:
        return STALE_RECENCY_SCORE
    days_since_update = days_between(updated_at, now)
    for max_days, score in RECENCY_BANDS:
        if days_since_update <= max_days:
            return score
    return STALE_RECENCY_SCORE

def score_code_size(size_kb: int) -> int:
    for upper_bound, score in CODE_SIZE_BANDS:
        if size_kb < upper_bound:
            return score
    return HUGE_CODE_SIZE_SCORE

# This function does calculate the weighted score of one repository.
# It is pure given the repository, README text, and reference time.
def calculate_repository_score(
    repo: Repository,
    readme_content: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RepositoryScore:
    now = now or utc_now()
    readme_analysis = analyze_readme_quality(readme_content)

    breakdown = ScoreBreakdown(
        stars=score_stars(repo.stars),
        forks=score_forks(repo.forks),
        recent_activity=score_recency(repo.updated_at, now),
        code_size=score_code_size(repo.size),
        has_readme=MAX_SUBSCORE if readme_content else 0,
        readme_quality=readme_analysis.score,
        has_language=MAX_SUBSCORE if repo.language else 0,
        topic_count=min(MAX_SUBSCORE, len(repo.topics) * POINTS_PER_TOPIC),
        is_original=0 if repo.is_fork else MAX_SUBSCORE,
    )

    subscores = breakdown.as_dict()
    total = sum(subscores[key] * weight for key, weight in SCORING_WEIGHTS.items())

    return RepositoryScore(
        total_score=round_half_up(total),
        breakdown=breakdown,
        readme_analysis=readme_analysis,
    )

@lru_cache(maxsize=32)
def _compile_patterns(patterns: Tuple[str, ...]) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)

def _matches_any(name: str, patterns: Tuple[str, ...]) -> bool:
    return any(pattern.search(name) for pattern in _compile_patterns(tuple(patterns)))

# This function does decide whether a repository is left out of ranking.
# Name-pattern exclusion for config repos ignores star count.
def should_exclude_repository(repo: Repository, patterns: Optional[ExclusionPatterns] = None) -> bool:
    patterns = patterns or ExclusionPatterns()

    if repo.is_fork and repo.stars < FORK_MIN_STARS:
        return True
    if repo.is_archived and repo.stars < ARCHIVED_MIN_STARS:
        return True
    if repo.size < MIN_REPO_SIZE_KB:
        return True
    if not repo.language:
        return True
    if _matches_any(repo.name, patterns.config):
        return True
    if repo.stars == 0 and _matches_any(repo.name, patterns.learning):
        return True
    return False

# This function does filter, score, and rank repositories.
# The sort is stable so equal scores keep their input order.
def rank_repositories(
    repos: Iterable[Repository],
    readme_map: Optional[Mapping[str, str]] = None,
    max_results: int = 10,
    min_score: int = 20,
    include_filtered: bool = False,
    patterns: Optional[ExclusionPatterns] = None,
    now: Optional[datetime] = None,
) -> List[ScoredRepository]:
    readme_map = readme_map or {}
    now = now or utc_now()

    scored: List[ScoredRepository] = []
    for repo in repos:
        if not include_filtered and should_exclude_repository(repo, patterns):
            continue
        readme_content = readme_map.get(repo.name)
        scoring = calculate_repository_score(repo, readme_content, now)
        if scoring.total_score < min_score:
            continue
        scored.append(
            ScoredRepository(
                repository=repo,
                scoring=scoring,
                extracted_description=extract_description_from_readme(readme_content) or repo.description,
            )
        )

    scored.sort(key=lambda item: item.total_score, reverse=True)
    return scored[:max(0, max_results)]

# This function does group ranked projects by inferred purpose.
# The first category whose keyword appears in name, description, or topics wins.
def categorize_projects(projects: Iterable[ScoredRepository]) -> Dict[str, List[ScoredRepository]]:
    categories: Dict[str, List[ScoredRepository]] = {name: [] for name in PROJECT_CATEGORY_PATTERNS}
    categories[OTHER_PROJECT_CATEGORY] = []

    for project in projects:
        repo = project.repository
        text = " ".join([repo.name, repo.description or "", *repo.topics]).lower()
        category = next(
            (name for name, keywords in PROJECT_CATEGORY_PATTERNS.items() if any(k in text for k in keywords)),
            OTHER_PROJECT_CATEGORY,
        )
        categories[category].append(project)

    return {name: items for name, items in categories.items() if items}
