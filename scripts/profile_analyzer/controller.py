#------------------------------------------------------------
#                        controller.py
#        Coordinates the profile analysis pipeline and
#                 the command-line entry point.

import argparse
import concurrent.futures
import dataclasses
import json
import logging
import os
import sys
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence
from .config import (
    ENV_GITHUB_TOKEN,
    MANIFEST_FILES,
    PROGRESS_MESSAGES,
    load_exclusion_patterns,
    resolve_github_username,
)
from .errors import DegradedFetchError, QuotaExhausted, describe_error
from .logging_config import setup_logging
from .models import (
    Analysis,
    AnalysisOptions,
    AnalysisStatus,
    ExclusionPatterns,
    LanguageSummary,
    ProgressCallback,
    Repository,
    Skill,
    Statistics,
    TechnologyRecord,
)
from .services.github_service import GitHubService
from .services.language_service import aggregate_language_stats, generate_skills_from_languages
from .services.llm_service import OpenRouterClient
from .services.scoring_service import categorize_projects, rank_repositories
from .services.summary_service import analysis_to_cv, generate_cv_content
from .services.tech_stack_service import analyze_manifest, categorize_technologies
from .utils import round_half_up, utc_now, whole_years_between
from .views.markdown_view import render_report

logger = logging.getLogger(__name__)

TECH_SKILL_LEVEL = "Proficient"
TECH_SKILL_SOURCE = "tech-detection"
ACTIVE_WINDOW_DAYS = 365
MISSING_README_TEMPLATE = "No README found for {repo_name}"
PROGRESS_LINE_TEMPLATE = "[{status}] {message}"
MISSING_USERNAME_MESSAGE = "A GitHub username is required (argument or GITHUB_USERNAME)."
NO_GITHUB_TOKEN_MESSAGE = "No GITHUB_TOKEN set; using unauthenticated requests with a lower rate limit."

def _notify(on_progress: Optional[ProgressCallback], status: AnalysisStatus, message: Optional[str] = None) -> None:
    if on_progress is None:
        return
    on_progress(status, message if message is not None else PROGRESS_MESSAGES.get(status.value, ""))

def _owner_for(repo: Repository, username: str) -> str:
    return repo.owner or username

# This function does fetch language maps in fixed-size concurrent batches.
# A failed fetch yields an empty map and one error entry for that repository.
def _batch_fetch_languages(
    repos: Sequence[Repository],
    username: str,
    data_source,
    batch_size: int,
    errors: List[str],
) -> Dict[str, Dict[str, int]]:
    results: Dict[str, Dict[str, int]] = {}
    batch_size = max(1, batch_size)

    for start in range(0, len(repos), batch_size):
        batch = repos[start:start + batch_size]
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(batch)) as executor:
            future_to_repo = {
                executor.submit(data_source.get_languages, _owner_for(repo, username), repo.name): repo
                for repo in batch
            }
            for future in concurrent.futures.as_completed(future_to_repo):
                repo = future_to_repo[future]
                try:
                    results[repo.name] = dict(future.result() or {})
                except Exception as exc:
                    failure = DegradedFetchError("languages", repo.name, exc)
                    logger.warning(str(failure))
                    errors.append(str(failure))
                    results[repo.name] = {}

    # Keep input order regardless of completion order.
    return {repo.name: results.get(repo.name, {}) for repo in repos}

# This function does fetch READMEs for significant repositories.
# It stops early once the remaining quota drops below the low-water mark.
def _fetch_readmes(
    repos: Sequence[Repository],
    username: str,
    data_source,
    low_water: int,
    errors: List[str],
) -> Dict[str, str]:
    readmes: Dict[str, str] = {}
    for index, repo in enumerate(repos):
        try:
            readme = data_source.get_readme(_owner_for(repo, username), repo.name)
        except Exception as exc:
            failure = DegradedFetchError("README", repo.name, exc)
            logger.warning(str(failure))
            errors.append(str(failure))
        else:
            if readme:
                readmes[repo.name] = readme
            else:
                errors.append(MISSING_README_TEMPLATE.format(repo_name=repo.name))

        if index == len(repos) - 1:
            break
        remaining = data_source.get_remaining_quota()
        if remaining < low_water:
            stop = QuotaExhausted(remaining, low_water, skipped=len(repos) - index - 1)
            logger.warning(str(stop))
            errors.append(str(stop))
            break
    return readmes

# This function does detect technologies from known manifest files.
# Missing files are skipped silently; fetch failures are recorded.
def _detect_tech_stack(
    repos: Sequence[Repository],
    username: str,
    data_source,
    errors: List[str],
) -> Dict[str, List[TechnologyRecord]]:
    records: List[TechnologyRecord] = []
    for repo in repos:
        for filename in MANIFEST_FILES:
            try:
                content = data_source.get_file(_owner_for(repo, username), repo.name, filename)
            except Exception as exc:
                failure = DegradedFetchError(filename, repo.name, exc)
                logger.warning(str(failure))
                errors.append(str(failure))
                continue
            if not content:
                logger.debug("%s has no %s", repo.name, filename)
                continue
            detected = analyze_manifest(filename, content)
            records.extend(dataclasses.replace(record, repo=repo.name) for record in detected)
    return categorize_technologies(records)

# This function does merge language and technology skills.
# Names are compared case-insensitively and the first entry wins.
def merge_skills(language_skills: List[Skill], tech_stack: Dict[str, List[TechnologyRecord]]) -> List[Skill]:
    tech_skills = [
        Skill(name=record.name, category=category, level=TECH_SKILL_LEVEL, source=TECH_SKILL_SOURCE)
        for category, records in tech_stack.items()
        for record in records
    ]

    merged: List[Skill] = []
    seen = set()
    for skill in [*language_skills, *tech_skills]:
        key = skill.name.lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(skill)
    return merged

def calculate_statistics(
    analysis: Analysis,
    languages: LanguageSummary,
    tech_stack: Dict[str, List[TechnologyRecord]],
    now: datetime,
) -> Statistics:
    repos = analysis.repositories
    profile = analysis.profile
    original_repos = [repo for repo in repos if not repo.is_fork]
    total_stars = sum(repo.stars for repo in repos)

    active = sum(
        1 for repo in repos
        if repo.updated_at is not None and now - repo.updated_at < timedelta(days=ACTIVE_WINDOW_DAYS)
    )
    years_active = 1
    if profile is not None and profile.created_at is not None:
        years_active = max(1, whole_years_between(profile.created_at, now))

    average = round_half_up(total_stars / len(original_repos), 1) if original_repos else 0

    return Statistics(
        total_repos=len(repos),
        original_repos=len(original_repos),
        forked_repos=len(repos) - len(original_repos),
        total_stars=total_stars,
        total_forks=sum(repo.forks for repo in repos),
        followers=profile.followers if profile else 0,
        following=profile.following if profile else 0,
        active_repos_last_year=active,
        years_active=years_active,
        average_stars_per_repo=average,
        top_language=languages.primary_language,
        language_count=languages.language_count,
        tech_count=sum(len(records) for records in tech_stack.values()),
    )

# This function does run the full analysis for one GitHub user.
# Profile and repository failures are fatal; later steps degrade.
def analyze_profile(
    username: str,
    data_source,
    on_progress: Optional[ProgressCallback] = None,
    options: Optional[AnalysisOptions] = None,
    now: Optional[datetime] = None,
) -> Analysis:
    options = options or AnalysisOptions()
    now = now or utc_now()
    analysis = Analysis(username=username, timestamp=now)

    try:
        _notify(on_progress, AnalysisStatus.FETCHING_PROFILE)
        analysis.profile = data_source.get_profile(username)

        _notify(on_progress, AnalysisStatus.FETCHING_REPOS)
        analysis.repositories = list(data_source.list_repositories(username))
    except Exception as exc:
        analysis.errors.append(str(exc))
        _notify(on_progress, AnalysisStatus.ERROR, str(exc))
        logger.error("Analysis of %s failed: %s", username, exc)
        raise

    logger.info("Fetched %d repositories for %s", len(analysis.repositories), username)
    original_repos = [repo for repo in analysis.repositories if not repo.is_fork]

    _notify(on_progress, AnalysisStatus.ANALYZING_LANGUAGES)
    language_map = _batch_fetch_languages(
        original_repos[:options.language_repo_limit],
        username,
        data_source,
        options.language_batch_size,
        analysis.errors,
    )
    analysis.languages = aggregate_language_stats(language_map)

    _notify(on_progress, AnalysisStatus.FETCHING_READMES)
    significant_repos = [repo for repo in original_repos if repo.size > options.significant_size_kb]
    significant_repos = significant_repos[:options.readme_repo_limit]
    analysis.readmes = _fetch_readmes(
        significant_repos, username, data_source, options.quota_low_water, analysis.errors
    )
    logger.info("Fetched %d READMEs", len(analysis.readmes))

    _notify(on_progress, AnalysisStatus.DETECTING_TECH_STACK)
    analysis.tech_stack = _detect_tech_stack(
        significant_repos[:options.manifest_repo_limit], username, data_source, analysis.errors
    )

    _notify(on_progress, AnalysisStatus.RANKING_PROJECTS)
    analysis.ranked_projects = rank_repositories(
        analysis.repositories,
        analysis.readmes,
        max_results=options.max_results,
        min_score=options.min_score,
        patterns=options.exclusion_patterns,
        now=now,
    )
    analysis.categorized_projects = categorize_projects(analysis.ranked_projects)

    language_skills = generate_skills_from_languages(analysis.languages.languages, options.min_skill_percentage)
    analysis.skills = merge_skills(language_skills, analysis.tech_stack)
    analysis.statistics = calculate_statistics(analysis, analysis.languages, analysis.tech_stack, now)

    _notify(on_progress, AnalysisStatus.COMPLETE)
    logger.info(
        "Analysis of %s complete: %d ranked projects, %d non-fatal errors",
        username,
        len(analysis.ranked_projects),
        len(analysis.errors),
    )
    return analysis

def _print_progress(status: AnalysisStatus, message: str) -> None:
    print(PROGRESS_LINE_TEMPLATE.format(status=status.value, message=message), file=sys.stderr)

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Analyze a GitHub profile and rank its projects for a CV.")
    parser.add_argument("username", nargs="?", default=None, help="GitHub username (defaults to GITHUB_USERNAME)")
    parser.add_argument("--max-results", type=int, default=AnalysisOptions.max_results)
    parser.add_argument("--min-score", type=int, default=AnalysisOptions.min_score)
    parser.add_argument("--json", action="store_true", help="print the analysis as JSON")
    parser.add_argument("--use-llm", action="store_true", help="phrase CV text through OpenRouter")
    return parser

# This function does execute the command-line workflow end-to-end.
# It returns the process exit status.
def run_analysis(argv: Optional[Sequence[str]] = None, data_source=None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging()

    username = args.username or resolve_github_username()
    if not username:
        print(MISSING_USERNAME_MESSAGE, file=sys.stderr)
        return 2

    if data_source is None:
        token = os.environ.get(ENV_GITHUB_TOKEN, "")
        if not token:
            print(NO_GITHUB_TOKEN_MESSAGE, file=sys.stderr)
        data_source = GitHubService(token=token)

    config_patterns, learning_patterns = load_exclusion_patterns()
    options = AnalysisOptions(
        max_results=args.max_results,
        min_score=args.min_score,
        exclusion_patterns=ExclusionPatterns(config=config_patterns, learning=learning_patterns),
    )

    try:
        analysis = analyze_profile(username, data_source, on_progress=_print_progress, options=options)
    except Exception as exc:
        print(describe_error(exc), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(dataclasses.asdict(analysis), indent=2, default=str))
        return 0

    if args.use_llm:
        cv = generate_cv_content(analysis, OpenRouterClient.from_env())
    else:
        cv = analysis_to_cv(analysis)
    print(render_report(analysis, cv))
    return 0
