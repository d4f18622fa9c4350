#------------------------------------------------------------
#                          models.py
#     Defines dataclasses used by the analysis pipeline.

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from .config import (
    DEFAULT_CONFIG_REPO_PATTERNS,
    DEFAULT_LANGUAGE_BATCH_SIZE,
    DEFAULT_LANGUAGE_REPO_LIMIT,
    DEFAULT_LEARNING_REPO_PATTERNS,
    DEFAULT_MANIFEST_REPO_LIMIT,
    DEFAULT_MAX_RESULTS,
    DEFAULT_MIN_SCORE,
    DEFAULT_MIN_SKILL_PERCENTAGE,
    DEFAULT_QUOTA_LOW_WATER,
    DEFAULT_README_REPO_LIMIT,
    DEFAULT_SIGNIFICANT_SIZE_KB,
)
from .utils import parse_timestamp, utc_now

class AnalysisStatus(str, Enum):
    IDLE = "idle"
    FETCHING_PROFILE = "fetching_profile"
    FETCHING_REPOS = "fetching_repos"
    ANALYZING_LANGUAGES = "analyzing_languages"
    FETCHING_READMES = "fetching_readmes"
    DETECTING_TECH_STACK = "detecting_tech_stack"
    RANKING_PROJECTS = "ranking_projects"
    COMPLETE = "complete"
    ERROR = "error"

ProgressCallback = Callable[[AnalysisStatus, str], None]

@dataclass(frozen=True)
class Profile:
    login: str
    name: str = ""
    bio: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    blog: Optional[str] = None
    avatar_url: Optional[str] = None
    profile_url: Optional[str] = None
    public_repo_count: int = 0
    followers: int = 0
    following: int = 0
    created_at: Optional[datetime] = None
    hireable: Optional[bool] = None

    # This function does map a raw API user record.
    # The display name falls back to the login.
    @classmethod
    def from_api(cls, data: dict) -> "Profile":
        login = data.get("login") or ""
        return cls(
            login=login,
            name=data.get("name") or login,
            bio=data.get("bio"),
            company=data.get("company"),
            location=data.get("location"),
            email=data.get("email"),
            blog=data.get("blog"),
            avatar_url=data.get("avatar_url"),
            profile_url=data.get("html_url"),
            public_repo_count=int(data.get("public_repos") or 0),
            followers=int(data.get("followers") or 0),
            following=int(data.get("following") or 0),
            created_at=parse_timestamp(data.get("created_at")),
            hireable=data.get("hireable"),
        )

@dataclass(frozen=True)
class Repository:
    name: str
    full_name: str = ""
    description: Optional[str] = None
    language: Optional[str] = None
    topics: Tuple[str, ...] = ()
    stars: int = 0
    forks: int = 0
    size: int = 0
    open_issues: int = 0
    watchers: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None
    is_fork: bool = False
    is_archived: bool = False
    url: str = ""
    homepage: Optional[str] = None
    default_branch: Optional[str] = None
    license: Optional[str] = None

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0] if "/" in self.full_name else ""

    # This function does map a raw API repository record.
    # Missing counts default to 0 and topics become a tuple.
    @classmethod
    def from_api(cls, data: dict) -> "Repository":
        license_info = data.get("license") or {}
        return cls(
            name=data.get("name") or "",
            full_name=data.get("full_name") or "",
            description=data.get("description"),
            language=data.get("language"),
            topics=tuple(data.get("topics") or ()),
            stars=int(data.get("stargazers_count") or 0),
            forks=int(data.get("forks_count") or 0),
            size=int(data.get("size") or 0),
            open_issues=int(data.get("open_issues_count") or 0),
            watchers=int(data.get("watchers_count") or 0),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            pushed_at=parse_timestamp(data.get("pushed_at")),
            is_fork=bool(data.get("fork")),
            is_archived=bool(data.get("archived")),
            url=data.get("html_url") or "",
            homepage=data.get("homepage"),
            default_branch=data.get("default_branch"),
            license=license_info.get("spdx_id") if isinstance(license_info, dict) else None,
        )

@dataclass(frozen=True)
class ScoreBreakdown:
    stars: float
    forks: float
    recent_activity: float
    code_size: float
    has_readme: float
    readme_quality: float
    has_language: float
    topic_count: float
    is_original: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "stars": self.stars,
            "forks": self.forks,
            "recent_activity": self.recent_activity,
            "code_size": self.code_size,
            "has_readme": self.has_readme,
            "readme_quality": self.readme_quality,
            "has_language": self.has_language,
            "topic_count": self.topic_count,
            "is_original": self.is_original,
        }

@dataclass(frozen=True)
class ReadmeQuality:
    score: int
    has_readme: bool
    metrics: Dict[str, object] = field(default_factory=dict)

@dataclass(frozen=True)
class RepositoryScore:
    total_score: int
    breakdown: ScoreBreakdown
    readme_analysis: ReadmeQuality

@dataclass(frozen=True)
class ScoredRepository:
    repository: Repository
    scoring: RepositoryScore
    extracted_description: Optional[str] = None

    @property
    def name(self) -> str:
        return self.repository.name

    @property
    def total_score(self) -> int:
        return self.scoring.total_score

@dataclass(frozen=True)
class TechnologyRecord:
    name: str
    category: str
    version: Optional[str] = None
    source: str = ""
    repo: Optional[str] = None

@dataclass
class LanguageStat:
    name: str
    total_bytes: int = 0
    repo_count: int = 0
    repos: List[str] = field(default_factory=list)
    percentage: float = 0.0
    proficiency: str = ""

@dataclass
class LanguageSummary:
    languages: List[LanguageStat]
    total_bytes: int
    by_repo: Dict[str, Dict[str, int]]
    primary_language: Optional[str]
    language_count: int

@dataclass(frozen=True)
class Skill:
    name: str
    category: str
    level: str
    source: str
    percentage: Optional[int] = None

@dataclass
class Statistics:
    total_repos: int = 0
    original_repos: int = 0
    forked_repos: int = 0
    total_stars: int = 0
    total_forks: int = 0
    followers: int = 0
    following: int = 0
    active_repos_last_year: int = 0
    years_active: int = 1
    average_stars_per_repo: float = 0
    top_language: Optional[str] = None
    language_count: int = 0
    tech_count: int = 0

@dataclass(frozen=True)
class ExclusionPatterns:
    config: Tuple[str, ...] = DEFAULT_CONFIG_REPO_PATTERNS
    learning: Tuple[str, ...] = DEFAULT_LEARNING_REPO_PATTERNS

@dataclass
class AnalysisOptions:
    max_results: int = DEFAULT_MAX_RESULTS
    min_score: int = DEFAULT_MIN_SCORE
    language_repo_limit: int = DEFAULT_LANGUAGE_REPO_LIMIT
    language_batch_size: int = DEFAULT_LANGUAGE_BATCH_SIZE
    readme_repo_limit: int = DEFAULT_README_REPO_LIMIT
    manifest_repo_limit: int = DEFAULT_MANIFEST_REPO_LIMIT
    significant_size_kb: int = DEFAULT_SIGNIFICANT_SIZE_KB
    quota_low_water: int = DEFAULT_QUOTA_LOW_WATER
    min_skill_percentage: float = DEFAULT_MIN_SKILL_PERCENTAGE
    exclusion_patterns: ExclusionPatterns = field(default_factory=ExclusionPatterns)

@dataclass
class Analysis:
    username: str
    profile: Optional[Profile] = None
    repositories: List[Repository] = field(default_factory=list)
    ranked_projects: List[ScoredRepository] = field(default_factory=list)
    categorized_projects: Dict[str, List[ScoredRepository]] = field(default_factory=dict)
    languages: Optional[LanguageSummary] = None
    tech_stack: Dict[str, List[TechnologyRecord]] = field(default_factory=dict)
    skills: List[Skill] = field(default_factory=list)
    statistics: Optional[Statistics] = None
    readmes: Dict[str, str] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utc_now)

@dataclass
class CVProject:
    name: str
    repo_name: str
    description: str
    url: str
    technologies: List[str]
    highlights: List[str]
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

@dataclass
class CVContent:
    personal_info: Dict[str, Optional[str]]
    summary: str
    skills: Dict[str, List[str]]
    projects: List[CVProject]
    statistics: Optional[Statistics] = None
