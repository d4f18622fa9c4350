#------------------------------------------------------------
#                          config.py
#   Centralizes environment names, pipeline defaults, and
#          JSON config loading helpers.

import json
import logging
import os
import re
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Environment variable names for configuration
ENV_GITHUB_USERNAME = "GITHUB_USERNAME"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_OPENROUTER_API_KEY = "OPENROUTER_API_KEY"
ENV_LLM_MODEL = "LLM_MODEL"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_LOG_FORMAT = "LOG_FORMAT"
ENV_EXCLUSION_PATTERNS_PATH = "REPO_EXCLUSION_PATTERNS_PATH"

# Default values for the analysis pipeline
DEFAULT_MAX_RESULTS = 8
DEFAULT_MIN_SCORE = 15
DEFAULT_LANGUAGE_REPO_LIMIT = 25
DEFAULT_LANGUAGE_BATCH_SIZE = 5
DEFAULT_README_REPO_LIMIT = 15
DEFAULT_MANIFEST_REPO_LIMIT = 10
DEFAULT_SIGNIFICANT_SIZE_KB = 10
DEFAULT_QUOTA_LOW_WATER = 10
DEFAULT_MIN_SKILL_PERCENTAGE = 2

# Constants for GitHub API interaction
GITHUB_API_ACCEPT_HEADER = "application/vnd.github+json"
GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_USER_AGENT = "profile-analyzer"
GITHUB_REPOS_PER_PAGE = 100
GITHUB_MAX_REPO_PAGES = 4
GITHUB_REQUEST_TIMEOUT_SECONDS = 30
GITHUB_UNLIMITED_QUOTA = 5000

# Constants for the optional text generator
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_LLM_MODEL = "google/gemma-3-27b-it:free"
LLM_MAX_TOKENS_CAP = 4000
LLM_TEMPERATURE = 0.5
LLM_REQUEST_TIMEOUT_SECONDS = 60

# Manifest files tried for every repository during tech stack detection.
MANIFEST_FILES = ("package.json", "requirements.txt", "pyproject.toml")

# Repository names treated as configuration or dotfile holders.
DEFAULT_CONFIG_REPO_PATTERNS = (
    r"^\.?dotfiles?$",
    r"^\.?config$",
    r"^\.github$",
    r"^homebrew-",
    r"\.github\.io$",
)

# Practice repositories; only excluded while they have no stars.
DEFAULT_LEARNING_REPO_PATTERNS = (
    r"^test$",
    r"^hello[-_]?world$",
    r"^practice$",
    r"^learning[-_]",
    r"^tutorial[-_]",
    r"^course[-_]",
)

# Messages reported through the progress callback.
PROGRESS_MESSAGES = {
    "fetching_profile": "Fetching profile...",
    "fetching_repos": "Fetching repositories...",
    "analyzing_languages": "Analyzing languages...",
    "fetching_readmes": "Fetching project documentation...",
    "detecting_tech_stack": "Detecting tech stack...",
    "ranking_projects": "Ranking projects...",
    "complete": "Analysis complete!",
}

# This function does load JSON content from disk safely.
# It returns None when the file is missing or invalid.
def _load_json(path: Optional[str]):
    if not path or not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as file_handle:
            return json.load(file_handle)
    except (OSError, ValueError):
        return None

# This function does normalize a pattern list from the JSON file.
# Entries that are not valid regular expressions are logged and dropped.
def _normalize_patterns(items) -> List[str]:
    if not isinstance(items, list):
        return []
    patterns = []
    for item in items:
        pattern = str(item).strip()
        if not pattern:
            continue
        try:
            re.compile(pattern, re.IGNORECASE)
        except re.error as exc:
            logger.warning("Ignoring invalid exclusion pattern %r: %s", pattern, exc)
            continue
        patterns.append(pattern)
    return patterns

# This function does load repository exclusion patterns.
# It extends the built-in defaults with the optional JSON file lists.
def load_exclusion_patterns(path: Optional[str] = None) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    configured = path if path is not None else os.environ.get(ENV_EXCLUSION_PATTERNS_PATH, "").strip()
    data = _load_json(configured)
    config_patterns = list(DEFAULT_CONFIG_REPO_PATTERNS)
    learning_patterns = list(DEFAULT_LEARNING_REPO_PATTERNS)
    if isinstance(data, dict):
        config_patterns.extend(p for p in _normalize_patterns(data.get("config")) if p not in config_patterns)
        learning_patterns.extend(p for p in _normalize_patterns(data.get("learning")) if p not in learning_patterns)
    return tuple(config_patterns), tuple(learning_patterns)

def resolve_github_username(default: str = "") -> str:
    return os.environ.get(ENV_GITHUB_USERNAME, "").strip() or default

def resolve_llm_settings() -> Dict[str, str]:
    return {
        "api_key": os.environ.get(ENV_OPENROUTER_API_KEY, "").strip(),
        "model": os.environ.get(ENV_LLM_MODEL, "").strip() or DEFAULT_LLM_MODEL,
    }
