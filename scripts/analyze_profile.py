#!/usr/bin/env python3
"""
Analyze a GitHub profile: rank its repositories for a CV, aggregate
languages, detect the tech stack from manifests, and print a report.

Usage:
  python scripts/analyze_profile.py <username> [--max-results N] [--min-score M] [--json] [--use-llm]

Environment variables:
  GITHUB_TOKEN: Personal access token (optional, raises the rate limit)
  GITHUB_USERNAME: Username used when none is passed on the command line
  OPENROUTER_API_KEY: Enables generated CV wording with --use-llm
  LLM_MODEL: OpenRouter model name
  LOG_LEVEL / LOG_FORMAT: Logging verbosity and "text" or "json" output
  REPO_EXCLUSION_PATTERNS_PATH: JSON file with extra "config" and "learning" name patterns
"""

import sys

from profile_analyzer.controller import run_analysis


if __name__ == "__main__":
    sys.exit(run_analysis())
