"""Shared fixtures: an in-memory profile data source and repository factories."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from profile_analyzer.errors import NotFoundError
from profile_analyzer.models import Profile, Repository

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_repo(name: str = "project", **overrides) -> Repository:
    """Build a Repository that passes every exclusion rule unless overridden."""
    values = dict(
        name=name,
        full_name=f"octo/{name}",
        description=f"{name} description",
        language="Python",
        stars=3,
        forks=1,
        size=120,
        updated_at=NOW - timedelta(days=3),
        created_at=NOW - timedelta(days=400),
        url=f"https://github.com/octo/{name}",
    )
    values.update(overrides)
    return Repository(**values)


def make_profile(**overrides) -> Profile:
    values = dict(
        login="octo",
        name="Octo Cat",
        followers=12,
        following=3,
        created_at=NOW - timedelta(days=3 * 365 + 10),
        profile_url="https://github.com/octo",
    )
    values.update(overrides)
    return Profile(**values)


class FakeDataSource:
    """Profile data source backed by dictionaries; records every call it receives."""

    def __init__(
        self,
        profile: Optional[Profile] = None,
        repos: Optional[List[Repository]] = None,
        languages: Optional[Dict[str, Dict[str, int]]] = None,
        readmes: Optional[Dict[str, str]] = None,
        files: Optional[Dict[tuple, str]] = None,
        quota: int = 5000,
        failures: Optional[Dict[tuple, Exception]] = None,
    ):
        self.profile = profile or make_profile()
        self.repos = list(repos or [])
        self.languages = languages or {}
        self.readmes = readmes or {}
        self.files = files or {}
        self.quota = quota
        self.failures = failures or {}
        self.calls: List[tuple] = []

    def _maybe_fail(self, key: tuple) -> None:
        self.calls.append(key)
        if key in self.failures:
            raise self.failures[key]

    def get_profile(self, username):
        self._maybe_fail(("profile", username))
        if self.profile is None:
            raise NotFoundError("User or resource not found")
        return self.profile

    def list_repositories(self, username):
        self._maybe_fail(("repos", username))
        return list(self.repos)

    def get_languages(self, owner, repo):
        self._maybe_fail(("languages", repo))
        return dict(self.languages.get(repo, {}))

    def get_readme(self, owner, repo):
        self._maybe_fail(("readme", repo))
        return self.readmes.get(repo)

    def get_file(self, owner, repo, path):
        self._maybe_fail(("file", repo, path))
        return self.files.get((repo, path))

    def get_remaining_quota(self):
        return self.quota

    def called(self, kind: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def repo_factory():
    return make_repo


@pytest.fixture
def profile_factory():
    return make_profile
