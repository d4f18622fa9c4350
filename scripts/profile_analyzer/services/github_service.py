#------------------------------------------------------------
#                      github_service.py
#         Profile data source backed by the GitHub REST
#                     API and response shaping.

import base64
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
import requests
from ..config import (
    GITHUB_API_ACCEPT_HEADER,
    GITHUB_API_BASE_URL,
    GITHUB_MAX_REPO_PAGES,
    GITHUB_REPOS_PER_PAGE,
    GITHUB_REQUEST_TIMEOUT_SECONDS,
    GITHUB_UNLIMITED_QUOTA,
    GITHUB_USER_AGENT,
)
from ..errors import NotFoundError, RateLimitedError, UpstreamError
from ..models import Profile, Repository

logger = logging.getLogger(__name__)

USER_ENDPOINT_TEMPLATE = "/users/{username}"
USER_REPOS_ENDPOINT_TEMPLATE = "/users/{username}/repos"
LANGUAGES_ENDPOINT_TEMPLATE = "/repos/{owner}/{repo}/languages"
README_ENDPOINT_TEMPLATE = "/repos/{owner}/{repo}/readme"
CONTENTS_ENDPOINT_TEMPLATE = "/repos/{owner}/{repo}/contents/{path}"
REPO_QUERY_TEMPLATE = "{base}?sort=updated&direction=desc&per_page={per_page}&page={page}"

RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"

NOT_FOUND_MESSAGE = "User or resource not found"
RATE_LIMIT_MESSAGE_TEMPLATE = "GitHub API rate limit exceeded. Resets at {reset}"
UPSTREAM_MESSAGE_TEMPLATE = "GitHub API error: {status} {reason}"
TRANSPORT_MESSAGE_TEMPLATE = "GitHub API request failed: {error}"
PAGE_RESULT_MESSAGE = "Page %d: found %d repositories"

CONTENT_EXPECTED_ENCODING = "base64"
CONTENT_DECODE_ENCODING = "utf-8"
CONTENT_DECODE_ERROR_MODE = "replace"

class GitHubService:

    # This function does initialize service state.
    # It stores the optional token and the last seen quota.
    def __init__(self, token: Optional[str] = None, max_repo_pages: int = GITHUB_MAX_REPO_PAGES):
        self.token = token or ""
        self.max_repo_pages = max_repo_pages
        self.remaining_quota = GITHUB_UNLIMITED_QUOTA

    # This function does build request headers for GitHub API calls.
    # It adds auth headers when a token is configured.
    def headers(self) -> Dict[str, str]:
        headers = {"Accept": GITHUB_API_ACCEPT_HEADER, "User-Agent": GITHUB_USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _record_quota(self, response: requests.Response) -> None:
        remaining = response.headers.get(RATE_LIMIT_REMAINING_HEADER)
        if remaining is None:
            return
        try:
            self.remaining_quota = int(remaining)
        except ValueError:
            logger.debug("Ignoring unparseable %s header: %r", RATE_LIMIT_REMAINING_HEADER, remaining)

    @staticmethod
    def _parse_reset(response: requests.Response) -> Optional[datetime]:
        raw = response.headers.get(RATE_LIMIT_RESET_HEADER)
        if not raw:
            return None
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    # This function does issue a GET request and map failures to errors.
    # 404 becomes NotFoundError, an exhausted 403 becomes RateLimitedError.
    def _get(self, endpoint: str) -> requests.Response:
        url = endpoint if endpoint.startswith("http") else f"{GITHUB_API_BASE_URL}{endpoint}"
        try:
            response = requests.get(url, headers=self.headers(), timeout=GITHUB_REQUEST_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            raise UpstreamError(TRANSPORT_MESSAGE_TEMPLATE.format(error=exc)) from exc

        self._record_quota(response)
        if response.ok:
            return response

        if response.status_code == 404:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        if response.status_code == 403 and response.headers.get(RATE_LIMIT_REMAINING_HEADER) == "0":
            reset_at = self._parse_reset(response)
            reset_label = reset_at.strftime("%H:%M:%S UTC") if reset_at else "an unknown time"
            raise RateLimitedError(RATE_LIMIT_MESSAGE_TEMPLATE.format(reset=reset_label), reset_at=reset_at)
        raise UpstreamError(
            UPSTREAM_MESSAGE_TEMPLATE.format(status=response.status_code, reason=response.reason),
            status_code=response.status_code,
        )

    @staticmethod
    def _decode_content(data: dict) -> Optional[str]:
        content = data.get("content")
        if not content:
            return None
        if data.get("encoding") != CONTENT_EXPECTED_ENCODING:
            return content
        return base64.b64decode(content).decode(CONTENT_DECODE_ENCODING, errors=CONTENT_DECODE_ERROR_MODE)

    def get_profile(self, username: str) -> Profile:
        response = self._get(USER_ENDPOINT_TEMPLATE.format(username=username))
        return Profile.from_api(response.json())

    # This function does fetch public repositories for a user.
    # It pages through API results and stops on an empty or short page.
    def list_repositories(self, username: str) -> List[Repository]:
        base_url = f"{GITHUB_API_BASE_URL}{USER_REPOS_ENDPOINT_TEMPLATE.format(username=username)}"
        raw_repos: List[dict] = []

        for page in range(1, self.max_repo_pages + 1):
            url = REPO_QUERY_TEMPLATE.format(base=base_url, per_page=GITHUB_REPOS_PER_PAGE, page=page)
            data = self._get(url).json()
            if not data:
                break
            logger.debug(PAGE_RESULT_MESSAGE, page, len(data))
            raw_repos.extend(data)
            if len(data) < GITHUB_REPOS_PER_PAGE:
                break

        return [Repository.from_api(item) for item in raw_repos]

    def get_languages(self, owner: str, repo: str) -> Dict[str, int]:
        data = self._get(LANGUAGES_ENDPOINT_TEMPLATE.format(owner=owner, repo=repo)).json()
        if not isinstance(data, dict):
            return {}
        return {str(name): int(count) for name, count in data.items()}

    # This function does fetch and decode repository README text.
    # It returns None when the repository has no README.
    def get_readme(self, owner: str, repo: str) -> Optional[str]:
        try:
            response = self._get(README_ENDPOINT_TEMPLATE.format(owner=owner, repo=repo))
        except NotFoundError:
            return None
        return self._decode_content(response.json())

    def get_file(self, owner: str, repo: str, path: str) -> Optional[str]:
        try:
            response = self._get(CONTENTS_ENDPOINT_TEMPLATE.format(owner=owner, repo=repo, path=path))
        except NotFoundError:
            return None
        data = response.json()
        if not isinstance(data, dict):
            return None
        return self._decode_content(data)

    def get_remaining_quota(self) -> int:
        return self.remaining_quota
