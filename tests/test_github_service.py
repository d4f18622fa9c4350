"""Tests for the GitHub REST data source; requests.get is always patched."""

import base64
from unittest.mock import MagicMock, patch

import pytest

import profile_analyzer.services.github_service as github_mod
from profile_analyzer.errors import NotFoundError, RateLimitedError, UpstreamError, describe_error
from profile_analyzer.services.github_service import GitHubService


def _response(status=200, payload=None, headers=None, reason="OK"):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.reason = reason
    response.headers = headers or {}
    response.json.return_value = payload
    return response


def _repo_payload(index):
    return {
        "name": f"repo-{index}",
        "full_name": f"octo/repo-{index}",
        "stargazers_count": index,
        "size": 100,
        "fork": False,
        "updated_at": "2026-01-01T00:00:00Z",
        "topics": ["cli"],
    }


class TestHeaders:
    def test_token_adds_bearer_auth(self):
        headers = GitHubService(token="abc").headers()
        assert headers["Authorization"] == "Bearer abc"
        assert headers["Accept"] == "application/vnd.github+json"
        assert headers["User-Agent"]

    def test_anonymous_has_no_auth(self):
        assert "Authorization" not in GitHubService().headers()


class TestRequests:
    def test_get_profile_maps_fields(self):
        payload = {"login": "octo", "name": None, "public_repos": 7, "created_at": "2020-05-01T10:00:00Z"}
        with patch.object(github_mod.requests, "get", return_value=_response(payload=payload)) as mock_get:
            profile = GitHubService().get_profile("octo")
        assert profile.name == "octo"
        assert profile.public_repo_count == 7
        assert profile.created_at.year == 2020
        assert mock_get.call_args[0][0] == "https://api.github.com/users/octo"
        assert mock_get.call_args[1]["timeout"] == 30

    def test_list_repositories_stops_on_short_page(self):
        pages = [
            _response(payload=[_repo_payload(i) for i in range(100)]),
            _response(payload=[_repo_payload(i) for i in range(100, 103)]),
        ]
        with patch.object(github_mod.requests, "get", side_effect=pages) as mock_get:
            repos = GitHubService().list_repositories("octo")
        assert len(repos) == 103
        assert mock_get.call_count == 2
        assert "sort=updated" in mock_get.call_args_list[0][0][0]
        assert "page=2" in mock_get.call_args_list[1][0][0]
        assert repos[5].stars == 5
        assert repos[5].topics == ("cli",)
        assert repos[5].owner == "octo"

    def test_list_repositories_caps_page_count(self):
        full_page = [_repo_payload(i) for i in range(100)]
        with patch.object(github_mod.requests, "get", side_effect=lambda *a, **k: _response(payload=full_page)) as mock_get:
            repos = GitHubService().list_repositories("octo")
        assert mock_get.call_count == 4
        assert len(repos) == 400

    def test_readme_is_base64_decoded(self):
        payload = {"content": base64.b64encode("# Hello\n".encode()).decode(), "encoding": "base64"}
        with patch.object(github_mod.requests, "get", return_value=_response(payload=payload)):
            assert GitHubService().get_readme("octo", "repo") == "# Hello\n"

    def test_missing_readme_and_file_return_none(self):
        with patch.object(github_mod.requests, "get", return_value=_response(status=404, reason="Not Found")):
            service = GitHubService()
            assert service.get_readme("octo", "repo") is None
            assert service.get_file("octo", "repo", "package.json") is None

    def test_quota_tracks_last_header(self):
        service = GitHubService()
        assert service.get_remaining_quota() == 5000
        response = _response(payload={"Go": 10}, headers={"X-RateLimit-Remaining": "42"})
        with patch.object(github_mod.requests, "get", return_value=response):
            assert service.get_languages("octo", "repo") == {"Go": 10}
        assert service.get_remaining_quota() == 42


class TestErrorMapping:
    def test_not_found(self):
        with patch.object(github_mod.requests, "get", return_value=_response(status=404, reason="Not Found")):
            with pytest.raises(NotFoundError) as excinfo:
                GitHubService().get_profile("ghost")
        assert str(excinfo.value) == "User or resource not found"
        assert describe_error(excinfo.value).startswith("GitHub user not found")

    def test_rate_limited_carries_reset(self):
        headers = {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1767225600"}
        with patch.object(github_mod.requests, "get", return_value=_response(status=403, headers=headers)):
            with pytest.raises(RateLimitedError) as excinfo:
                GitHubService().get_profile("octo")
        assert excinfo.value.reset_at.year == 2026
        assert "Resets at" in describe_error(excinfo.value)

    def test_forbidden_with_quota_left_is_upstream(self):
        response = _response(status=403, headers={"X-RateLimit-Remaining": "12"}, reason="Forbidden")
        with patch.object(github_mod.requests, "get", return_value=response):
            with pytest.raises(UpstreamError) as excinfo:
                GitHubService().get_profile("octo")
        assert str(excinfo.value) == "GitHub API error: 403 Forbidden"
        assert excinfo.value.status_code == 403

    def test_transport_error_is_upstream(self):
        error = github_mod.requests.ConnectionError("connection refused")
        with patch.object(github_mod.requests, "get", side_effect=error):
            with pytest.raises(UpstreamError):
                GitHubService().list_repositories("octo")
