"""Tests for the analysis pipeline and the command-line entry point."""

import json
from datetime import timedelta

import pytest

from conftest import NOW, FakeDataSource, make_profile, make_repo
import profile_analyzer.controller as controller
from profile_analyzer.config import load_exclusion_patterns
from profile_analyzer.controller import analyze_profile, calculate_statistics, merge_skills, run_analysis
from profile_analyzer.errors import NotFoundError, RateLimitedError, UpstreamError
from profile_analyzer.models import (
    Analysis,
    AnalysisOptions,
    AnalysisStatus,
    ExclusionPatterns,
    LanguageSummary,
    Skill,
    TechnologyRecord,
)

PACKAGE_JSON = json.dumps({"dependencies": {"express": "^4.18.0", "react": "18.2.0"}})


def _originals(count, **overrides):
    return [make_repo(f"repo-{index}", **overrides) for index in range(count)]


class TestAnalyzeProfile:
    def test_end_to_end_statistics(self):
        originals = _originals(8)
        forks = [make_repo(f"fork-{index}", is_fork=True, stars=2) for index in range(2)]
        source = FakeDataSource(
            profile=make_profile(created_at=NOW - timedelta(days=3 * 365 + 30)),
            repos=originals + forks,
            languages={"repo-0": {"JavaScript": 800_000}, "repo-1": {"Python": 200_000}},
        )

        analysis = analyze_profile("octo", source, now=NOW)

        stats = analysis.statistics
        assert stats.years_active == 3
        assert stats.original_repos == 8
        assert stats.forked_repos == 2
        assert stats.total_repos == 10
        assert analysis.languages.primary_language == "JavaScript"
        assert stats.top_language == "JavaScript"
        assert all(not project.repository.is_fork for project in analysis.ranked_projects)
        assert len(analysis.ranked_projects) <= 8
        assert analysis.readmes == {}

    def test_progress_notifications_in_order(self):
        seen = []
        analyze_profile("octo", FakeDataSource(repos=_originals(2)), on_progress=lambda s, m: seen.append(s), now=NOW)
        assert seen == [
            AnalysisStatus.FETCHING_PROFILE,
            AnalysisStatus.FETCHING_REPOS,
            AnalysisStatus.ANALYZING_LANGUAGES,
            AnalysisStatus.FETCHING_READMES,
            AnalysisStatus.DETECTING_TECH_STACK,
            AnalysisStatus.RANKING_PROJECTS,
            AnalysisStatus.COMPLETE,
        ]

    @pytest.mark.parametrize(
        "failure_key, error",
        [
            (("profile", "octo"), RateLimitedError("GitHub API rate limit exceeded")),
            (("repos", "octo"), UpstreamError("GitHub API error: 502 Bad Gateway", status_code=502)),
        ],
    )
    def test_fatal_errors_propagate_unchanged(self, failure_key, error):
        seen = []
        source = FakeDataSource(failures={failure_key: error})
        with pytest.raises(type(error)) as excinfo:
            analyze_profile("octo", source, on_progress=lambda s, m: seen.append((s, m)))
        assert excinfo.value is error
        assert seen[-1] == (AnalysisStatus.ERROR, str(error))

    def test_missing_profile_is_not_found(self):
        source = FakeDataSource()
        source.profile = None
        with pytest.raises(NotFoundError):
            analyze_profile("ghost", source)

    def test_language_fetch_failure_degrades(self):
        source = FakeDataSource(
            repos=_originals(3),
            languages={"repo-0": {"Go": 5000}, "repo-2": {"Go": 5000}},
            failures={("languages", "repo-1"): RuntimeError("boom")},
        )
        analysis = analyze_profile("octo", source, now=NOW)
        assert "Could not fetch languages for repo-1: boom" in analysis.errors
        assert analysis.languages.by_repo["repo-1"] == {}
        assert analysis.languages.languages[0].repo_count == 2

    def test_language_fetch_bounded_to_limit(self):
        source = FakeDataSource(repos=_originals(30) + [make_repo("fork", is_fork=True)])
        analyze_profile("octo", source, now=NOW)
        fetched = [call[1] for call in source.called("languages")]
        assert len(fetched) == 25
        assert "fork" not in fetched

    def test_quota_exhaustion_stops_readmes_with_one_entry(self):
        repos = _originals(15)
        source = FakeDataSource(
            repos=repos,
            readmes={repo.name: f"# {repo.name}\n\nA project.\n" for repo in repos},
            quota=5,
        )
        analysis = analyze_profile("octo", source, now=NOW)
        assert len(source.called("readme")) == 1
        assert list(analysis.readmes) == ["repo-0"]
        assert len(analysis.errors) == 1
        assert analysis.errors[0].startswith("Rate limit low")
        assert "14 README(s) skipped" in analysis.errors[0]

    def test_quota_not_checked_after_last_readme(self):
        repos = [make_repo("solo")]
        source = FakeDataSource(repos=repos, readmes={"solo": "# Solo\n\nA project.\n"}, quota=5)
        analysis = analyze_profile("octo", source, now=NOW)
        assert analysis.readmes == {"solo": "# Solo\n\nA project.\n"}
        assert analysis.errors == []

    def test_readme_selection_and_missing_readme_entries(self):
        repos = [make_repo("big", size=500), make_repo("small", size=8), make_repo("other", size=50)]
        source = FakeDataSource(repos=repos, readmes={"big": "# Big\n\nA big project.\n"})
        analysis = analyze_profile("octo", source, now=NOW)
        assert [call[1] for call in source.called("readme")] == ["big", "other"]
        assert analysis.readmes == {"big": "# Big\n\nA big project.\n"}
        assert "No README found for other" in analysis.errors

    def test_tech_stack_detection_and_skill_merge(self):
        repos = _originals(2)
        source = FakeDataSource(
            repos=repos,
            languages={"repo-0": {"JavaScript": 90_000}},
            readmes={repo.name: "# R\n\nText.\n" for repo in repos},
            files={("repo-0", "package.json"): PACKAGE_JSON},
            failures={("file", "repo-1", "requirements.txt"): RuntimeError("timeout")},
        )
        analysis = analyze_profile("octo", source, now=NOW)

        express = analysis.tech_stack["Backend Frameworks"][0]
        assert (express.name, express.version, express.repo) == ("Express.js", "4.18.0", "repo-0")
        assert analysis.statistics.tech_count == 2
        assert "Could not fetch requirements.txt for repo-1: timeout" in analysis.errors

        skills = {skill.name: skill for skill in analysis.skills}
        assert skills["JavaScript"].source == "language-analysis"
        assert skills["Express.js"].level == "Proficient"
        assert skills["Express.js"].source == "tech-detection"

    def test_manifest_checks_limited_to_first_ten_significant(self):
        source = FakeDataSource(repos=_originals(12), readmes={f"repo-{i}": "# R\n\nx\n" for i in range(12)})
        analyze_profile("octo", source, now=NOW)
        checked = {call[1] for call in source.called("file")}
        assert checked == {f"repo-{index}" for index in range(10)}

    def test_options_override_ranking(self):
        source = FakeDataSource(repos=_originals(6))
        analysis = analyze_profile("octo", source, options=AnalysisOptions(max_results=2, min_score=0), now=NOW)
        assert len(analysis.ranked_projects) == 2
        assert analysis.categorized_projects

    def test_invalid_exclusion_pattern_from_file_does_not_break_ranking(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"config": ["homebrew-(", "^infra-"]}))
        config, learning = load_exclusion_patterns(str(path))
        options = AnalysisOptions(min_score=0, exclusion_patterns=ExclusionPatterns(config=config, learning=learning))
        source = FakeDataSource(repos=[make_repo("infra-tools"), make_repo("homebrew-(tap"), make_repo("app")])
        analysis = analyze_profile("octo", source, options=options, now=NOW)
        ranked = {project.name for project in analysis.ranked_projects}
        assert "infra-tools" not in ranked
        assert "app" in ranked


class TestMergeSkills:
    def test_first_occurrence_wins_case_insensitively(self):
        language_skills = [Skill(name="TypeScript", category="Frontend Development", level="Advanced", source="language-analysis")]
        tech_stack = {"Languages": [TechnologyRecord(name="typescript", category="Languages")],
                      "Testing": [TechnologyRecord(name="Jest", category="Testing")]}
        merged = merge_skills(language_skills, tech_stack)
        assert [skill.name for skill in merged] == ["TypeScript", "Jest"]
        assert merged[0].category == "Frontend Development"


class TestCalculateStatistics:
    def test_average_and_activity(self):
        repos = [
            make_repo("a", stars=1, updated_at=NOW - timedelta(days=10)),
            make_repo("b", stars=2, updated_at=NOW - timedelta(days=400)),
            make_repo("c", stars=2, updated_at=None),
            make_repo("d", stars=7, is_fork=True),
        ]
        analysis = Analysis(username="octo", profile=make_profile(created_at=NOW - timedelta(days=100)), repositories=repos)
        languages = LanguageSummary(languages=[], total_bytes=0, by_repo={}, primary_language=None, language_count=0)
        stats = calculate_statistics(analysis, languages, {}, NOW)
        # Fork stars count toward the total; the divisor is the original repositories.
        assert stats.average_stars_per_repo == 4.0
        assert stats.total_stars == 12
        assert stats.active_repos_last_year == 2
        assert stats.years_active == 1
        assert stats.followers == 12

    def test_no_original_repositories(self):
        analysis = Analysis(username="octo", profile=make_profile(), repositories=[make_repo("f", is_fork=True)])
        languages = LanguageSummary(languages=[], total_bytes=0, by_repo={}, primary_language=None, language_count=0)
        assert calculate_statistics(analysis, languages, {}, NOW).average_stars_per_repo == 0

    def test_activity_window_is_strict(self):
        repos = [
            make_repo("recent", updated_at=NOW - timedelta(days=364)),
            make_repo("just-over", updated_at=NOW - timedelta(days=365, hours=12)),
            make_repo("boundary", updated_at=NOW - timedelta(days=365)),
        ]
        analysis = Analysis(username="octo", profile=make_profile(), repositories=repos)
        languages = LanguageSummary(languages=[], total_bytes=0, by_repo={}, primary_language=None, language_count=0)
        assert calculate_statistics(analysis, languages, {}, NOW).active_repos_last_year == 1


class TestRunAnalysis:
    @pytest.fixture(autouse=True)
    def _quiet(self, monkeypatch):
        monkeypatch.setattr(controller, "setup_logging", lambda: None)
        monkeypatch.delenv("REPO_EXCLUSION_PATTERNS_PATH", raising=False)

    def test_json_output(self, capsys):
        source = FakeDataSource(repos=_originals(3), languages={"repo-0": {"Python": 30_000}})
        assert run_analysis(["octo", "--json"], data_source=source) == 0
        captured = capsys.readouterr()
        payload = json.loads(captured.out)
        assert payload["username"] == "octo"
        assert payload["statistics"]["original_repos"] == 3
        assert "[complete]" in captured.err

    def test_markdown_report(self, capsys):
        source = FakeDataSource(repos=_originals(3), languages={"repo-0": {"Python": 30_000}})
        assert run_analysis(["octo", "--max-results", "2", "--min-score", "0"], data_source=source) == 0
        out = capsys.readouterr().out
        assert out.startswith("# GitHub Profile Analysis: octo")
        assert "## Projects" in out
        assert "**Python:** 100.0%" in out

    def test_fatal_error_exits_with_status_one(self, capsys):
        source = FakeDataSource()
        source.profile = None
        assert run_analysis(["ghost"], data_source=source) == 1
        assert "GitHub user not found" in capsys.readouterr().err

    def test_missing_username(self, capsys, monkeypatch):
        monkeypatch.delenv("GITHUB_USERNAME", raising=False)
        assert run_analysis([], data_source=FakeDataSource()) == 2
