"""Tests for README quality scoring and description extraction."""

from profile_analyzer.services.readme_service import (
    analyze_readme_quality,
    extract_description_from_readme,
    readme_metrics,
)

BASE_README = """# Widget Factory

Widget Factory builds widgets from declarative templates so teams can ship consistent
interfaces quickly without hand writing every component over and over again.

## Installation

```
pip install widget-factory
```

## Usage

Run the example below.
"""


class TestAnalyzeReadmeQuality:
    def test_absent_text_scores_zero(self):
        result = analyze_readme_quality(None)
        assert result.score == 0
        assert result.has_readme is False
        assert result.metrics == {}

    def test_empty_text_scores_zero(self):
        assert analyze_readme_quality("").score == 0

    def test_structural_signals_add_up(self):
        result = analyze_readme_quality(BASE_README)
        # title 10, description 15, installation 15, usage 15, code blocks 15
        assert result.score == 70
        assert result.has_readme is True
        assert result.metrics["has_code_blocks"] is True
        assert result.metrics["has_license"] is False

    def test_license_section_adds_exactly_five(self):
        before = analyze_readme_quality(BASE_README).score
        after = analyze_readme_quality(BASE_README + "\n## License\n\nMIT\n").score
        assert after - before == 5

    def test_badges_and_screenshots(self):
        text = "[![Build](https://img.shields.io/b.svg)](https://ci.example.com)\n![shot](docs/screen.png)\n"
        metrics = readme_metrics(text)
        assert metrics["has_badges"] is True
        assert metrics["has_screenshots"] is True

    def test_long_readme_bonuses_are_capped(self):
        filler = " ".join(["word"] * 600)
        text = (
            BASE_README
            + "\n[![b](https://x/b.svg)](https://x)\n![s](s.png)\n## License\n## Contributing\n"
            + filler
        )
        result = analyze_readme_quality(text)
        assert result.metrics["word_count"] > 500
        assert result.score == 100

    def test_line_and_word_counts(self):
        metrics = readme_metrics("one two\nthree")
        assert metrics["line_count"] == 2
        assert metrics["word_count"] == 3


class TestExtractDescription:
    def test_first_paragraph_after_title(self):
        description = extract_description_from_readme(BASE_README)
        assert description.startswith("Widget Factory builds widgets")
        assert "Installation" not in description

    def test_skips_badges_before_title(self):
        text = "[![ci](https://x/b.svg)](https://x)\n# Tool\n\nDoes one thing well.\n"
        assert extract_description_from_readme(text) == "Does one thing well."

    def test_stops_at_list_item(self):
        text = "# Tool\nA short intro.\n- bullet\n"
        assert extract_description_from_readme(text) == "A short intro."

    def test_returns_none_without_paragraph(self):
        assert extract_description_from_readme("# Title only\n") is None
        assert extract_description_from_readme(None) is None

    def test_truncates_long_paragraph(self):
        text = "# T\n" + "x" * 900
        assert len(extract_description_from_readme(text)) == 500
