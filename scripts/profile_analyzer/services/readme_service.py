#------------------------------------------------------------
#                      readme_service.py
#          Scores README completeness and extracts a
#              project description from README text.

import re
from typing import Dict, List, Optional
from ..models import ReadmeQuality

TITLE_PATTERN = re.compile(r"^#\s+.+", re.MULTILINE)
INSTALLATION_PATTERN = re.compile(r"install|setup|getting started", re.IGNORECASE)
USAGE_PATTERN = re.compile(r"usage|how to|example", re.IGNORECASE)
CODE_FENCE_MARKER = "```"
BADGE_PATTERN = re.compile(r"\[!\[.+\]\(.+\)\]")
SCREENSHOT_PATTERN = re.compile(r"!\[.+\]\(.+\.(png|jpe?g|gif|svg)", re.IGNORECASE)
LICENSE_PATTERN = re.compile(r"license", re.IGNORECASE)
CONTRIBUTING_PATTERN = re.compile(r"contribut", re.IGNORECASE)

HEADING_LINE_PATTERN = re.compile(r"^#\s+")
LIST_LINE_PATTERN = re.compile(r"^[-*]")

MIN_DESCRIPTION_WORDS = 20
LONG_README_WORDS = 200
VERY_LONG_README_WORDS = 500
MAX_EXTRACTED_DESCRIPTION_CHARS = 500
MAX_README_SCORE = 100

# Points awarded for each structural signal.
README_SIGNAL_POINTS = {
    "has_title": 10,
    "has_description": 15,
    "has_installation": 15,
    "has_usage": 15,
    "has_code_blocks": 15,
    "has_badges": 5,
    "has_screenshots": 10,
    "has_license": 5,
    "has_contributing": 5,
}
LONG_README_BONUS = 5
VERY_LONG_README_BONUS = 5

def _count_words(text: str) -> int:
    return len(text.split())

# This function does compute the structural README signals.
# It returns boolean flags plus raw line and word counts.
def readme_metrics(text: str) -> Dict[str, object]:
    word_count = _count_words(text)
    return {
        "has_title": bool(TITLE_PATTERN.search(text)),
        "has_description": word_count > MIN_DESCRIPTION_WORDS,
        "has_installation": bool(INSTALLATION_PATTERN.search(text)),
        "has_usage": bool(USAGE_PATTERN.search(text)),
        "has_code_blocks": CODE_FENCE_MARKER in text,
        "has_badges": bool(BADGE_PATTERN.search(text)),
        "has_screenshots": bool(SCREENSHOT_PATTERN.search(text)),
        "has_license": bool(LICENSE_PATTERN.search(text)),
        "has_contributing": bool(CONTRIBUTING_PATTERN.search(text)),
        "line_count": len(text.split("\n")),
        "word_count": word_count,
    }

# This function does score README completeness from 0 to 100.
# It sums signal points and long-document bonuses, then caps the total.
def analyze_readme_quality(text: Optional[str]) -> ReadmeQuality:
    if not text:
        return ReadmeQuality(score=0, has_readme=False, metrics={})

    metrics = readme_metrics(text)
    score = sum(points for key, points in README_SIGNAL_POINTS.items() if metrics[key])
    if metrics["word_count"] > LONG_README_WORDS:
        score += LONG_README_BONUS
    if metrics["word_count"] > VERY_LONG_README_WORDS:
        score += VERY_LONG_README_BONUS

    return ReadmeQuality(score=min(MAX_README_SCORE, score), has_readme=True, metrics=metrics)

# This function does extract the first paragraph under the title heading.
# Lines before the title (badges, images) are skipped; the paragraph
# ends at a blank line, heading, list item, or code fence.
def extract_description_from_readme(text: Optional[str]) -> Optional[str]:
    if not text:
        return None

    collected: List[str] = []
    found_title = False
    for line in text.split("\n"):
        stripped = line.strip()

        if not found_title:
            if HEADING_LINE_PATTERN.match(stripped):
                found_title = True
            continue

        if not stripped:
            if collected:
                break
            continue
        if stripped.startswith("#"):
            break
        if LIST_LINE_PATTERN.match(stripped):
            break
        if stripped.startswith(CODE_FENCE_MARKER):
            break
        collected.append(stripped)

    description = " ".join(collected)[:MAX_EXTRACTED_DESCRIPTION_CHARS]
    return description or None
