"""README badge metric."""

import re
from typing import Any

from repo_health.metrics.base import BADGE_COUNT, MetricSpec

# Markdown image links: ![alt](url)
_IMAGE_LINK_PATTERN = re.compile(r"!\[.*?\]\((.*?)\)")


def count_badges(readme: Any) -> int:
    """
    Counts the Markdown image links (badges) in a README.

    Only images whose URL contains "badge" (case-insensitive) are counted, so
    logos and screenshots are left out.

    Returns:
        Number of badge images found, 0 if the README is not text.
    """
    if not isinstance(readme, str):
        return 0

    return sum(
        1
        for match in _IMAGE_LINK_PATTERN.finditer(readme)
        if "badge" in match.group(1).lower()
    )


METRIC = MetricSpec(
    key=BADGE_COUNT,
    source="readme",
    calculator=count_badges,
    description="Status badges in the README",
)
