"""README badge snippets and the markdown report posted from CI."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from whyslow.models.analysis import AnalysisResult, Seconds
from whyslow.services.formatting import format_time

BADGE_LABEL = "install time"
SHIELDS_URL = "https://img.shields.io/badge"

# (upper bound in seconds, shields.io colour); the last colour covers the rest.
_COLOR_STEPS: tuple[tuple[int, str], ...] = (
    (30, "brightgreen"),
    (60, "green"),
    (120, "yellow"),
    (300, "orange"),
)
_SLOWEST_COLOR = "red"


@dataclass(slots=True, frozen=True)
class BadgeSnippets:
    url: str
    markdown: str
    html: str
    summary: str


def badge_color(seconds: Seconds) -> str:
    for limit, color in _COLOR_STEPS:
        if seconds < limit:
            return color
    return _SLOWEST_COLOR


def _shields_escape(text: str) -> str:
    # shields.io path syntax: literal dashes and underscores are doubled.
    return quote(text.replace("-", "--").replace("_", "__"), safe="")


def badge_snippets(result: AnalysisResult) -> BadgeSnippets:
    message = f"~{format_time(result.estimated_total_time)}"
    color = badge_color(result.estimated_total_time)
    url = f"{SHIELDS_URL}/{_shields_escape(BADGE_LABEL)}-{_shields_escape(message)}-{color}"
    alt = f"{BADGE_LABEL}: {message}"
    slow_count = len(result.slow_packages)
    summary = (
        f"Estimated slow install time {message} across {slow_count} slow "
        f"package{'s' if slow_count != 1 else ''} ({result.total_packages} total)"
    )
    return BadgeSnippets(
        url=url,
        markdown=f"![{alt}]({url})",
        html=f'<img src="{url}" alt="{alt}">',
        summary=summary,
    )


def ci_report(result: AnalysisResult) -> str:
    lines: list[str] = ["## 📦 Install Time Report", ""]
    badge = badge_snippets(result)
    lines.append(badge.markdown)
    lines.append("")
    lines.append(f"- **Packages analyzed:** {result.total_packages}")
    lines.append(f"- **Slow packages:** {len(result.slow_packages)}")
    lines.append(f"- **Estimated slow time:** {format_time(result.estimated_total_time)}")
    lines.append(f"- **Potential savings:** {format_time(result.potential_savings)}")
    lines.append("")

    if not result.slow_packages:
        lines.append("✅ No obviously slow packages detected.")
        return "\n".join(lines) + "\n"

    lines.append("| # | Package | Est. Time | Reason |")
    lines.append("|---|---------|-----------|--------|")
    for idx, pkg in enumerate(result.slow_packages, start=1):
        lines.append(f"| {idx} | `{pkg.name}` | ~{format_time(pkg.estimated_time)} | {pkg.reason.label} |")
    lines.append("")

    if result.suggestions:
        lines.append("### Suggestions")
        lines.append("")
        for item in result.suggestions:
            icon = item.priority.icon
            lines.append(f"- {icon} {item.suggestion} (saves ~{format_time(item.potential_savings)})")
    return "\n".join(lines) + "\n"
