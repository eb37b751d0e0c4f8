from __future__ import annotations

import math
from collections.abc import Iterable

from whyslow.models.analysis import PackageAnalysis, Seconds, Suggestion
from whyslow.models.enums import Priority, SuggestionType

HIGH_PRIORITY_SECONDS = 20
MEDIUM_PRIORITY_SECONDS = 10
# A note describes a possible mitigation, not a guaranteed fix: half credit.
OPTIMIZE_CREDIT = 0.5


def priority_for(seconds: Seconds) -> Priority:
    if seconds >= HIGH_PRIORITY_SECONDS:
        return Priority.HIGH
    if seconds >= MEDIUM_PRIORITY_SECONDS:
        return Priority.MEDIUM
    return Priority.LOW


def suggest(pkg: PackageAnalysis) -> Suggestion | None:
    """Build the single suggestion for *pkg*, or None when there is nothing to say."""
    if pkg.alternative:
        return Suggestion(
            type=SuggestionType.REPLACE,
            package_name=pkg.name,
            current_time=pkg.estimated_time,
            suggestion=f"Replace {pkg.name} → {pkg.alternative}",
            potential_savings=pkg.estimated_time,
            priority=priority_for(pkg.estimated_time),
        )
    if pkg.note:
        return Suggestion(
            type=SuggestionType.OPTIMIZE,
            package_name=pkg.name,
            current_time=pkg.estimated_time,
            suggestion=pkg.note,
            potential_savings=math.floor(pkg.estimated_time * OPTIMIZE_CREDIT),
            priority=priority_for(pkg.estimated_time),
        )
    return None


def generate_suggestions(slow_packages: Iterable[PackageAnalysis]) -> list[Suggestion]:
    """Suggestions ordered by priority (high first), then by savings, both descending."""
    suggestions: list[Suggestion] = []
    for pkg in slow_packages:
        item = suggest(pkg)
        if item is not None:
            suggestions.append(item)
    suggestions.sort(key=lambda s: (s.priority.rank, s.potential_savings), reverse=True)
    return suggestions


def total_savings(suggestions: Iterable[Suggestion]) -> Seconds:
    return sum(item.potential_savings for item in suggestions)
