"""
Suppression-aware recomputation of the customer equipment summary.
"""

from typing import List

from .models import EquipmentSummary


def recompute_summary(raw: EquipmentSummary, suppressed_down: int, suppressed_warning: int) -> EquipmentSummary:
    """Derive the visible summary from upstream counts and suppressed counts.

    ``uninventoried`` passes through untouched; suppression is only applied
    to the down and warning categories. Results are never clamped, so an
    upstream summary that disagrees with its own entity lists (the lists are
    paginated and can undercount) shows up as a negative ``good``.
    """
    total = raw.total - suppressed_down - suppressed_warning
    down = raw.down - suppressed_down
    warning = raw.warning - suppressed_warning
    good = total - down - warning - raw.uninventoried

    return EquipmentSummary(
        good=good,
        warning=warning,
        down=down,
        uninventoried=raw.uninventoried,
        total=total,
    )


def validate_summary(summary: EquipmentSummary) -> List[str]:
    """Return the consistency problems in ``summary``; empty when clean."""
    issues: List[str] = []

    for category in ("good", "warning", "down", "uninventoried", "total"):
        value = getattr(summary, category)
        if value < 0:
            issues.append(f"{category} is negative ({value})")

    expected_good = summary.total - summary.down - summary.warning - summary.uninventoried
    if summary.good != expected_good:
        issues.append(f"good ({summary.good}) != total - down - warning - uninventoried ({expected_good})")

    return issues


def issue_categories(issues: List[str]) -> List[str]:
    """Leading category name of each issue, used as a metric label."""
    return [issue.split(" ", 1)[0] for issue in issues]
