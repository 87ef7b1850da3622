"""
Domain logic for the status gateway.

Records and summaries, upstream response mapping, suppression filtering,
aggregate recomputation and the bounded fetcher. ``status_service`` composes
them and is imported directly by ``app.main`` to keep this package free of
adapter imports.
"""

from .aggregate import recompute_summary, validate_summary
from .fetcher import BoundedFetcher
from .models import (
    AccountList,
    AccountRecord,
    AccountStatus,
    EquipmentSummary,
    ResultSource,
    ServiceResult,
    StatusSummary,
)
from .suppression import SuppressionStore, filter_suppressed

__all__ = [
    "AccountList",
    "AccountRecord",
    "AccountStatus",
    "BoundedFetcher",
    "EquipmentSummary",
    "ResultSource",
    "ServiceResult",
    "StatusSummary",
    "SuppressionStore",
    "filter_suppressed",
    "recompute_summary",
    "validate_summary",
]
