"""
Records and summaries produced by the status gateway.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


DEVICE_PLACEHOLDER = "—"


class AccountStatus(str, Enum):
    """Status label attached to an account row."""
    DOWN = "Down"
    WARNING = "Warning"
    SUPPRESSED = "Suppressed"


@dataclass(frozen=True)
class AccountRecord:
    """Account row shown in the down/warning/suppressed lists."""

    account_id: str
    name: str
    status: AccountStatus
    addresses: Tuple[str, ...] = ()
    ip_addresses: Tuple[str, ...] = ()
    device_name: str = DEVICE_PLACEHOLDER

    @property
    def address(self) -> str:
        """First non-empty address, used for display."""
        for line in self.addresses:
            if line:
                return line
        return ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the dashboard's wire keys."""
        return {
            "customerId": self.account_id,
            "customerName": self.name,
            "status": self.status.value,
            "deviceName": self.device_name,
            "ipAddresses": list(self.ip_addresses),
            "address": self.address,
        }


@dataclass(frozen=True)
class AccountList:
    """Visible rows of one status list and the upstream row count they came from."""

    records: Tuple[AccountRecord, ...]
    raw_count: int

    @property
    def suppressed_count(self) -> int:
        return self.raw_count - len(self.records)

    def meta(self) -> Dict[str, int]:
        return {"raw": self.raw_count, "suppressed": self.suppressed_count, "visible": len(self.records)}


@dataclass(frozen=True)
class EquipmentSummary:
    """Account counts by equipment status category."""

    good: int = 0
    warning: int = 0
    down: int = 0
    uninventoried: int = 0
    total: int = 0

    @classmethod
    def zero(cls) -> "EquipmentSummary":
        return cls()

    def to_dict(self) -> Dict[str, int]:
        return {
            "good": self.good,
            "warning": self.warning,
            "down": self.down,
            "uninventoried": self.uninventoried,
            "total": self.total,
        }


@dataclass(frozen=True)
class InfrastructureSummary:
    """Infrastructure equipment counts.

    The directory exposes no infrastructure query, so this is always the
    zero-valued default the dashboard renders.
    """

    good: int = 0
    warning: int = 0
    bad: int = 0
    down: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"good": self.good, "warning": self.warning, "bad": self.bad, "down": self.down}


@dataclass(frozen=True)
class StatusSummary:
    """Suppression-adjusted summary served to the dashboard."""

    customer: EquipmentSummary
    suppressed_down: int = 0
    suppressed_warning: int = 0
    infrastructure: InfrastructureSummary = field(default_factory=InfrastructureSummary)
    issues: Tuple[str, ...] = ()

    @classmethod
    def zero(cls) -> "StatusSummary":
        return cls(customer=EquipmentSummary.zero())

    def to_dict(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = {
            "suppressed": {"down": self.suppressed_down, "warning": self.suppressed_warning},
            "suppressedDown": self.suppressed_down,
            "suppressedWarning": self.suppressed_warning,
        }
        if self.issues:
            meta["issues"] = list(self.issues)
        return {
            "infrastructureEquipment": self.infrastructure.to_dict(),
            "customerEquipment": self.customer.to_dict(),
            "meta": meta,
        }


class ResultSource(str, Enum):
    """Where a service result came from."""
    CACHE = "cache"
    UPSTREAM = "sonar"
    LOCAL = "local"
    ERROR = "error"


@dataclass
class ServiceResult:
    """Uniform outcome of a consumer-facing operation.

    Failures carry a zero-valued ``data`` payload so callers always have
    something renderable.
    """

    ok: bool
    source: ResultSource
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def cached(self) -> bool:
        return self.source == ResultSource.CACHE

    @classmethod
    def success(cls, data: Any, source: ResultSource, meta: Optional[Dict[str, Any]] = None) -> "ServiceResult":
        return cls(ok=True, source=source, data=data, meta=meta or {})

    @classmethod
    def failure(cls, error: Exception, default: Any) -> "ServiceResult":
        return cls(
            ok=False,
            source=ResultSource.ERROR,
            data=default,
            error=str(error),
            error_code=getattr(error, "code", type(error).__name__),
        )
