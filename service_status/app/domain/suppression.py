"""
Suppression filtering and the operator-curated suppression list.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Any, Dict, Iterable, List, Optional, Union

from shared.errors import ConfigurationError, ServiceError, ValidationError
from shared.logging import get_logger

from .models import AccountRecord


def canonical_id(account_id: Any) -> str:
    """Canonical string form used for every membership test."""
    return str(account_id)


@dataclass(frozen=True)
class SuppressionResult:
    """Visible records plus how many were removed."""

    visible: List[AccountRecord]
    suppressed_count: int


def filter_suppressed(records: Iterable[AccountRecord], suppressed: AbstractSet[str]) -> SuppressionResult:
    """Split ``records`` into visible rows and a suppressed count.

    A record is suppressed iff its canonical id is in ``suppressed``.
    Visible rows keep input order.
    """
    records = list(records)
    visible = [record for record in records if canonical_id(record.account_id) not in suppressed]
    return SuppressionResult(visible=visible, suppressed_count=len(records) - len(visible))


class SuppressionStore:
    """In-memory suppression list, optionally mirrored to a JSON file.

    Ids keep the order they were added in. The file holds
    ``{"accounts": [...]}`` in that order and is rewritten after every
    mutation; a mutation whose write fails is rolled back. Mutations are
    not coordinated across processes.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, accounts: Iterable[Any] = ()):
        self.path = Path(path) if path else None
        self.logger = get_logger("status.suppressions")
        # dict keys as an insertion-ordered set
        self._accounts: Dict[str, None] = dict.fromkeys(canonical_id(account) for account in accounts)

        if self.path is not None:
            self._load()

    def _load(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._save()
            self.logger.info("Created suppression file", path=str(self.path))
            return

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                "Suppression file is unreadable",
                details={"path": str(self.path), "error": str(exc)},
            ) from exc

        accounts = raw.get("accounts") if isinstance(raw, dict) else None
        self._accounts.update(dict.fromkeys(canonical_id(account) for account in accounts or []))
        self.logger.info("Loaded suppression list", path=str(self.path), count=len(self._accounts))

    def _save(self) -> None:
        if self.path is None:
            return
        payload = {"accounts": list(self._accounts)}
        try:
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise ServiceError(
                "Suppression file could not be written",
                details={"path": str(self.path), "error": str(exc)},
            ) from exc

    def members(self) -> AbstractSet[str]:
        """Snapshot of the suppressed ids."""
        return frozenset(self._accounts)

    def list_accounts(self) -> List[str]:
        return list(self._accounts)

    def contains(self, account_id: Any) -> bool:
        return canonical_id(account_id) in self._accounts

    def add(self, account_id: Any) -> bool:
        """Suppress an account. Returns False when it was already suppressed."""
        key = canonical_id(account_id)
        if not key:
            raise ValidationError("Account id must be non-empty")
        if key in self._accounts:
            return False
        self._accounts[key] = None
        try:
            self._save()
        except ServiceError:
            del self._accounts[key]
            raise
        self.logger.info("Account suppressed", account_id=key)
        return True

    def remove(self, account_id: Any) -> bool:
        """Unsuppress an account. Returns False when it was not suppressed."""
        key = canonical_id(account_id)
        if key not in self._accounts:
            return False
        previous = dict(self._accounts)
        del self._accounts[key]
        try:
            self._save()
        except ServiceError:
            self._accounts = previous
            raise
        self.logger.info("Account unsuppressed", account_id=key)
        return True

    def __len__(self) -> int:
        return len(self._accounts)
