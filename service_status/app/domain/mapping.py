"""
Total mappings from upstream directory responses to gateway records.

Every field access is presence-checked; a missing or malformed field maps
to an empty/zero default rather than raising.
"""

from typing import Any, Iterable, List, Mapping, Optional

from .models import AccountRecord, AccountStatus, EquipmentSummary


UNKNOWN_NAME = "(unknown)"


def _node(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    return None


def _entities(value: Any) -> List[Any]:
    entities = _node(value, "entities")
    return list(entities) if isinstance(entities, list) else []


def pick_count(node: Any) -> int:
    """Read ``page_info.total_count`` from a count alias, defaulting to 0."""
    raw = _node(_node(node, "page_info"), "total_count")
    if isinstance(raw, bool) or raw is None:
        return 0
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def uniq_strings(values: Optional[Iterable[Any]]) -> List[str]:
    """Trimmed, non-empty strings with duplicates removed, first occurrence kept."""
    seen = set()
    result: List[str] = []
    for value in values or ():
        if not isinstance(value, str):
            continue
        cleaned = value.strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result


def map_equipment_summary(data: Any) -> EquipmentSummary:
    """Map the aggregate counts query (one alias per category)."""
    return EquipmentSummary(
        good=pick_count(_node(data, "good")),
        warning=pick_count(_node(data, "warning")),
        down=pick_count(_node(data, "down")),
        uninventoried=pick_count(_node(data, "uninventoried_only")),
        total=pick_count(_node(data, "total")),
    )


def map_account_entity(entity: Any, status: AccountStatus) -> Optional[AccountRecord]:
    """Map one ``accounts.entities[]`` item; entities without an id yield None."""
    account_id = _node(entity, "id")
    if account_id is None or account_id == "":
        return None

    name = _node(entity, "name")
    addresses = uniq_strings(_node(item, "line1") for item in _entities(_node(entity, "addresses")))
    ip_addresses = uniq_strings(
        _node(item, "subnet") for item in _entities(_node(entity, "ip_assignment_histories"))
    )

    return AccountRecord(
        account_id=str(account_id),
        name=name if isinstance(name, str) and name else UNKNOWN_NAME,
        status=status,
        addresses=tuple(addresses),
        ip_addresses=tuple(ip_addresses),
    )


def map_account_entities(data: Any, status: AccountStatus) -> List[AccountRecord]:
    """Map an ``accounts`` list response to records, preserving upstream order."""
    records: List[AccountRecord] = []
    for entity in _entities(_node(data, "accounts")):
        record = map_account_entity(entity, status)
        if record is not None:
            records.append(record)
    return records
