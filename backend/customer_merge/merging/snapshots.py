"""JSON-safe customer snapshots used to make undo a verbatim restore."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime
from sqlalchemy import inspect as sa_inspect

from customer_merge.models.customer import Customer

_UNSNAPSHOTTED_ATTRIBUTES = frozenset({"created_at", "updated_at"})
_UNRESTORABLE_ATTRIBUTES = frozenset({"id", "tenant_id"})

SNAPSHOT_ATTRIBUTES: tuple[str, ...] = tuple(
    attr.key for attr in sa_inspect(Customer).column_attrs if attr.key not in _UNSNAPSHOTTED_ATTRIBUTES
)


def snapshot_customer(customer: Customer, attributes: Iterable[str] | None = None) -> dict[str, Any]:
    """Capture column values of ``customer`` in a JSON-serializable dict."""

    keys = SNAPSHOT_ATTRIBUTES if attributes is None else tuple(attributes)
    return {key: _encode(getattr(customer, key)) for key in keys}


def restore_customer(customer: Customer, snapshot: Mapping[str, Any]) -> None:
    """Write snapshot values back onto ``customer`` (identity columns are left alone)."""

    columns = sa_inspect(Customer).columns
    for key, raw in snapshot.items():
        if key in _UNRESTORABLE_ATTRIBUTES or key not in columns:
            continue
        setattr(customer, key, _decode(columns[key].type, raw))


def decode_snapshot(snapshot: Mapping[str, Any]) -> dict[str, Any]:
    """Return snapshot values converted back to their column Python types."""

    columns = sa_inspect(Customer).columns
    return {key: _decode(columns[key].type, raw) if key in columns else raw for key, raw in snapshot.items()}


def _encode(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def _decode(column_type: Any, raw: Any) -> Any:
    if raw is None:
        return None
    if isinstance(column_type, DateTime) and isinstance(raw, str):
        return datetime.fromisoformat(raw)
    if isinstance(column_type, Date) and isinstance(raw, str):
        return date.fromisoformat(raw)
    if isinstance(raw, list):
        return list(raw)
    return raw
