"""Atomic customer merge with a reversible audit record."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from time import perf_counter
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from customer_merge.config import get_settings
from customer_merge.merging.fields import (
    MERGE_FIELD_ATTRIBUTES,
    compare_customers,
    compute_merged_values,
    concatenate_text,
    invalid_resolutions,
    unresolved_fields,
)
from customer_merge.merging.normalization import is_blank, normalize_email, normalize_line_user_id
from customer_merge.merging.snapshots import snapshot_customer
from customer_merge.models.customer import Customer
from customer_merge.models.customer_activity import CustomerActivity
from customer_merge.models.customer_merge import CustomerMerge
from customer_merge.services.customers import load_merge_pair
from customer_merge.services.errors import (
    InvalidFieldResolution,
    UniqueFieldConflict,
    UnresolvedFieldConflict,
)
from customer_merge.services.related_records import repoint_related_records
from customer_merge.services.transactions import storage_transaction

logger = logging.getLogger(__name__)

DISCONNECTED_LINE_NOTE_PREFIX = "Previous LINE ID (disconnected by merge): "

_UNIQUE_CONTACT_FIELDS: tuple[tuple[str, Any], ...] = (
    ("email", normalize_email),
    ("line_user_id", normalize_line_user_id),
)


def execute_merge(
    db: Session,
    *,
    tenant_id: int,
    primary_id: int,
    secondary_id: int,
    field_resolutions: Mapping[str, str] | None,
    actor: str,
    merge_reason: str | None = None,
) -> CustomerMerge:
    """Merge the secondary customer into the primary in one transaction.

    Every validation runs before the first write. On success the secondary is
    kept with ``merged_into_id`` set and a ``CustomerMerge`` row holds enough
    state for ``undo_merge`` to restore both customers verbatim.
    """

    started = perf_counter()
    resolutions = dict(field_resolutions or {})
    invalid = invalid_resolutions(resolutions)
    if invalid:
        raise InvalidFieldResolution(
            f"Invalid field resolutions: {', '.join(sorted(invalid))}",
            fields=invalid,
        )

    with storage_transaction(db, "execute_merge", primary_id=primary_id, secondary_id=secondary_id):
        primary, secondary = load_merge_pair(
            db,
            tenant_id=tenant_id,
            primary_id=primary_id,
            secondary_id=secondary_id,
            lock=True,
        )
        comparisons = compare_customers(primary, secondary)
        missing = unresolved_fields(comparisons, resolutions)
        if missing:
            raise UnresolvedFieldConflict(missing)

        merged_values = compute_merged_values(comparisons, resolutions)
        _ensure_unique_contacts(db, tenant_id=tenant_id, primary=primary, secondary=secondary, values=merged_values)

        secondary_snapshot = snapshot_customer(secondary)
        primary_snapshot = snapshot_customer(primary, MERGE_FIELD_ATTRIBUTES)

        disconnected_line_user_id = _severed_line_user_id(primary, secondary, merged_values)
        if disconnected_line_user_id is not None:
            merged_values["notes"] = concatenate_text(
                merged_values.get("notes"),
                f"{DISCONNECTED_LINE_NOTE_PREFIX}{disconnected_line_user_id}",
            )

        if not is_blank(secondary.line_user_id):
            secondary.line_user_id = None
        for attribute, value in merged_values.items():
            setattr(primary, attribute, value)
        db.flush()

        moved_records = repoint_related_records(db, from_customer_id=secondary.id, to_customer_id=primary.id)
        secondary.merged_into_id = primary.id

        merge_record = CustomerMerge(
            tenant_id=tenant_id,
            primary_customer_id=primary.id,
            secondary_customer_id=secondary.id,
            secondary_snapshot_json=secondary_snapshot,
            primary_snapshot_json=primary_snapshot,
            applied_values_json=snapshot_customer(primary, MERGE_FIELD_ATTRIBUTES),
            moved_records_json=moved_records,
            field_resolutions_json=resolutions,
            disconnected_line_user_id=disconnected_line_user_id,
            merge_reason=(merge_reason or "").strip() or None,
            performed_by=actor,
            status="completed",
        )
        db.add(merge_record)
        db.flush()

        if get_settings().record_merge_activity:
            _record_merge_activity(db, merge_record, secondary_name=secondary.name)

    db.refresh(merge_record)
    logger.info(
        (
            "customer_merge.executed merge_id=%s tenant_id=%s primary_id=%s secondary_id=%s "
            "moved_rows=%d line_disconnected=%s actor=%s total_ms=%.2f"
        ),
        merge_record.id,
        tenant_id,
        primary_id,
        secondary_id,
        sum(len(ids) for ids in merge_record.moved_records_json.values()),
        disconnected_line_user_id is not None,
        actor,
        (perf_counter() - started) * 1000.0,
    )
    return merge_record


def _ensure_unique_contacts(
    db: Session,
    *,
    tenant_id: int,
    primary: Customer,
    secondary: Customer,
    values: Mapping[str, Any],
) -> None:
    """Reject a merge that would copy an email or LINE id already owned by a third customer."""

    for attribute, normalize in _UNIQUE_CONTACT_FIELDS:
        chosen = normalize(values.get(attribute))
        if not chosen or chosen == normalize(getattr(primary, attribute)):
            continue
        column = getattr(Customer, attribute)
        comparable = func.lower(func.trim(column)) if attribute == "email" else func.trim(column)
        owner_id = db.scalar(
            select(Customer.id)
            .where(
                Customer.tenant_id == tenant_id,
                Customer.id.not_in([primary.id, secondary.id]),
                Customer.merged_into_id.is_(None),
                comparable == chosen,
            )
            .limit(1)
        )
        if owner_id is not None:
            raise UniqueFieldConflict(
                f"{attribute} '{chosen}' is already used by customer {owner_id}.",
                field=attribute,
                value=chosen,
                customer_id=owner_id,
            )


def _severed_line_user_id(primary: Customer, secondary: Customer, values: Mapping[str, Any]) -> str | None:
    """Return the LINE id that loses its customer link, or None when nothing is severed.

    The secondary's id is always cleared, so it is severed unless it is the id that
    survives on the primary. The primary's own id is severed when a resolution replaces it.
    """

    kept = normalize_line_user_id(values.get("line_user_id"))
    for customer in (secondary, primary):
        current = normalize_line_user_id(customer.line_user_id)
        if current and current != kept:
            return customer.line_user_id
    return None


def _record_merge_activity(db: Session, merge_record: CustomerMerge, *, secondary_name: str) -> None:
    content = f"Merged {secondary_name} (#{merge_record.secondary_customer_id}) into this customer."
    if merge_record.merge_reason:
        content = f"{content}\nReason: {merge_record.merge_reason}"
    db.add(
        CustomerActivity(
            tenant_id=merge_record.tenant_id,
            customer_id=merge_record.primary_customer_id,
            activity_type="customer_merged",
            direction="internal",
            subject="Customer merged",
            content=content,
            performed_by=merge_record.performed_by,
        )
    )
    db.flush()
