"""Registry of business records that reference a customer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from customer_merge.models.base import Base
from customer_merge.models.customer_access import CustomerAccess
from customer_merge.models.customer_activity import CustomerActivity
from customer_merge.models.inquiry import Inquiry
from customer_merge.models.message_draft import MessageDraft
from customer_merge.models.property_inquiry import PropertyInquiry


@dataclass(frozen=True, slots=True)
class RelatedRecordType:
    """One table whose rows point at a customer through ``customer_id``."""

    key: str
    label: str
    model: type[Base]


RELATED_RECORD_TYPES: tuple[RelatedRecordType, ...] = (
    RelatedRecordType("inquiries", "Inquiries", Inquiry),
    RelatedRecordType("property_inquiries", "Property inquiries", PropertyInquiry),
    RelatedRecordType("customer_activities", "Activities", CustomerActivity),
    RelatedRecordType("customer_accesses", "Access grants", CustomerAccess),
    RelatedRecordType("message_drafts", "Message drafts", MessageDraft),
)

_TYPES_BY_KEY = {record_type.key: record_type for record_type in RELATED_RECORD_TYPES}


def count_related_records(db: Session, customer_id: int) -> dict[str, int]:
    """Count rows per related type that currently reference ``customer_id``."""

    counts: dict[str, int] = {}
    for record_type in RELATED_RECORD_TYPES:
        model = record_type.model
        counts[record_type.key] = int(
            db.scalar(select(func.count(model.id)).where(model.customer_id == customer_id)) or 0
        )
    return counts


def repoint_related_records(db: Session, *, from_customer_id: int, to_customer_id: int) -> dict[str, list[int]]:
    """Move every related row from one customer to another.

    Returns the exact ``{type key: [row ids]}`` that were moved; undo replays
    this set instead of re-querying.
    """

    moved: dict[str, list[int]] = {}
    for record_type in RELATED_RECORD_TYPES:
        model = record_type.model
        row_ids = sorted(
            db.scalars(
                select(model.id).where(model.customer_id == from_customer_id).with_for_update()
            ).all()
        )
        if row_ids:
            db.execute(
                update(model)
                .where(model.id.in_(row_ids))
                .values(customer_id=to_customer_id)
            )
        moved[record_type.key] = row_ids
    db.flush()
    return moved


def restore_related_records(
    db: Session,
    moved: Mapping[str, list[int]],
    *,
    from_customer_id: int,
    to_customer_id: int,
) -> dict[str, int]:
    """Point the recorded rows that still belong to ``from_customer_id`` at ``to_customer_id``.

    Rows reassigned elsewhere since the merge keep their current owner. Returns rows
    updated per type.
    """

    restored: dict[str, int] = {}
    for key, row_ids in moved.items():
        record_type = _TYPES_BY_KEY.get(key)
        if record_type is None or not row_ids:
            restored[key] = 0
            continue
        model = record_type.model
        result = db.execute(
            update(model)
            .where(
                model.id.in_([int(row_id) for row_id in row_ids]),
                model.customer_id == from_customer_id,
            )
            .values(customer_id=to_customer_id)
        )
        restored[key] = int(result.rowcount or 0)
    db.flush()
    return restored
