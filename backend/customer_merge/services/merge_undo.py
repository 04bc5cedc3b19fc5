"""Reverse a completed merge from its audit record."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from time import perf_counter

from sqlalchemy import select
from sqlalchemy.orm import Session

from customer_merge.config import get_settings
from customer_merge.merging.snapshots import restore_customer
from customer_merge.models.customer import Customer
from customer_merge.models.customer_activity import CustomerActivity
from customer_merge.models.customer_merge import CustomerMerge
from customer_merge.services.customers import lock_customers
from customer_merge.services.errors import AlreadyUndone, MergeNotFound
from customer_merge.services.related_records import restore_related_records
from customer_merge.services.transactions import storage_transaction

logger = logging.getLogger(__name__)


def undo_merge(db: Session, *, tenant_id: int, merge_id: int, actor: str) -> CustomerMerge:
    """Restore both customers and every moved related row to their pre-merge state.

    Undo replays the stored snapshots verbatim; it does not re-run conflict
    detection, so a restored LINE id may again collide with the primary's.
    """

    started = perf_counter()
    with storage_transaction(db, "undo_merge", merge_id=merge_id):
        merge_record = db.scalar(
            select(CustomerMerge)
            .where(CustomerMerge.id == merge_id, CustomerMerge.tenant_id == tenant_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if merge_record is None:
            raise MergeNotFound(f"Merge {merge_id} was not found.", merge_id=merge_id)
        if merge_record.status == "undone":
            raise AlreadyUndone(
                f"Merge {merge_id} was already undone.",
                merge_id=merge_id,
                undone_by=merge_record.undone_by,
            )

        customers = lock_customers(db, [merge_record.primary_customer_id, merge_record.secondary_customer_id])
        secondary = customers.get(merge_record.secondary_customer_id)
        if secondary is None:
            secondary = _recreate_secondary(db, merge_record)
        primary = customers.get(merge_record.primary_customer_id)

        restore_customer(secondary, merge_record.secondary_snapshot_json)
        secondary.merged_into_id = None
        db.flush()

        restored = restore_related_records(
            db,
            merge_record.moved_records_json,
            from_customer_id=merge_record.primary_customer_id,
            to_customer_id=secondary.id,
        )
        skipped = {
            key: len(row_ids) - restored.get(key, 0)
            for key, row_ids in merge_record.moved_records_json.items()
            if len(row_ids) > restored.get(key, 0)
        }
        if skipped:
            logger.warning(
                "customer_merge.undo_rows_skipped merge_id=%s primary_id=%s skipped=%s",
                merge_id,
                merge_record.primary_customer_id,
                skipped,
            )

        if primary is None:
            logger.warning(
                "customer_merge.undo_primary_missing merge_id=%s primary_id=%s",
                merge_id,
                merge_record.primary_customer_id,
            )
        else:
            restore_customer(primary, merge_record.primary_snapshot_json)

        merge_record.status = "undone"
        merge_record.undone_by = actor
        merge_record.undone_at = datetime.now(timezone.utc)
        db.flush()

        if primary is not None and get_settings().record_merge_activity:
            _record_undo_activity(db, merge_record, secondary_name=secondary.name)

    db.refresh(merge_record)
    logger.info(
        (
            "customer_merge.undone merge_id=%s tenant_id=%s primary_id=%s secondary_id=%s "
            "restored_rows=%d actor=%s total_ms=%.2f"
        ),
        merge_record.id,
        tenant_id,
        merge_record.primary_customer_id,
        merge_record.secondary_customer_id,
        sum(restored.values()),
        actor,
        (perf_counter() - started) * 1000.0,
    )
    return merge_record


def _recreate_secondary(db: Session, merge_record: CustomerMerge) -> Customer:
    """Re-insert a secondary that was deleted after the merge, keeping its original id."""

    snapshot = merge_record.secondary_snapshot_json
    secondary = Customer(
        id=merge_record.secondary_customer_id,
        tenant_id=merge_record.tenant_id,
        name=str(snapshot.get("name") or ""),
    )
    db.add(secondary)
    db.flush()
    logger.warning(
        "customer_merge.undo_recreated_secondary merge_id=%s secondary_id=%s",
        merge_record.id,
        secondary.id,
    )
    return secondary


def _record_undo_activity(db: Session, merge_record: CustomerMerge, *, secondary_name: str) -> None:
    db.add(
        CustomerActivity(
            tenant_id=merge_record.tenant_id,
            customer_id=merge_record.primary_customer_id,
            activity_type="customer_merge_undone",
            direction="internal",
            subject="Customer merge undone",
            content=f"Undid the merge with {secondary_name} (#{merge_record.secondary_customer_id}).",
            performed_by=merge_record.undone_by,
        )
    )
    db.flush()
