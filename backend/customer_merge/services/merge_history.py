"""Query services for merge audit history."""

from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from customer_merge.models.customer import Customer
from customer_merge.models.customer_merge import CustomerMerge
from customer_merge.schemas.customer import CustomerSummary
from customer_merge.schemas.merges import MergeHistoryItem, MergeHistoryResponse
from customer_merge.services.errors import MergeNotFound


def get_merge(db: Session, *, tenant_id: int, merge_id: int) -> CustomerMerge:
    merge_record = db.scalar(
        select(CustomerMerge).where(CustomerMerge.id == merge_id, CustomerMerge.tenant_id == tenant_id)
    )
    if merge_record is None:
        raise MergeNotFound(f"Merge {merge_id} was not found.", merge_id=merge_id)
    return merge_record


def list_merges(
    db: Session,
    *,
    tenant_id: int,
    limit: int,
    offset: int,
    status: str | None = None,
    customer_id: int | None = None,
) -> MergeHistoryResponse:
    """Return merge history newest first.

    The secondary's name comes from its pre-merge snapshot, since the live record
    may have been edited or restored since.
    """

    base = select(CustomerMerge).where(CustomerMerge.tenant_id == tenant_id)
    if status is not None:
        base = base.where(CustomerMerge.status == status)
    if customer_id is not None:
        base = base.where(
            or_(
                CustomerMerge.primary_customer_id == customer_id,
                CustomerMerge.secondary_customer_id == customer_id,
            )
        )
    total = int(db.scalar(select(func.count()).select_from(base.subquery())) or 0)

    records = list(
        db.scalars(
            base.order_by(CustomerMerge.created_at.desc(), CustomerMerge.id.desc()).limit(limit).offset(offset)
        ).all()
    )
    primary_ids = {record.primary_customer_id for record in records}
    primaries = (
        {
            customer.id: CustomerSummary.model_validate(customer)
            for customer in db.scalars(select(Customer).where(Customer.id.in_(primary_ids))).all()
        }
        if primary_ids
        else {}
    )

    items = [
        MergeHistoryItem(
            id=record.id,
            primary_customer=primaries.get(record.primary_customer_id),
            secondary_customer_id=record.secondary_customer_id,
            secondary_name=str(record.secondary_snapshot_json.get("name") or ""),
            performed_by=record.performed_by,
            merge_reason=record.merge_reason,
            status=record.status,
            moved_record_count=sum(len(ids) for ids in record.moved_records_json.values()),
            created_at=record.created_at,
            undone_by=record.undone_by,
            undone_at=record.undone_at,
        )
        for record in records
    ]
    return MergeHistoryResponse(items=items, total=total, limit=limit, offset=offset)
