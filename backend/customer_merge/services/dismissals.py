"""Dismissal ledger: operator decisions that two customers are not duplicates."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from customer_merge.models.customer import Customer
from customer_merge.models.customer_merge_dismissal import CustomerMergeDismissal
from customer_merge.schemas.customer import CustomerSummary
from customer_merge.schemas.dismissals import DismissalListItem, DismissalRead
from customer_merge.services.errors import (
    AlreadyDismissed,
    CustomerNotFound,
    DismissalNotFound,
    InvalidMergeTarget,
)
from customer_merge.services.transactions import storage_transaction

logger = logging.getLogger(__name__)


def canonical_pair(customer_a_id: int, customer_b_id: int) -> tuple[int, int]:
    """Order a pair smaller id first."""

    if customer_a_id <= customer_b_id:
        return customer_a_id, customer_b_id
    return customer_b_id, customer_a_id


def get_dismissal(
    db: Session,
    *,
    tenant_id: int,
    customer_a_id: int,
    customer_b_id: int,
) -> CustomerMergeDismissal | None:
    low, high = canonical_pair(customer_a_id, customer_b_id)
    return db.scalar(
        select(CustomerMergeDismissal).where(
            CustomerMergeDismissal.tenant_id == tenant_id,
            CustomerMergeDismissal.customer_a_id == low,
            CustomerMergeDismissal.customer_b_id == high,
        )
    )


def is_dismissed(db: Session, *, tenant_id: int, customer_a_id: int, customer_b_id: int) -> bool:
    """Return True when the unordered pair has an active dismissal."""

    low, high = canonical_pair(customer_a_id, customer_b_id)
    found = db.scalar(
        select(CustomerMergeDismissal.id)
        .where(
            CustomerMergeDismissal.tenant_id == tenant_id,
            CustomerMergeDismissal.customer_a_id == low,
            CustomerMergeDismissal.customer_b_id == high,
        )
        .limit(1)
    )
    return found is not None


def dismissed_partner_ids(db: Session, *, tenant_id: int, customer_id: int) -> set[int]:
    """Ids of every customer dismissed against ``customer_id``."""

    rows = db.execute(
        select(CustomerMergeDismissal.customer_a_id, CustomerMergeDismissal.customer_b_id).where(
            CustomerMergeDismissal.tenant_id == tenant_id,
            or_(
                CustomerMergeDismissal.customer_a_id == customer_id,
                CustomerMergeDismissal.customer_b_id == customer_id,
            ),
        )
    ).all()
    return {customer_b if customer_a == customer_id else customer_a for customer_a, customer_b in rows}


def dismissed_pairs(db: Session, *, tenant_id: int) -> set[tuple[int, int]]:
    rows = db.execute(
        select(CustomerMergeDismissal.customer_a_id, CustomerMergeDismissal.customer_b_id).where(
            CustomerMergeDismissal.tenant_id == tenant_id
        )
    ).all()
    return {(int(customer_a), int(customer_b)) for customer_a, customer_b in rows}


def dismiss_pair(
    db: Session,
    *,
    tenant_id: int,
    customer_a_id: int,
    customer_b_id: int,
    actor: str,
    reason: str | None = None,
) -> CustomerMergeDismissal:
    """Record that two customers are not duplicates."""

    if customer_a_id == customer_b_id:
        raise InvalidMergeTarget(
            "A customer cannot be dismissed against itself.",
            reason="self_pair",
            customer_a_id=customer_a_id,
            customer_b_id=customer_b_id,
        )
    low, high = canonical_pair(customer_a_id, customer_b_id)

    with storage_transaction(db, "dismiss_pair", customer_a_id=low, customer_b_id=high):
        found_ids = set(
            db.scalars(
                select(Customer.id).where(Customer.tenant_id == tenant_id, Customer.id.in_([low, high]))
            ).all()
        )
        for customer_id in (low, high):
            if customer_id not in found_ids:
                raise CustomerNotFound(f"Customer {customer_id} was not found.", customer_id=customer_id)
        if is_dismissed(db, tenant_id=tenant_id, customer_a_id=low, customer_b_id=high):
            raise AlreadyDismissed(
                f"Customers {low} and {high} are already marked as not duplicates.",
                customer_a_id=low,
                customer_b_id=high,
            )

        dismissal = CustomerMergeDismissal(
            tenant_id=tenant_id,
            customer_a_id=low,
            customer_b_id=high,
            reason=(reason or "").strip() or None,
            dismissed_by=actor,
        )
        db.add(dismissal)
        try:
            db.flush()
        except IntegrityError as exc:
            raise AlreadyDismissed(
                f"Customers {low} and {high} are already marked as not duplicates.",
                customer_a_id=low,
                customer_b_id=high,
            ) from exc

    db.refresh(dismissal)
    logger.info(
        "customer_merge.pair_dismissed tenant_id=%s customer_a_id=%s customer_b_id=%s actor=%s",
        tenant_id,
        low,
        high,
        actor,
    )
    return dismissal


def undismiss_pair(db: Session, *, tenant_id: int, customer_a_id: int, customer_b_id: int) -> None:
    """Delete the dismissal so the pair is detected again on the next scan."""

    low, high = canonical_pair(customer_a_id, customer_b_id)
    with storage_transaction(db, "undismiss_pair", customer_a_id=low, customer_b_id=high):
        dismissal = get_dismissal(db, tenant_id=tenant_id, customer_a_id=low, customer_b_id=high)
        if dismissal is None:
            raise DismissalNotFound(
                f"No dismissal exists for customers {low} and {high}.",
                customer_a_id=low,
                customer_b_id=high,
            )
        db.delete(dismissal)

    logger.info(
        "customer_merge.pair_undismissed tenant_id=%s customer_a_id=%s customer_b_id=%s",
        tenant_id,
        low,
        high,
    )


def list_dismissals(
    db: Session,
    *,
    tenant_id: int,
    customer_id: int | None = None,
) -> list[DismissalListItem]:
    """List dismissals newest first with current display data for both customers."""

    stmt = select(CustomerMergeDismissal).where(CustomerMergeDismissal.tenant_id == tenant_id)
    if customer_id is not None:
        stmt = stmt.where(
            or_(
                CustomerMergeDismissal.customer_a_id == customer_id,
                CustomerMergeDismissal.customer_b_id == customer_id,
            )
        )
    stmt = stmt.order_by(CustomerMergeDismissal.created_at.desc(), CustomerMergeDismissal.id.desc())
    dismissals = list(db.scalars(stmt).all())
    if not dismissals:
        return []

    referenced_ids = {row.customer_a_id for row in dismissals} | {row.customer_b_id for row in dismissals}
    summaries = {
        customer.id: CustomerSummary.model_validate(customer)
        for customer in db.scalars(
            select(Customer).where(Customer.tenant_id == tenant_id, Customer.id.in_(referenced_ids))
        ).all()
    }

    items: list[DismissalListItem] = []
    for dismissal in dismissals:
        other_customer = None
        if customer_id is not None:
            other_id = dismissal.customer_b_id if dismissal.customer_a_id == customer_id else dismissal.customer_a_id
            other_customer = summaries.get(other_id)
        items.append(
            DismissalListItem(
                **DismissalRead.model_validate(dismissal).model_dump(),
                customer_a=summaries.get(dismissal.customer_a_id),
                customer_b=summaries.get(dismissal.customer_b_id),
                other_customer=other_customer,
            )
        )
    return items
