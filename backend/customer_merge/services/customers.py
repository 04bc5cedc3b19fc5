"""Tenant-scoped customer lookups shared by the merge services."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from customer_merge.models.customer import Customer
from customer_merge.services.errors import CustomerNotFound, InvalidMergeTarget


def get_customer(db: Session, *, tenant_id: int, customer_id: int) -> Customer | None:
    return db.scalar(select(Customer).where(Customer.id == customer_id, Customer.tenant_id == tenant_id))


def require_customer(db: Session, *, tenant_id: int, customer_id: int) -> Customer:
    customer = get_customer(db, tenant_id=tenant_id, customer_id=customer_id)
    if customer is None:
        raise CustomerNotFound(f"Customer {customer_id} was not found.", customer_id=customer_id)
    return customer


def lock_customers(db: Session, customer_ids: list[int]) -> dict[int, Customer]:
    """Load and row-lock customers in ascending id order so concurrent merges cannot deadlock."""

    stmt = (
        select(Customer)
        .where(Customer.id.in_(sorted(set(customer_ids))))
        .order_by(Customer.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {customer.id: customer for customer in db.scalars(stmt).all()}


def load_merge_pair(
    db: Session,
    *,
    tenant_id: int,
    primary_id: int,
    secondary_id: int,
    lock: bool = False,
) -> tuple[Customer, Customer]:
    """Return (primary, secondary) after checking both can take part in a merge."""

    if primary_id == secondary_id:
        raise InvalidMergeTarget(
            "A customer cannot be merged into itself.",
            reason="self_merge",
            primary_id=primary_id,
            secondary_id=secondary_id,
        )

    if lock:
        customers = lock_customers(db, [primary_id, secondary_id])
    else:
        customers = {
            customer.id: customer
            for customer in db.scalars(select(Customer).where(Customer.id.in_([primary_id, secondary_id]))).all()
        }

    pair: list[Customer] = []
    for role, customer_id in (("primary", primary_id), ("secondary", secondary_id)):
        customer = customers.get(customer_id)
        if customer is None:
            raise InvalidMergeTarget(
                f"The {role} customer {customer_id} does not exist.",
                reason="not_found",
                role=role,
                customer_id=customer_id,
            )
        if customer.tenant_id != tenant_id:
            raise InvalidMergeTarget(
                f"The {role} customer {customer_id} belongs to another tenant.",
                reason="cross_tenant",
                role=role,
                customer_id=customer_id,
            )
        if customer.merged_into_id is not None:
            raise InvalidMergeTarget(
                f"The {role} customer {customer_id} was already merged into customer {customer.merged_into_id}.",
                reason="already_merged",
                role=role,
                customer_id=customer_id,
                merged_into_id=customer.merged_into_id,
            )
        pair.append(customer)

    primary, secondary = pair
    # A merged-into pointer must land on a customer that is not itself merged away.
    absorbed_id = db.scalar(select(Customer.id).where(Customer.merged_into_id == secondary.id).limit(1))
    if absorbed_id is not None:
        raise InvalidMergeTarget(
            f"The secondary customer {secondary.id} has customers merged into it; undo those merges first.",
            reason="has_merged_customers",
            role="secondary",
            customer_id=secondary.id,
            merged_customer_id=absorbed_id,
        )
    return primary, secondary
