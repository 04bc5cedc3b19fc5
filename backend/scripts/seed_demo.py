"""Seed a demo tenant with a duplicate customer pair and their related records.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from datetime import date, datetime, timezone
from pathlib import Path

from sqlalchemy import delete

# Make `customer_merge` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from customer_merge.db.session import SessionLocal
from customer_merge.models import (
    Customer,
    CustomerAccess,
    CustomerActivity,
    CustomerMerge,
    CustomerMergeDismissal,
    Inquiry,
    MessageDraft,
    PropertyInquiry,
)
from customer_merge.services.duplicates import find_duplicates


DEFAULT_TENANT_ID = 1


def build_demo_customers(tenant_id: int) -> list[Customer]:
    """Return a deterministic set of customers: one likely duplicate pair and one bystander."""

    return [
        Customer(
            tenant_id=tenant_id,
            name="Tanaka Taro",
            email="tanaka@example.com",
            phone="090-1234-5678",
            notes="Prefers contact after 18:00.",
            status="active",
            move_in_date=date(2026, 12, 1),
            budget_min=80000,
            budget_max=120000,
            preferred_areas_json=["Shibuya", "Meguro"],
            requirements_json=["pet friendly"],
            last_activity_at=datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc),
        ),
        Customer(
            tenant_id=tenant_id,
            name="tanaka  taro",
            email="TANAKA@example.com ",
            phone="09012345678",
            line_user_id="U1234567890abcdef",
            notes="Came in through LINE.",
            status="inactive",
            move_in_date=date(2027, 1, 15),
            budget_min=90000,
            budget_max=130000,
            preferred_areas_json=["meguro", "Setagaya"],
            requirements_json=["south facing"],
            last_activity_at=datetime(2026, 10, 10, 12, 30, tzinfo=timezone.utc),
        ),
        Customer(
            tenant_id=tenant_id,
            name="Suzuki Hanako",
            email="hanako@example.com",
            phone="080-5555-0000",
            status="active",
            preferred_areas_json=[],
            requirements_json=[],
        ),
    ]


def reset_tenant(db, tenant_id: int) -> None:
    """Remove existing records for the demo tenant."""

    for model in (
        CustomerMerge,
        CustomerMergeDismissal,
        Inquiry,
        PropertyInquiry,
        CustomerActivity,
        CustomerAccess,
        MessageDraft,
    ):
        db.execute(delete(model).where(model.tenant_id == tenant_id))
    db.execute(delete(Customer).where(Customer.tenant_id == tenant_id))
    db.commit()


def seed_related_records(db, tenant_id: int, customer: Customer) -> int:
    """Attach one record of every related type to ``customer``."""

    rows = [
        Inquiry(tenant_id=tenant_id, customer_id=customer.id, channel="line", subject="Viewing request"),
        PropertyInquiry(tenant_id=tenant_id, customer_id=customer.id, property_publication_id=101),
        CustomerActivity(
            tenant_id=tenant_id,
            customer_id=customer.id,
            activity_type="line_message",
            direction="inbound",
            content="Is the Meguro unit still available?",
        ),
        CustomerAccess(
            tenant_id=tenant_id,
            customer_id=customer.id,
            access_token=f"demo-{tenant_id}-{customer.id}",
        ),
        MessageDraft(tenant_id=tenant_id, customer_id=customer.id, channel="line", body="Thanks for reaching out."),
    ]
    db.add_all(rows)
    return len(rows)


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed a demo tenant with a duplicate customer pair.")
    parser.add_argument(
        "--tenant-id",
        type=int,
        default=DEFAULT_TENANT_ID,
        help=f"Tenant ID to seed (default: {DEFAULT_TENANT_ID})",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete existing records for the tenant before seeding.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    tenant_id: int = args.tenant_id

    with SessionLocal() as db:
        if args.reset:
            reset_tenant(db, tenant_id)

        customers = build_demo_customers(tenant_id)
        db.add_all(customers)
        db.flush()
        primary, secondary, _ = customers
        primary_id, secondary_id = primary.id, secondary.id
        related_created = seed_related_records(db, tenant_id, secondary)
        db.commit()

        candidates = find_duplicates(db, primary_id, tenant_id=tenant_id)

    print("Seed complete")
    print(f"tenant_id={tenant_id}")
    print(f"customers_created={len(customers)}")
    print(f"related_records_created={related_created}")
    for candidate in candidates:
        print(
            f"duplicate customer_id={candidate.candidate.id} confidence={candidate.confidence} "
            f"signals={','.join(candidate.signals)}"
        )
    print()
    print("Inspect (headers: X-Tenant-Id, X-Actor):")
    print(f"  GET /customers/{primary_id}/duplicates")
    print(f"  GET /customers/{primary_id}/merge-preview?secondary_id={secondary_id}")
    print(f"  POST /customers/{primary_id}/merge")


if __name__ == "__main__":
    main()
