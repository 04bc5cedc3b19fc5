"""SQLAlchemy metadata registry import for Alembic."""

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
from customer_merge.models.base import Base

__all__ = [
    "Base",
    "Customer",
    "CustomerAccess",
    "CustomerActivity",
    "CustomerMerge",
    "CustomerMergeDismissal",
    "Inquiry",
    "MessageDraft",
    "PropertyInquiry",
]
