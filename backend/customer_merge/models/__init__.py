"""ORM models package exports."""

from customer_merge.models.customer import Customer
from customer_merge.models.customer_access import CustomerAccess
from customer_merge.models.customer_activity import CustomerActivity
from customer_merge.models.customer_merge import CustomerMerge
from customer_merge.models.customer_merge_dismissal import CustomerMergeDismissal
from customer_merge.models.inquiry import Inquiry
from customer_merge.models.message_draft import MessageDraft
from customer_merge.models.property_inquiry import PropertyInquiry

__all__ = [
    "Customer",
    "CustomerAccess",
    "CustomerActivity",
    "CustomerMerge",
    "CustomerMergeDismissal",
    "Inquiry",
    "MessageDraft",
    "PropertyInquiry",
]
