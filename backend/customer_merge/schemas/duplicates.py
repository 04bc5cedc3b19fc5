"""Duplicate detection response schemas."""

from pydantic import BaseModel, Field

from customer_merge.schemas.customer import CustomerSummary


class DuplicateCandidate(BaseModel):
    """Likely duplicate of a reference customer, with the signals that matched."""

    customer_id: int
    candidate: CustomerSummary
    confidence: int = Field(ge=0, le=100)
    signals: list[str]


class DuplicatePair(BaseModel):
    """Undismissed duplicate pair found by a tenant-wide scan."""

    customer_a: CustomerSummary
    customer_b: CustomerSummary
    confidence: int = Field(ge=0, le=100)
    signals: list[str]
