"""Merge dismissal request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from customer_merge.schemas.customer import CustomerSummary


class DismissalCreateRequest(BaseModel):
    """Mark two customers as not duplicates."""

    customer_a_id: int = Field(ge=1)
    customer_b_id: int = Field(ge=1)
    reason: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def validate_distinct_pair(self) -> "DismissalCreateRequest":
        if self.customer_a_id == self.customer_b_id:
            raise ValueError("A customer cannot be dismissed against itself.")
        return self


class DismissalRead(BaseModel):
    """Serialized dismissal row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    customer_a_id: int
    customer_b_id: int
    reason: str | None
    dismissed_by: str
    created_at: datetime


class DismissalListItem(DismissalRead):
    """Dismissal with both customers resolved to their current display data."""

    customer_a: CustomerSummary | None
    customer_b: CustomerSummary | None
    other_customer: CustomerSummary | None = None


class DismissalDeleteResult(BaseModel):
    """Undismiss response payload."""

    customer_a_id: int
    customer_b_id: int
    deleted: bool
