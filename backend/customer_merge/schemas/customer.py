"""Customer response schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class CustomerSummary(BaseModel):
    """Display data used wherever another customer is referenced."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str | None
    phone: str | None
    line_user_id: str | None
    status: str
    merged_into_id: int | None
    last_activity_at: datetime | None


class CustomerRead(CustomerSummary):
    """Serialized customer record."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    tenant_id: int
    notes: str | None
    move_in_date: date | None
    budget_min: int | None
    budget_max: int | None
    preferred_areas: list[str] = Field(validation_alias="preferred_areas_json")
    requirements: list[str] = Field(validation_alias="requirements_json")
    created_at: datetime
    updated_at: datetime
