"""Merge preview, execution and history schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from customer_merge.schemas.customer import CustomerRead, CustomerSummary

ResolutionChoice = Literal["primary", "secondary"]


class FieldPreview(BaseModel):
    """One row of the field-by-field merge diff."""

    field: str
    label: str
    policy: Literal["manual", "concatenate", "union", "status"]
    primary_value: Any
    secondary_value: Any
    differs: bool
    auto_resolved: ResolutionChoice | None
    requires_resolution: bool
    proposed_value: Any = None


class MergePreview(BaseModel):
    """Everything an operator needs before confirming a merge. Computed, never stored."""

    primary: CustomerRead
    secondary: CustomerRead
    fields: list[FieldPreview]
    required_resolutions: list[str]
    line_user_id_conflict: bool
    related_counts: dict[str, int]


class MergeRequest(BaseModel):
    """Operator-confirmed merge of ``secondary_id`` into the path's primary customer."""

    secondary_id: int = Field(ge=1)
    field_resolutions: dict[str, ResolutionChoice] = Field(default_factory=dict)
    merge_reason: str | None = Field(default=None, max_length=2000)


class MergeRecordRead(BaseModel):
    """Serialized merge audit record."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    tenant_id: int
    primary_customer_id: int
    secondary_customer_id: int
    secondary_snapshot: dict[str, Any] = Field(validation_alias="secondary_snapshot_json")
    primary_snapshot: dict[str, Any] = Field(validation_alias="primary_snapshot_json")
    applied_values: dict[str, Any] = Field(validation_alias="applied_values_json")
    moved_records: dict[str, list[int]] = Field(validation_alias="moved_records_json")
    field_resolutions: dict[str, str] = Field(validation_alias="field_resolutions_json")
    disconnected_line_user_id: str | None
    merge_reason: str | None
    performed_by: str
    status: Literal["completed", "undone"]
    created_at: datetime
    undone_by: str | None
    undone_at: datetime | None


class MergeHistoryItem(BaseModel):
    """Merge history row for operator review."""

    id: int
    primary_customer: CustomerSummary | None
    secondary_customer_id: int
    secondary_name: str
    performed_by: str
    merge_reason: str | None
    status: Literal["completed", "undone"]
    moved_record_count: int
    created_at: datetime
    undone_by: str | None
    undone_at: datetime | None


class MergeHistoryResponse(BaseModel):
    """Paginated merge history payload."""

    items: list[MergeHistoryItem]
    total: int
    limit: int
    offset: int


class UndoResult(BaseModel):
    """Undo response payload."""

    merge_id: int
    status: Literal["undone"]
    restored_customer_id: int
