"""Customer merge audit ORM model."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from customer_merge.models.base import Base, IdMixin

MERGE_STATUSES = ("completed", "undone")


class CustomerMerge(Base, IdMixin):
    """Durable record of one merge, and the sole input for undoing it."""

    __tablename__ = "customer_merges"

    tenant_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    primary_customer_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    secondary_customer_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    secondary_snapshot_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    primary_snapshot_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    applied_values_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    moved_records_json: Mapped[dict[str, list[int]]] = mapped_column(JSON, default=dict, nullable=False)
    field_resolutions_json: Mapped[dict[str, str]] = mapped_column(JSON, default=dict, nullable=False)
    disconnected_line_user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    merge_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="completed", index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    undone_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    undone_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
