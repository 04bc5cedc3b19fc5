"""Customer ORM model."""

from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from customer_merge.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin

CUSTOMER_STATUSES = ("active", "inactive", "lost")


class Customer(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Tenant-scoped customer identity record."""

    __tablename__ = "customers"

    tenant_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    line_user_id: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)
    move_in_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    budget_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget_max: Mapped[int | None] = mapped_column(Integer, nullable=True)
    preferred_areas_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    requirements_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    last_activity_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    merged_into_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )

    @property
    def is_merged(self) -> bool:
        return self.merged_into_id is not None
