"""Customer portal access grant ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from customer_merge.models.base import Base, CreatedAtMixin, IdMixin


class CustomerAccess(Base, IdMixin, CreatedAtMixin):
    """Access grant to a customer-facing property page."""

    __tablename__ = "customer_accesses"

    tenant_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    access_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
