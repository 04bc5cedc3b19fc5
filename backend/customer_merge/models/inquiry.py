"""Inquiry ORM model."""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from customer_merge.models.base import Base, CreatedAtMixin, IdMixin


class Inquiry(Base, IdMixin, CreatedAtMixin):
    """Inbound inquiry thread owned by a customer."""

    __tablename__ = "inquiries"

    tenant_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    channel: Mapped[str] = mapped_column(String(32), default="web", nullable=False)
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
