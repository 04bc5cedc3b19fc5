"""Property inquiry ORM model."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from customer_merge.models.base import Base, CreatedAtMixin, IdMixin


class PropertyInquiry(Base, IdMixin, CreatedAtMixin):
    """Customer interest in one published property."""

    __tablename__ = "property_inquiries"

    tenant_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    property_publication_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    deal_status: Mapped[str] = mapped_column(String(32), default="new", nullable=False)
