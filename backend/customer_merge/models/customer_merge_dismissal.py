"""Customer merge dismissal ORM model."""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from customer_merge.models.base import Base, CreatedAtMixin, IdMixin


class CustomerMergeDismissal(Base, IdMixin, CreatedAtMixin):
    """Operator decision that two customers are not duplicates.

    The pair is stored in canonical order (``customer_a_id < customer_b_id``) so
    lookups do not depend on which side the operator started from.
    """

    __tablename__ = "customer_merge_dismissals"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "customer_a_id",
            "customer_b_id",
            name="uq_customer_merge_dismissals_tenant_pair",
        ),
        CheckConstraint("customer_a_id < customer_b_id", name="ck_customer_merge_dismissals_pair_order"),
    )

    tenant_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    customer_a_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    customer_b_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    dismissed_by: Mapped[str] = mapped_column(String(255), nullable=False)
