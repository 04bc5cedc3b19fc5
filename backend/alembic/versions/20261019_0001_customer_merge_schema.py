"""customer identity, related records, merge dismissals and merge audit

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

_RELATED_TABLES = (
    "inquiries",
    "property_inquiries",
    "customer_activities",
    "customer_accesses",
    "message_drafts",
)


def _tenant_customer_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
    ]


def _created_at_column() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("line_user_id", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("move_in_date", sa.Date(), nullable=True),
        sa.Column("budget_min", sa.Integer(), nullable=True),
        sa.Column("budget_max", sa.Integer(), nullable=True),
        sa.Column("preferred_areas_json", sa.JSON(), nullable=False),
        sa.Column("requirements_json", sa.JSON(), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("merged_into_id", sa.Integer(), nullable=True),
        _created_at_column(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["merged_into_id"], ["customers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_tenant_id", "customers", ["tenant_id"], unique=False)
    op.create_index("ix_customers_email", "customers", ["email"], unique=False)
    op.create_index("ix_customers_line_user_id", "customers", ["line_user_id"], unique=False)
    op.create_index("ix_customers_merged_into_id", "customers", ["merged_into_id"], unique=False)

    op.create_table(
        "inquiries",
        *_tenant_customer_columns(),
        sa.Column("channel", sa.String(length=32), nullable=False, server_default="web"),
        sa.Column("subject", sa.String(length=255), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        _created_at_column(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "property_inquiries",
        *_tenant_customer_columns(),
        sa.Column("property_publication_id", sa.Integer(), nullable=True),
        sa.Column("deal_status", sa.String(length=32), nullable=False, server_default="new"),
        _created_at_column(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "customer_activities",
        *_tenant_customer_columns(),
        sa.Column("activity_type", sa.String(length=32), nullable=False),
        sa.Column("direction", sa.String(length=16), nullable=False, server_default="internal"),
        sa.Column("subject", sa.String(length=255), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.String(length=255), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        _created_at_column(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customer_activities_occurred_at", "customer_activities", ["occurred_at"], unique=False)
    op.create_table(
        "customer_accesses",
        *_tenant_customer_columns(),
        sa.Column("access_token", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        _created_at_column(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("access_token"),
    )
    op.create_table(
        "message_drafts",
        *_tenant_customer_columns(),
        sa.Column("channel", sa.String(length=16), nullable=False, server_default="email"),
        sa.Column("subject", sa.String(length=255), nullable=True),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        _created_at_column(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    for table_name in _RELATED_TABLES:
        op.create_index(f"ix_{table_name}_tenant_id", table_name, ["tenant_id"], unique=False)
        op.create_index(f"ix_{table_name}_customer_id", table_name, ["customer_id"], unique=False)

    op.create_table(
        "customer_merge_dismissals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("customer_a_id", sa.Integer(), nullable=False),
        sa.Column("customer_b_id", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.Column("dismissed_by", sa.String(length=255), nullable=False),
        _created_at_column(),
        sa.CheckConstraint("customer_a_id < customer_b_id", name="ck_customer_merge_dismissals_pair_order"),
        sa.ForeignKeyConstraint(["customer_a_id"], ["customers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["customer_b_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tenant_id",
            "customer_a_id",
            "customer_b_id",
            name="uq_customer_merge_dismissals_tenant_pair",
        ),
    )
    op.create_index(
        "ix_customer_merge_dismissals_tenant_id",
        "customer_merge_dismissals",
        ["tenant_id"],
        unique=False,
    )
    op.create_index(
        "ix_customer_merge_dismissals_customer_a_id",
        "customer_merge_dismissals",
        ["customer_a_id"],
        unique=False,
    )
    op.create_index(
        "ix_customer_merge_dismissals_customer_b_id",
        "customer_merge_dismissals",
        ["customer_b_id"],
        unique=False,
    )

    op.create_table(
        "customer_merges",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("primary_customer_id", sa.Integer(), nullable=False),
        sa.Column("secondary_customer_id", sa.Integer(), nullable=False),
        sa.Column("secondary_snapshot_json", sa.JSON(), nullable=False),
        sa.Column("primary_snapshot_json", sa.JSON(), nullable=False),
        sa.Column("applied_values_json", sa.JSON(), nullable=False),
        sa.Column("moved_records_json", sa.JSON(), nullable=False),
        sa.Column("field_resolutions_json", sa.JSON(), nullable=False),
        sa.Column("disconnected_line_user_id", sa.String(length=255), nullable=True),
        sa.Column("merge_reason", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="completed"),
        _created_at_column(),
        sa.Column("undone_by", sa.String(length=255), nullable=True),
        sa.Column("undone_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customer_merges_tenant_id", "customer_merges", ["tenant_id"], unique=False)
    op.create_index(
        "ix_customer_merges_primary_customer_id",
        "customer_merges",
        ["primary_customer_id"],
        unique=False,
    )
    op.create_index(
        "ix_customer_merges_secondary_customer_id",
        "customer_merges",
        ["secondary_customer_id"],
        unique=False,
    )
    op.create_index("ix_customer_merges_status", "customer_merges", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_customer_merges_status", table_name="customer_merges")
    op.drop_index("ix_customer_merges_secondary_customer_id", table_name="customer_merges")
    op.drop_index("ix_customer_merges_primary_customer_id", table_name="customer_merges")
    op.drop_index("ix_customer_merges_tenant_id", table_name="customer_merges")
    op.drop_table("customer_merges")

    op.drop_index("ix_customer_merge_dismissals_customer_b_id", table_name="customer_merge_dismissals")
    op.drop_index("ix_customer_merge_dismissals_customer_a_id", table_name="customer_merge_dismissals")
    op.drop_index("ix_customer_merge_dismissals_tenant_id", table_name="customer_merge_dismissals")
    op.drop_table("customer_merge_dismissals")

    for table_name in reversed(_RELATED_TABLES):
        op.drop_index(f"ix_{table_name}_customer_id", table_name=table_name)
        op.drop_index(f"ix_{table_name}_tenant_id", table_name=table_name)
    op.drop_index("ix_customer_activities_occurred_at", table_name="customer_activities")
    for table_name in reversed(_RELATED_TABLES):
        op.drop_table(table_name)

    op.drop_index("ix_customers_merged_into_id", table_name="customers")
    op.drop_index("ix_customers_line_user_id", table_name="customers")
    op.drop_index("ix_customers_email", table_name="customers")
    op.drop_index("ix_customers_tenant_id", table_name="customers")
    op.drop_table("customers")
