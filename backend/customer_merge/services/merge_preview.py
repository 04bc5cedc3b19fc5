"""Read-only merge preview: field diff, auto-resolutions and related-record counts."""

from __future__ import annotations

from sqlalchemy.orm import Session

from customer_merge.merging.fields import FieldComparison, compare_customers, merged_value
from customer_merge.merging.normalization import is_blank, normalize_line_user_id
from customer_merge.schemas.customer import CustomerRead
from customer_merge.schemas.merges import FieldPreview, MergePreview
from customer_merge.services.customers import load_merge_pair
from customer_merge.services.related_records import count_related_records


def build_merge_preview(db: Session, *, tenant_id: int, primary_id: int, secondary_id: int) -> MergePreview:
    """Describe what merging ``secondary_id`` into ``primary_id`` would do. Performs no writes."""

    primary, secondary = load_merge_pair(
        db,
        tenant_id=tenant_id,
        primary_id=primary_id,
        secondary_id=secondary_id,
    )
    comparisons = compare_customers(primary, secondary)

    return MergePreview(
        primary=CustomerRead.model_validate(primary),
        secondary=CustomerRead.model_validate(secondary),
        fields=[_field_preview(comparison) for comparison in comparisons],
        required_resolutions=[
            comparison.field.name for comparison in comparisons if comparison.requires_resolution
        ],
        line_user_id_conflict=has_line_user_id_conflict(primary.line_user_id, secondary.line_user_id),
        related_counts=count_related_records(db, secondary.id),
    )


def has_line_user_id_conflict(primary_value: str | None, secondary_value: str | None) -> bool:
    """Both sides linked to different messaging accounts; merging severs one link."""

    if is_blank(primary_value) or is_blank(secondary_value):
        return False
    return normalize_line_user_id(primary_value) != normalize_line_user_id(secondary_value)


def _field_preview(comparison: FieldComparison) -> FieldPreview:
    return FieldPreview(
        field=comparison.field.name,
        label=comparison.field.label,
        policy=comparison.field.policy,
        primary_value=comparison.primary_value,
        secondary_value=comparison.secondary_value,
        differs=comparison.differs,
        auto_resolved=comparison.auto_resolved,
        requires_resolution=comparison.requires_resolution,
        proposed_value=None if comparison.requires_resolution else merged_value(comparison),
    )
