"""Field classification and normalization for customer merges."""

from customer_merge.merging.fields import (
    MERGE_FIELDS,
    FieldComparison,
    MergeField,
    compare_customers,
    compute_merged_values,
    get_merge_field,
)

__all__ = [
    "MERGE_FIELDS",
    "FieldComparison",
    "MergeField",
    "compare_customers",
    "compute_merged_values",
    "get_merge_field",
]
