"""Table-driven field classification shared by merge preview and execution."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from customer_merge.merging.normalization import (
    is_blank,
    merge_string_lists,
    normalize_email,
    normalize_line_user_id,
    normalize_name,
    normalize_phone,
)
from customer_merge.models.customer import Customer

ResolutionChoice = Literal["primary", "secondary"]
FieldPolicy = Literal["manual", "concatenate", "union", "status"]

RESOLUTION_CHOICES: tuple[str, ...] = ("primary", "secondary")
NOTES_SEPARATOR = "\n---\n"


def _verbatim(value: Any) -> Any:
    return value


@dataclass(frozen=True, slots=True)
class MergeField:
    """One customer attribute and how a merge treats it."""

    name: str
    attribute: str
    label: str
    policy: FieldPolicy
    comparator: Callable[[Any], Any] = _verbatim

    @property
    def is_manual(self) -> bool:
        return self.policy == "manual"


MERGE_FIELDS: tuple[MergeField, ...] = (
    MergeField("name", "name", "Name", "manual", normalize_name),
    MergeField("email", "email", "Email", "manual", normalize_email),
    MergeField("line_user_id", "line_user_id", "LINE ID", "manual", normalize_line_user_id),
    MergeField("phone", "phone", "Phone", "manual", normalize_phone),
    MergeField("move_in_date", "move_in_date", "Move-in date", "manual"),
    MergeField("budget_min", "budget_min", "Budget (min)", "manual"),
    MergeField("budget_max", "budget_max", "Budget (max)", "manual"),
    MergeField("notes", "notes", "Notes", "concatenate"),
    MergeField("requirements", "requirements_json", "Requirements", "concatenate"),
    MergeField("preferred_areas", "preferred_areas_json", "Preferred areas", "union"),
    MergeField("status", "status", "Status", "status"),
)

_FIELDS_BY_NAME = {field.name: field for field in MERGE_FIELDS}

MANUAL_FIELD_NAMES: frozenset[str] = frozenset(field.name for field in MERGE_FIELDS if field.is_manual)
MERGE_FIELD_ATTRIBUTES: tuple[str, ...] = tuple(field.attribute for field in MERGE_FIELDS)


@dataclass(slots=True)
class FieldComparison:
    """Outcome of comparing one field across the primary and secondary customer."""

    field: MergeField
    primary_value: Any
    secondary_value: Any
    differs: bool
    auto_resolved: ResolutionChoice | None = None
    requires_resolution: bool = False


def get_merge_field(name: str) -> MergeField | None:
    return _FIELDS_BY_NAME.get(name)


def compare_field(field: MergeField, primary: Customer, secondary: Customer) -> FieldComparison:
    """Classify one field as equal, auto-resolvable, or needing an operator choice."""

    primary_value = getattr(primary, field.attribute)
    secondary_value = getattr(secondary, field.attribute)
    primary_blank = is_blank(primary_value)
    secondary_blank = is_blank(secondary_value)

    if primary_blank and secondary_blank:
        return FieldComparison(field, primary_value, secondary_value, differs=False)
    if primary_blank != secondary_blank:
        auto: ResolutionChoice | None = None
        if field.is_manual:
            auto = "secondary" if primary_blank else "primary"
        return FieldComparison(field, primary_value, secondary_value, differs=True, auto_resolved=auto)

    differs = _comparable(field, primary_value) != _comparable(field, secondary_value)
    return FieldComparison(
        field,
        primary_value,
        secondary_value,
        differs=differs,
        requires_resolution=differs and field.is_manual,
    )


def compare_customers(primary: Customer, secondary: Customer) -> list[FieldComparison]:
    return [compare_field(field, primary, secondary) for field in MERGE_FIELDS]


def unresolved_fields(
    comparisons: list[FieldComparison],
    field_resolutions: Mapping[str, str],
) -> list[str]:
    """Names of fields that need an operator choice but have none."""

    return [
        comparison.field.name
        for comparison in comparisons
        if comparison.requires_resolution and comparison.field.name not in field_resolutions
    ]


def invalid_resolutions(field_resolutions: Mapping[str, str]) -> dict[str, str]:
    """Return resolutions that name a non-manual field or an unknown choice."""

    invalid: dict[str, str] = {}
    for name, choice in field_resolutions.items():
        if name not in MANUAL_FIELD_NAMES:
            invalid[name] = "field is not resolvable"
        elif choice not in RESOLUTION_CHOICES:
            invalid[name] = f"choice must be one of {', '.join(RESOLUTION_CHOICES)}"
    return invalid


def compute_merged_values(
    comparisons: list[FieldComparison],
    field_resolutions: Mapping[str, str],
) -> dict[str, Any]:
    """Return ``{attribute: value}`` to write onto the primary customer."""

    values: dict[str, Any] = {}
    for comparison in comparisons:
        values[comparison.field.attribute] = merged_value(comparison, field_resolutions.get(comparison.field.name))
    return values


def merged_value(comparison: FieldComparison, choice: str | None = None) -> Any:
    field = comparison.field
    primary_value = comparison.primary_value
    secondary_value = comparison.secondary_value

    if field.policy == "manual":
        side = choice or comparison.auto_resolved or "primary"
        return secondary_value if side == "secondary" else primary_value
    if field.policy == "concatenate":
        if isinstance(primary_value, list) or isinstance(secondary_value, list):
            return merge_string_lists(primary_value, secondary_value)
        return concatenate_text(primary_value, secondary_value)
    if field.policy == "union":
        return merge_string_lists(primary_value, secondary_value)
    if primary_value == "active" or secondary_value == "active":
        return "active"
    return primary_value


def concatenate_text(*parts: str | None) -> str | None:
    """Join non-blank text parts, dropping exact repeats.

    A single surviving part is returned unchanged.
    """

    kept: list[str] = []
    seen: set[str] = set()
    for part in parts:
        if part is None or is_blank(part):
            continue
        key = part.strip()
        if key in seen:
            continue
        seen.add(key)
        kept.append(part)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return NOTES_SEPARATOR.join(part.strip() for part in kept)


def _comparable(field: MergeField, value: Any) -> Any:
    if isinstance(value, list):
        return sorted(str(item).strip().lower() for item in value)
    return field.comparator(value)
