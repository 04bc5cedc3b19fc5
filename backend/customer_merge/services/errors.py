"""Error taxonomy for duplicate detection, dismissal and merge operations."""

from __future__ import annotations

from typing import Any


class MergeServiceError(RuntimeError):
    """Base error carrying a stable code and structured detail for callers."""

    code = "merge_error"
    status_code = 400

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.detail}


class CustomerNotFound(MergeServiceError):
    """Raised when a customer id does not exist in the caller's tenant."""

    code = "customer_not_found"
    status_code = 404


class InvalidMergeTarget(MergeServiceError):
    """Raised for self-merges, cross-tenant pairs, or already merged customers."""

    code = "invalid_merge_target"
    status_code = 422


class InvalidFieldResolution(MergeServiceError):
    """Raised when a field resolution names an unknown field or choice."""

    code = "invalid_field_resolution"
    status_code = 422


class UnresolvedFieldConflict(MergeServiceError):
    """Raised when conflicting identity fields lack an operator resolution."""

    code = "unresolved_field_conflict"
    status_code = 422

    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"Resolution required for: {', '.join(fields)}", fields=list(fields))
        self.fields = list(fields)


class UniqueFieldConflict(MergeServiceError):
    """Raised when a resolved contact value already belongs to another customer."""

    code = "unique_field_conflict"
    status_code = 409


class AlreadyDismissed(MergeServiceError):
    code = "already_dismissed"
    status_code = 409


class DismissalNotFound(MergeServiceError):
    code = "dismissal_not_found"
    status_code = 404


class MergeNotFound(MergeServiceError):
    code = "merge_not_found"
    status_code = 404


class AlreadyUndone(MergeServiceError):
    code = "already_undone"
    status_code = 409


class StorageFailure(MergeServiceError):
    """Raised after a backing-store error rolled the transaction back."""

    code = "storage_failure"
    status_code = 503
