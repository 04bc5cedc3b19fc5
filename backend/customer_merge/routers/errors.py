"""Translate service errors into HTTP responses."""

from fastapi import HTTPException

from customer_merge.services.errors import MergeServiceError


def to_http_exception(exc: MergeServiceError) -> HTTPException:
    """Keep the error code and structured detail so UIs can show an actionable message."""

    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())
