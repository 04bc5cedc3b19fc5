"""Duplicate detection routes."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from customer_merge.db.dependencies import RequestContext, get_db, get_request_context
from customer_merge.routers.errors import to_http_exception
from customer_merge.schemas.common import ApiResponse
from customer_merge.schemas.duplicates import DuplicateCandidate, DuplicatePair
from customer_merge.services.duplicates import find_duplicate_pairs, find_duplicates
from customer_merge.services.errors import MergeServiceError

router = APIRouter(prefix="/customers")


@router.get("/duplicates", response_model=ApiResponse[list[DuplicatePair]])
def get_duplicate_pairs(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[list[DuplicatePair]]:
    """Scan the tenant for undismissed duplicate pairs."""

    return ApiResponse(data=find_duplicate_pairs(db, tenant_id=context.tenant_id))


@router.get("/{customer_id}/duplicates", response_model=ApiResponse[list[DuplicateCandidate]])
def get_customer_duplicates(
    customer_id: int = Path(..., ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[list[DuplicateCandidate]]:
    """Rank likely duplicates of one customer."""

    try:
        candidates = find_duplicates(db, customer_id, tenant_id=context.tenant_id)
    except MergeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=candidates)
