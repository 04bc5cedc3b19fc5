"""Merge dismissal routes."""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from customer_merge.db.dependencies import RequestContext, get_db, get_request_context
from customer_merge.routers.errors import to_http_exception
from customer_merge.schemas.common import ApiResponse
from customer_merge.schemas.dismissals import (
    DismissalCreateRequest,
    DismissalDeleteResult,
    DismissalListItem,
    DismissalRead,
)
from customer_merge.services.dismissals import dismiss_pair, list_dismissals, undismiss_pair
from customer_merge.services.errors import MergeServiceError

router = APIRouter(prefix="/customer-merge-dismissals")


@router.post("", response_model=ApiResponse[DismissalRead], status_code=201)
def create_dismissal(
    payload: DismissalCreateRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[DismissalRead]:
    """Mark a customer pair as not duplicates."""

    try:
        dismissal = dismiss_pair(
            db,
            tenant_id=context.tenant_id,
            customer_a_id=payload.customer_a_id,
            customer_b_id=payload.customer_b_id,
            actor=context.actor,
            reason=payload.reason,
        )
    except MergeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=DismissalRead.model_validate(dismissal))


@router.delete("/{customer_a_id}/{customer_b_id}", response_model=ApiResponse[DismissalDeleteResult])
def remove_dismissal(
    customer_a_id: int = Path(..., ge=1),
    customer_b_id: int = Path(..., ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[DismissalDeleteResult]:
    """Undo a dismissal so the pair is detected again."""

    try:
        undismiss_pair(
            db,
            tenant_id=context.tenant_id,
            customer_a_id=customer_a_id,
            customer_b_id=customer_b_id,
        )
    except MergeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(
        data=DismissalDeleteResult(customer_a_id=customer_a_id, customer_b_id=customer_b_id, deleted=True)
    )


@router.get("", response_model=ApiResponse[list[DismissalListItem]])
def get_dismissals(
    customer_id: int | None = Query(default=None, ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[list[DismissalListItem]]:
    """List dismissals, optionally for one customer."""

    return ApiResponse(data=list_dismissals(db, tenant_id=context.tenant_id, customer_id=customer_id))
