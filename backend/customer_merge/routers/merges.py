"""Merge preview, execution, history and undo routes."""

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from customer_merge.config import get_settings
from customer_merge.db.dependencies import RequestContext, get_db, get_request_context
from customer_merge.routers.errors import to_http_exception
from customer_merge.schemas.common import ApiResponse
from customer_merge.schemas.merges import (
    MergeHistoryResponse,
    MergePreview,
    MergeRecordRead,
    MergeRequest,
    UndoResult,
)
from customer_merge.services.errors import MergeServiceError
from customer_merge.services.merge_executor import execute_merge
from customer_merge.services.merge_history import get_merge, list_merges
from customer_merge.services.merge_preview import build_merge_preview
from customer_merge.services.merge_undo import undo_merge

MergeStatusParam = Literal["completed", "undone"]

router = APIRouter()


@router.get("/customers/{primary_id}/merge-preview", response_model=ApiResponse[MergePreview])
def get_merge_preview(
    primary_id: int = Path(..., ge=1),
    secondary_id: int = Query(..., ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[MergePreview]:
    """Show the field diff and related-record counts for a prospective merge."""

    try:
        preview = build_merge_preview(
            db,
            tenant_id=context.tenant_id,
            primary_id=primary_id,
            secondary_id=secondary_id,
        )
    except MergeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=preview)


@router.post("/customers/{primary_id}/merge", response_model=ApiResponse[MergeRecordRead], status_code=201)
def create_merge(
    payload: MergeRequest,
    primary_id: int = Path(..., ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[MergeRecordRead]:
    """Merge the secondary customer into the primary."""

    try:
        merge_record = execute_merge(
            db,
            tenant_id=context.tenant_id,
            primary_id=primary_id,
            secondary_id=payload.secondary_id,
            field_resolutions=payload.field_resolutions,
            actor=context.actor,
            merge_reason=payload.merge_reason,
        )
    except MergeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=MergeRecordRead.model_validate(merge_record))


@router.get("/customer-merges", response_model=ApiResponse[MergeHistoryResponse])
def get_merge_history(
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
    status: MergeStatusParam | None = Query(default=None),
    customer_id: int | None = Query(default=None, ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[MergeHistoryResponse]:
    """List merges newest first."""

    payload = list_merges(
        db,
        tenant_id=context.tenant_id,
        limit=min(limit, get_settings().merge_history_max_page_size),
        offset=offset,
        status=status,
        customer_id=customer_id,
    )
    return ApiResponse(data=payload)


@router.get("/customer-merges/{merge_id}", response_model=ApiResponse[MergeRecordRead])
def get_merge_record(
    merge_id: int = Path(..., ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[MergeRecordRead]:
    """Return one merge audit record."""

    try:
        merge_record = get_merge(db, tenant_id=context.tenant_id, merge_id=merge_id)
    except MergeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=MergeRecordRead.model_validate(merge_record))


@router.post("/customer-merges/{merge_id}/undo", response_model=ApiResponse[UndoResult])
def post_undo_merge(
    merge_id: int = Path(..., ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ApiResponse[UndoResult]:
    """Reverse a completed merge."""

    try:
        merge_record = undo_merge(db, tenant_id=context.tenant_id, merge_id=merge_id, actor=context.actor)
    except MergeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(
        data=UndoResult(
            merge_id=merge_record.id,
            status="undone",
            restored_customer_id=merge_record.secondary_customer_id,
        )
    )
