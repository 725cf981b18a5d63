"""API routes for receipt upload, retrieval, update and statistics.

Uploads are multipart: the image (or PDF) goes in the ``file`` part and
the structured receipt data as a JSON string in the ``payload`` part.
All routes act on behalf of the authenticated user; the service layer
rejects access to receipts owned by anyone else.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from receipt_keeper.api.dependencies import (
    get_current_user,
    get_receipt_service,
    get_settings,
    get_storage_service,
)
from receipt_keeper.core.config import Settings
from receipt_keeper.core.exceptions import ReceiptKeeperError, ValidationFailedError
from receipt_keeper.models.schemas import (
    APIResponse,
    ItemRead,
    PaginatedResponse,
    PaginationMeta,
    ReceiptCreate,
    ReceiptRead,
    ReceiptStatsRead,
    ReceiptUpdate,
    ReceiptWithItemsRead,
)
from receipt_keeper.models.tables import User
from receipt_keeper.services.receipt_service import ReceiptService, ReceiptWithItems
from receipt_keeper.services.storage_service import StorageService
from receipt_keeper.utils.helpers import total_pages

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/receipts", tags=["receipts"])


def _with_items(result: ReceiptWithItems) -> ReceiptWithItemsRead:
    # Built by hand so the ORM relationship is never lazy-loaded
    receipt = ReceiptRead.model_validate(result.receipt)
    return ReceiptWithItemsRead(
        **receipt.model_dump(),
        items=[ItemRead.model_validate(item) for item in result.items],
    )


def _parse_payload(payload: str) -> ReceiptCreate:
    try:
        return ReceiptCreate.model_validate_json(payload or "{}")
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc


@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def upload_receipt(
    file: UploadFile = File(...),
    payload: str = Form("{}"),
    user: User = Depends(get_current_user),
    service: ReceiptService = Depends(get_receipt_service),
    storage: StorageService = Depends(get_storage_service),
) -> APIResponse:
    """Upload a receipt image together with its structured data."""
    request = _parse_payload(payload)
    if not file.content_type or not (file.content_type.startswith("image/") or file.content_type == "application/pdf"):
        raise ValidationFailedError("Only image files or PDFs are allowed")

    key, original_name, size = await storage.save_upload(file, user.id)
    try:
        result = await service.create_receipt(user.id, request, key, original_name, size)
    except ReceiptKeeperError:
        # create_receipt leaves no row behind on failure, so the object is orphaned
        storage.delete(key)
        raise
    return APIResponse(success=True, message="Receipt created successfully", data=_with_items(result))


@router.get("", response_model=PaginatedResponse)
async def list_receipts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    user: User = Depends(get_current_user),
    service: ReceiptService = Depends(get_receipt_service),
    cfg: Settings = Depends(get_settings),
) -> PaginatedResponse:
    """List the current user's receipts, newest upload first."""
    limit = min(limit, cfg.MAX_PAGE_SIZE)
    receipts, total = await service.get_receipts_by_user_id(user.id, page, limit)
    return PaginatedResponse(
        data=[ReceiptRead.model_validate(r) for r in receipts],
        pagination=PaginationMeta(
            page=page,
            limit=limit,
            total_items=total,
            total_pages=total_pages(total, limit),
        ),
    )


@router.get("/stats", response_model=APIResponse)
async def receipt_stats(
    user: User = Depends(get_current_user),
    service: ReceiptService = Depends(get_receipt_service),
) -> APIResponse:
    """Spending totals over the user's completed receipts."""
    stats = await service.get_stats_by_user_id(user.id)
    return APIResponse(success=True, data=ReceiptStatsRead.model_validate(stats))


@router.get("/{receipt_id}", response_model=APIResponse)
async def get_receipt(
    receipt_id: int,
    user: User = Depends(get_current_user),
    service: ReceiptService = Depends(get_receipt_service),
) -> APIResponse:
    result = await service.get_receipt_by_id(receipt_id, user.id)
    return APIResponse(success=True, data=_with_items(result))


@router.put("/{receipt_id}", response_model=APIResponse)
async def update_receipt(
    receipt_id: int,
    receipt_in: ReceiptUpdate,
    user: User = Depends(get_current_user),
    service: ReceiptService = Depends(get_receipt_service),
) -> APIResponse:
    result = await service.update_receipt(receipt_id, user.id, receipt_in)
    return APIResponse(success=True, message="Receipt updated successfully", data=_with_items(result))


@router.delete("/{receipt_id}", response_model=APIResponse)
async def delete_receipt(
    receipt_id: int,
    user: User = Depends(get_current_user),
    service: ReceiptService = Depends(get_receipt_service),
) -> APIResponse:
    await service.delete_receipt(receipt_id, user.id)
    return APIResponse(success=True, message="Receipt deleted successfully")
