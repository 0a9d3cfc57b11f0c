import math
from typing import Annotated, List
from fastapi import APIRouter, Depends, Query, status
from quarry_ledger.api.deps import get_receipt_service
from quarry_ledger.core.auth import get_current_user
from quarry_ledger.schemas.receipt import (
    CreditPaymentResponse,
    Pagination,
    ReceiptCreate,
    ReceiptFilters,
    ReceiptListResponse,
    ReceiptPaymentUpdate,
    ReceiptResponse,
)
from quarry_ledger.services.receipt_service import ReceiptService

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/", response_model=ReceiptListResponse)
async def list_receipts(
    filters: Annotated[ReceiptFilters, Query()],
    service: ReceiptService = Depends(get_receipt_service)
):
    """List active receipts, newest first"""
    receipts, total = await service.list_receipts(filters)
    return ReceiptListResponse(
        receipts=[ReceiptResponse.model_validate(r) for r in receipts],
        pagination=Pagination(
            page=filters.page,
            limit=filters.limit,
            total=total,
            pages=math.ceil(total / filters.limit),
        ),
    )


@router.post("/", response_model=ReceiptResponse, status_code=status.HTTP_201_CREATED)
async def create_receipt(
    receipt_in: ReceiptCreate,
    service: ReceiptService = Depends(get_receipt_service)
):
    """Bill a gate pass"""
    receipt = await service.create_receipt(receipt_in)
    return ReceiptResponse.model_validate(receipt)


@router.get("/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt(
    receipt_id: str,
    service: ReceiptService = Depends(get_receipt_service)
):
    """Get a receipt by ID"""
    return ReceiptResponse.model_validate(await service.get_receipt(receipt_id))


@router.put("/{receipt_id}/payment", response_model=ReceiptResponse)
async def update_payment(
    receipt_id: str,
    update: ReceiptPaymentUpdate,
    service: ReceiptService = Depends(get_receipt_service)
):
    """Record cash collected against a receipt"""
    return ReceiptResponse.model_validate(await service.update_payment(receipt_id, update))


@router.get("/{receipt_id}/payments", response_model=List[CreditPaymentResponse])
async def list_payments(
    receipt_id: str,
    service: ReceiptService = Depends(get_receipt_service)
):
    payments = await service.list_payments(receipt_id)
    return [CreditPaymentResponse.model_validate(p) for p in payments]


@router.delete("/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_receipt(
    receipt_id: str,
    service: ReceiptService = Depends(get_receipt_service)
):
    """Soft delete a receipt"""
    await service.delete_receipt(receipt_id)
