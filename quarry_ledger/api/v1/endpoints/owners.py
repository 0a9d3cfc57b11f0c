from typing import List, Optional
from fastapi import APIRouter, Depends, status
from quarry_ledger.api.deps import get_deposit_service, get_owner_service, get_report_service
from quarry_ledger.core.auth import get_current_user
from quarry_ledger.models.deposit import DepositTransactionType
from quarry_ledger.schemas.owner import (
    DepositAmount,
    DepositReconciliation,
    DepositTransactionResponse,
    OwnerResponse,
    OwnerSave,
    OwnerUpdate,
    PartnerStatsResponse,
    PartnerStatusUpdate,
    RateQuoteResponse,
)
from quarry_ledger.services.deposit_service import DepositService
from quarry_ledger.services.owner_service import OwnerService
from quarry_ledger.services.report_service import ReportService

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/", response_model=List[OwnerResponse])
async def list_owners(
    is_partner: Optional[bool] = None,
    service: OwnerService = Depends(get_owner_service)
):
    """List active truck owners by name"""
    owners = await service.list_owners(is_partner)
    return [OwnerResponse.model_validate(o) for o in owners]


@router.get("/partner-stats", response_model=PartnerStatsResponse)
async def partner_stats(service: ReportService = Depends(get_report_service)):
    return await service.partner_stats()


@router.get("/by-name/{name}", response_model=Optional[OwnerResponse])
async def get_owner_by_name(
    name: str,
    service: OwnerService = Depends(get_owner_service)
):
    """Active owner with this name, or null"""
    owner = await service.get_by_name(name)
    return OwnerResponse.model_validate(owner) if owner else None


@router.get("/by-name/{name}/rate", response_model=RateQuoteResponse)
async def quote_rate(
    name: str,
    service: OwnerService = Depends(get_owner_service)
):
    """Rate to pre-fill on a new receipt for this owner"""
    quote = await service.quote_rate(name)
    return RateQuoteResponse(owner_type=quote.owner_type.value, rate=quote.rate, applied_rate=quote.applied_rate)


@router.post("/", response_model=OwnerResponse)
async def save_owner(
    owner_in: OwnerSave,
    service: OwnerService = Depends(get_owner_service)
):
    """Create an owner or update the one with the same name"""
    return OwnerResponse.model_validate(await service.save_owner(owner_in))


@router.put("/{owner_id}", response_model=OwnerResponse)
async def update_owner(
    owner_id: str,
    update: OwnerUpdate,
    service: OwnerService = Depends(get_owner_service)
):
    return OwnerResponse.model_validate(await service.update_owner(owner_id, update))


@router.put("/{owner_id}/partner", response_model=OwnerResponse)
async def set_partner_status(
    owner_id: str,
    update: PartnerStatusUpdate,
    service: OwnerService = Depends(get_owner_service)
):
    return OwnerResponse.model_validate(await service.set_partner_status(owner_id, update))


@router.delete("/{owner_id}", response_model=OwnerResponse)
async def deactivate_owner(
    owner_id: str,
    service: OwnerService = Depends(get_owner_service)
):
    """Deactivate an owner; history is kept"""
    return OwnerResponse.model_validate(await service.deactivate_owner(owner_id))


# ===== DEPOSITS =====

@router.post(
    "/{owner_id}/deposit/{transaction_type}",
    response_model=DepositTransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_deposit_transaction(
    owner_id: str,
    transaction_type: DepositTransactionType,
    body: DepositAmount,
    service: DepositService = Depends(get_deposit_service)
):
    """Add to or deduct from an owner's deposit"""
    txn = await service.record_transaction(owner_id, transaction_type.value, body.amount, body.notes)
    return DepositTransactionResponse.model_validate(txn)


@router.put("/{owner_id}/deposit", response_model=Optional[DepositTransactionResponse])
async def set_deposit_balance(
    owner_id: str,
    body: DepositAmount,
    service: DepositService = Depends(get_deposit_service)
):
    """Bring the deposit to an exact amount; null when already there"""
    txn = await service.set_balance(owner_id, body.amount, body.notes)
    return DepositTransactionResponse.model_validate(txn) if txn else None


@router.get("/{owner_id}/deposit/transactions", response_model=List[DepositTransactionResponse])
async def list_deposit_transactions(
    owner_id: str,
    service: DepositService = Depends(get_deposit_service)
):
    """Deposit ledger, newest first"""
    txns = await service.list_transactions(owner_id)
    return [DepositTransactionResponse.model_validate(t) for t in txns]


@router.get("/{owner_id}/deposit/reconcile", response_model=DepositReconciliation)
async def reconcile_deposit(
    owner_id: str,
    service: DepositService = Depends(get_deposit_service)
):
    return await service.reconcile(owner_id)
