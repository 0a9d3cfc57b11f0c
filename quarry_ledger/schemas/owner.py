from typing import Any, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from quarry_ledger.models.base import ObjectIdStr


class OwnerSave(BaseModel):
    """Create-or-update by name."""
    name: Optional[str] = None
    vehicle_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_partner: Optional[bool] = None
    partner_rate: Optional[float] = Field(None, ge=0)
    credit_limit: Optional[float] = Field(None, ge=0)


class OwnerUpdate(BaseModel):
    vehicle_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    partner_rate: Optional[float] = Field(None, ge=0)
    credit_limit: Optional[float] = Field(None, ge=0)


class PartnerStatusUpdate(BaseModel):
    is_partner: bool
    partner_rate: Optional[float] = Field(None, ge=0)


class OwnerResponse(BaseModel):
    id: ObjectIdStr
    name: str
    vehicle_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_partner: bool
    partner_rate: Optional[float] = None
    deposit_balance: float
    credit_limit: float
    payment_type: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RateQuoteResponse(BaseModel):
    owner_type: str
    rate: float
    applied_rate: float


class DepositAmount(BaseModel):
    amount: Any = None
    notes: Optional[str] = None


class DepositTransactionResponse(BaseModel):
    id: ObjectIdStr
    owner_id: ObjectIdStr
    type: str
    amount: float
    previous_balance: float
    new_balance: float
    receipt_no: Optional[str] = None
    notes: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}


class DepositReconciliation(BaseModel):
    owner_id: str
    owner_name: str
    stored_balance: float
    ledger_balance: float
    entries: int
    consistent: bool


class OwnerTypeStats(BaseModel):
    owners: int = 0
    receipts: int = 0
    total_amount: float = 0.0
    total_brass: float = 0.0


class PartnerStatsResponse(BaseModel):
    partner: OwnerTypeStats
    regular: OwnerTypeStats
