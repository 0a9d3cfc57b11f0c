from typing import Any, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from quarry_ledger.models.base import ObjectIdStr


class ReceiptCreate(BaseModel):
    """
    Gate pass as entered at the weighbridge.

    Numeric fields are taken as-is and coerced by the ledger engine, so blank
    or malformed form values count as 0 instead of failing schema validation.
    """
    truck_owner: Optional[str] = None
    vehicle_number: Optional[str] = None
    brass_qty: Any = None
    rate: Any = None
    loading_charge: Any = 0
    cash_paid: Any = 0
    payment_method: Optional[str] = None  # cash | credit | deposit
    deposit_deducted: Any = None
    owner_type: Optional[str] = None  # regular | partner
    applied_rate: Any = None
    notes: Optional[str] = None
    date_time: Optional[datetime] = None
    receipt_no: Optional[str] = None


class ReceiptPaymentUpdate(BaseModel):
    cash_paid: Any = None
    payment_status: Optional[str] = None  # ignored, always recomputed
    notes: Optional[str] = None
    payment_mode: Optional[str] = None
    reference_no: Optional[str] = None


class ReceiptFilters(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    truck_owner: Optional[str] = None
    vehicle_number: Optional[str] = None
    payment_status: Optional[str] = None
    owner_type: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(100, ge=1, le=1000)


class ReceiptResponse(BaseModel):
    id: ObjectIdStr
    receipt_no: str
    truck_owner: str
    owner_id: Optional[ObjectIdStr] = None
    vehicle_number: str
    date_time: datetime
    brass_qty: float
    rate: float
    applied_rate: float
    loading_charge: float
    total_amount: float
    cash_paid: float
    deposit_deducted: float
    credit_amount: float
    payment_status: str
    payment_method: str
    owner_type: str
    notes: str = ""
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ReceiptListResponse(BaseModel):
    receipts: List[ReceiptResponse]
    pagination: Pagination


class CreditPaymentResponse(BaseModel):
    id: ObjectIdStr
    receipt_id: ObjectIdStr
    receipt_no: str
    amount_paid: float
    payment_date: datetime
    payment_mode: Optional[str] = None
    reference_no: Optional[str] = None

    model_config = {"from_attributes": True}
