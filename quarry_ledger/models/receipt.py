from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from quarry_ledger.models.base import MongoModel, PyObjectId, utcnow


class PaymentStatus(str, Enum):
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit"
    DEPOSIT = "deposit"


class OwnerType(str, Enum):
    REGULAR = "regular"
    PARTNER = "partner"


class Receipt(MongoModel):
    """
    One gate pass.

    Invariant: cash_paid + deposit_deducted + credit_amount == total_amount.
    A negative credit_amount is an overpayment and is stored as-is.
    """
    receipt_no: str
    receipt_seq: Optional[int] = None  # trailing digits of receipt_no

    truck_owner: str
    owner_id: Optional[PyObjectId] = None
    vehicle_number: str
    date_time: datetime = Field(default_factory=utcnow)

    brass_qty: float
    rate: float  # effective rate billed
    applied_rate: float  # rate before manual override
    loading_charge: float = 0.0

    total_amount: float
    cash_paid: float = 0.0
    deposit_deducted: float = 0.0
    credit_amount: float = 0.0

    payment_status: PaymentStatus
    payment_method: PaymentMethod
    owner_type: OwnerType = OwnerType.REGULAR

    notes: str = ""
    is_active: bool = True


class CreditPayment(MongoModel):
    """Cash collected against an outstanding receipt after it was issued."""
    receipt_id: PyObjectId
    receipt_no: str
    amount_paid: float
    payment_date: datetime = Field(default_factory=utcnow)
    payment_mode: Optional[str] = None
    reference_no: Optional[str] = None
