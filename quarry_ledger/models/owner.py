"""
Truck owner directory entry.

Owners are keyed by name. The deposit balance only moves through the deposit
ledger, and an owner is never hard-deleted (``is_active`` flips instead).
"""

from typing import Optional

from quarry_ledger.models.base import MongoModel


class PaymentType:
    CASH = "cash"
    MIXED = "mixed"


class TruckOwner(MongoModel):
    name: str
    vehicle_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    is_partner: bool = False
    partner_rate: Optional[float] = None

    deposit_balance: float = 0.0
    credit_limit: float = 0.0
    payment_type: str = PaymentType.CASH

    is_active: bool = True
