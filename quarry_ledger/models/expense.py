"""
Quarry running expenses (labour, fuel, maintenance and the like).

Expenses are independent of the deposit ledger and the receipts. They are
hard-deleted, and only by an admin.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from quarry_ledger.models.base import MongoModel, utcnow


class ExpensePaymentMode(str, Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    UPI = "UPI"
    CHEQUE = "CHEQUE"
    CREDIT = "CREDIT"


class ExpenseStatus(str, Enum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    REJECTED = "REJECTED"


DEFAULT_EXPENSE_CATEGORIES = {
    "LABOR": "Loading and site labour",
    "FUEL": "Diesel and petrol",
    "MAINTENANCE": "Machinery and vehicle repairs",
    "OFFICE": "Stationery and office running costs",
    "TRANSPORT": "Hired transport",
    "RENT": "Land and equipment rent",
    "UTILITIES": "Electricity, water and phone",
    "FOOD": "Staff meals",
    "OTHER": "Anything else",
}


class Expense(MongoModel):
    expense_date: datetime = Field(default_factory=utcnow)  # midnight of the expense day
    category: str
    description: str
    amount: float
    payment_mode: ExpensePaymentMode = Field(ExpensePaymentMode.CASH, validate_default=True)
    receipt_number: Optional[str] = None
    vendor_name: Optional[str] = None
    ghat_location: Optional[str] = None
    approved_by: Optional[str] = None
    remarks: Optional[str] = None
    status: ExpenseStatus = Field(ExpenseStatus.APPROVED, validate_default=True)
    created_by: Optional[str] = None


class ExpenseCategory(BaseModel):
    name: str
    description: str = ""
