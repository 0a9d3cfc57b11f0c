"""
Deposit ledger entry.

Append-only: entries are never edited. For every owner the ``new_balance`` of
the latest entry equals the owner's stored ``deposit_balance``.
"""

from enum import Enum
from typing import Optional

from quarry_ledger.models.base import MongoModel, PyObjectId


class DepositTransactionType(str, Enum):
    ADD = "add"
    DEDUCT = "deduct"


class DepositTransaction(MongoModel):
    owner_id: PyObjectId
    type: DepositTransactionType
    amount: float  # always > 0
    previous_balance: float
    new_balance: float
    receipt_no: Optional[str] = None
    notes: str = ""
