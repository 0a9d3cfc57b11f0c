from dataclasses import dataclass
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from quarry_ledger.core.config import settings
from quarry_ledger.db.session import UnitOfWork
from quarry_ledger.repositories.deposit_repo import DepositRepository
from quarry_ledger.repositories.expense_repo import ExpenseRepository
from quarry_ledger.repositories.owner_repo import OwnerRepository
from quarry_ledger.repositories.receipt_repo import ReceiptRepository
from quarry_ledger.repositories.settings_repo import SettingsRepository


@dataclass
class LedgerStore:
    """Persistence port the ledger services are written against."""

    owners: OwnerRepository
    receipts: ReceiptRepository
    deposits: DepositRepository
    settings: SettingsRepository
    expenses: ExpenseRepository
    db: Optional[AsyncIOMotorDatabase] = None
    use_transactions: bool = False

    @classmethod
    def for_database(cls, db: AsyncIOMotorDatabase) -> "LedgerStore":
        return cls(
            owners=OwnerRepository(db),
            receipts=ReceiptRepository(db),
            deposits=DepositRepository(db),
            settings=SettingsRepository(db),
            expenses=ExpenseRepository(db),
            db=db,
            use_transactions=settings.MONGODB_TRANSACTIONS,
        )

    def unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self.db, use_transactions=self.use_transactions)
