from fastapi import Depends

from quarry_ledger.db.mongo import get_db
from quarry_ledger.repositories.store import LedgerStore
from quarry_ledger.services.deposit_service import DepositService
from quarry_ledger.services.expense_service import ExpenseService
from quarry_ledger.services.owner_service import OwnerService
from quarry_ledger.services.receipt_service import ReceiptService
from quarry_ledger.services.report_service import ReportService


def get_store(db=Depends(get_db)) -> LedgerStore:
    return LedgerStore.for_database(db)


def get_receipt_service(store: LedgerStore = Depends(get_store)) -> ReceiptService:
    # Settings are read once per request when the receipt is created
    return ReceiptService(store)


def get_deposit_service(store: LedgerStore = Depends(get_store)) -> DepositService:
    return DepositService(store)


def get_owner_service(store: LedgerStore = Depends(get_store)) -> OwnerService:
    return OwnerService(store)


def get_report_service(store: LedgerStore = Depends(get_store)) -> ReportService:
    return ReportService(store)


def get_expense_service(store: LedgerStore = Depends(get_store)) -> ExpenseService:
    return ExpenseService(store)
