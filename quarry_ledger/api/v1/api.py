from fastapi import APIRouter
from quarry_ledger.api.v1.endpoints import auth, expenses, owners, receipts, reports, settings

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(owners.router, prefix="/owners", tags=["owners"])
api_router.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
