from datetime import date
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Query, status
from quarry_ledger.api.deps import get_expense_service
from quarry_ledger.core.auth import get_current_user, require_admin
from quarry_ledger.models.user import User
from quarry_ledger.schemas.expense import (
    DailyExpenseReport,
    ExpenseCategoryResponse,
    ExpenseCreate,
    ExpenseFilters,
    ExpenseResponse,
    ExpenseSummary,
    ExpenseUpdate,
    MonthlyExpenseReport,
)
from quarry_ledger.services.expense_service import ExpenseService

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/", response_model=List[ExpenseResponse])
async def list_expenses(
    filters: Annotated[ExpenseFilters, Query()],
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    """List expenses visible to the caller, newest first"""
    expenses = await service.list_expenses(filters, current_user)
    return [ExpenseResponse.model_validate(e) for e in expenses]


@router.get("/categories", response_model=List[ExpenseCategoryResponse])
async def list_categories(service: ExpenseService = Depends(get_expense_service)):
    return await service.list_categories()


@router.get("/summary", response_model=ExpenseSummary)
async def expense_summary(service: ExpenseService = Depends(get_expense_service)):
    """Today's and this month's totals"""
    return await service.summary()


@router.get("/reports/daily", response_model=DailyExpenseReport)
async def daily_report(
    day: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    return await service.daily_report(current_user, day)


@router.get("/reports/monthly", response_model=MonthlyExpenseReport)
async def monthly_report(
    year: Optional[int] = Query(None, ge=2000, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    return await service.monthly_report(current_user, year, month)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: str,
    service: ExpenseService = Depends(get_expense_service)
):
    return ExpenseResponse.model_validate(await service.get_expense(expense_id))


@router.post("/", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_in: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    """Record an expense"""
    return ExpenseResponse.model_validate(await service.create_expense(expense_in, current_user))


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: str,
    update: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    """Creator or admin only"""
    return ExpenseResponse.model_validate(await service.update_expense(expense_id, update, current_user))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: str,
    admin: User = Depends(require_admin),
    service: ExpenseService = Depends(get_expense_service)
):
    """Admin only"""
    await service.delete_expense(expense_id)
