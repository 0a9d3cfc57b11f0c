from typing import Any, List, Optional
from pydantic import BaseModel, Field
from datetime import date, datetime
from quarry_ledger.models.base import ObjectIdStr
from quarry_ledger.models.expense import ExpensePaymentMode, ExpenseStatus


class ExpenseCreate(BaseModel):
    """Amount is coerced by the service so a blank form value is a 400, not a 422."""
    expense_date: Optional[date] = None  # defaults to today (UTC)
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Any = None
    payment_mode: ExpensePaymentMode = ExpensePaymentMode.CASH
    receipt_number: Optional[str] = None
    vendor_name: Optional[str] = None
    ghat_location: Optional[str] = None
    approved_by: Optional[str] = None
    remarks: Optional[str] = None


class ExpenseUpdate(BaseModel):
    expense_date: Optional[date] = None
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Any = None
    payment_mode: Optional[ExpensePaymentMode] = None
    receipt_number: Optional[str] = None
    vendor_name: Optional[str] = None
    ghat_location: Optional[str] = None
    approved_by: Optional[str] = None
    remarks: Optional[str] = None
    status: Optional[ExpenseStatus] = None


class ExpenseFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category: Optional[str] = None
    ghat_location: Optional[str] = None


class ExpenseResponse(BaseModel):
    id: ObjectIdStr
    expense_date: datetime
    category: str
    description: str
    amount: float
    payment_mode: str
    receipt_number: Optional[str] = None
    vendor_name: Optional[str] = None
    ghat_location: Optional[str] = None
    approved_by: Optional[str] = None
    remarks: Optional[str] = None
    status: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ExpenseCategoryResponse(BaseModel):
    name: str
    description: str = ""

    model_config = {"from_attributes": True}


class CategoryTotal(BaseModel):
    category: str
    count: int = 0
    total: float = 0.0


class DayExpenseTotal(BaseModel):
    day: date
    count: int = 0
    total: float = 0.0


class ExpenseSummary(BaseModel):
    today_total: float
    month_total: float
    category_monthly: List[CategoryTotal]
    last_updated: datetime


class DailyExpenseReport(BaseModel):
    day: date
    expenses: List[ExpenseResponse]
    total_count: int
    total_amount: float
    category_breakdown: List[CategoryTotal]


class MonthlyExpenseReport(BaseModel):
    period: str  # YYYY-MM
    expenses: List[ExpenseResponse]
    monthly_total: float
    total_expenses: int
    daily_totals: List[DayExpenseTotal]
    category_totals: List[CategoryTotal]
    average_daily: float = Field(0.0, description="Monthly total over days that had expenses")
    start_date: date
    end_date: date
