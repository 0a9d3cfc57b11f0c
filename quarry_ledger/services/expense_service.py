import logging
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from quarry_ledger.core.config import settings
from quarry_ledger.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from quarry_ledger.models.base import utcnow
from quarry_ledger.models.expense import Expense, ExpenseCategory
from quarry_ledger.models.user import User, UserRole
from quarry_ledger.repositories.store import LedgerStore
from quarry_ledger.schemas.expense import (
    CategoryTotal,
    DailyExpenseReport,
    DayExpenseTotal,
    ExpenseCreate,
    ExpenseFilters,
    ExpenseResponse,
    ExpenseSummary,
    ExpenseUpdate,
    MonthlyExpenseReport,
)
from quarry_ledger.utils.dates import day_start, month_bounds
from quarry_ledger.utils.receipt_validation import coerce_number, to_money

logger = logging.getLogger(__name__)


def category_totals(expenses: Iterable[Expense]) -> List[CategoryTotal]:
    totals: Dict[str, CategoryTotal] = {}
    for expense in expenses:
        row = totals.setdefault(expense.category, CategoryTotal(category=expense.category))
        row.count += 1
        row.total = to_money(row.total + expense.amount)
    return sorted(totals.values(), key=lambda row: row.total, reverse=True)


class ExpenseService:
    """Quarry running expenses. Non-admin users see their own entries plus the admin's."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def list_expenses(self, filters: ExpenseFilters, user: User) -> List[Expense]:
        return await self.store.expenses.list_expenses(
            start=day_start(filters.start_date) if filters.start_date else None,
            end=day_start(filters.end_date + timedelta(days=1)) if filters.end_date else None,
            category=filters.category,
            ghat_location=filters.ghat_location,
            visible_to=self._visible_to(user),
        )

    async def list_categories(self) -> List[ExpenseCategory]:
        return await self.store.expenses.list_categories()

    async def get_expense(self, expense_id: str) -> Expense:
        expense = await self.store.expenses.get(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found")
        return expense

    async def create_expense(self, expense_in: ExpenseCreate, user: User) -> Expense:
        fields = expense_in.model_dump(exclude={"expense_date"})
        fields.update(self._clean(fields))
        self._require_text(fields, "category", "description")

        expense = Expense(
            **fields,
            expense_date=day_start(expense_in.expense_date or utcnow().date()),
            created_by=user.username,
        )
        await self.store.expenses.insert(expense)
        logger.info("Expense %.2f (%s) recorded by %s", expense.amount, expense.category, user.username)
        return expense

    async def update_expense(self, expense_id: str, update: ExpenseUpdate, user: User) -> Expense:
        expense = await self.get_expense(expense_id)
        if user.role != UserRole.ADMIN and expense.created_by != user.username:
            raise PermissionDeniedError("Only the creator or an admin can change this expense")

        fields = {k: v for k, v in update.model_dump(exclude_unset=True).items() if v is not None}
        fields.update(self._clean(fields))
        self._require_text(fields, *(key for key in ("category", "description") if key in fields))
        if "expense_date" in fields:
            fields["expense_date"] = day_start(fields["expense_date"])

        updated = await self.store.expenses.update(expense.id, fields)
        if updated is None:
            raise NotFoundError("Expense not found")
        logger.info("Expense %s updated by %s", expense_id, user.username)
        return updated

    async def delete_expense(self, expense_id: str) -> None:
        if not await self.store.expenses.delete(expense_id):
            raise NotFoundError("Expense not found")
        logger.info("Expense %s deleted", expense_id)

    async def summary(self, today: Optional[date] = None) -> ExpenseSummary:
        """Today's and this month's totals plus the month's category breakdown."""
        today = today or utcnow().date()
        month = await self.store.expenses.list_expenses(start=day_start(today.replace(day=1)))
        todays = [e for e in month if e.expense_date.date() == today]
        return ExpenseSummary(
            today_total=to_money(sum(e.amount for e in todays)),
            month_total=to_money(sum(e.amount for e in month)),
            category_monthly=category_totals(month),
            last_updated=utcnow(),
        )

    async def daily_report(self, user: User, day: Optional[date] = None) -> DailyExpenseReport:
        day = day or utcnow().date()
        expenses = await self.store.expenses.list_expenses(
            start=day_start(day), end=day_start(day + timedelta(days=1)), visible_to=self._visible_to(user)
        )
        expenses.sort(key=lambda e: (e.category, -e.amount))
        return DailyExpenseReport(
            day=day,
            expenses=[ExpenseResponse.model_validate(e) for e in expenses],
            total_count=len(expenses),
            total_amount=to_money(sum(e.amount for e in expenses)),
            category_breakdown=category_totals(expenses),
        )

    async def monthly_report(
        self, user: User, year: Optional[int] = None, month: Optional[int] = None
    ) -> MonthlyExpenseReport:
        today = utcnow().date()
        year = year or today.year
        month = month or today.month
        first, following = month_bounds(year, month)
        expenses = await self.store.expenses.list_expenses(
            start=day_start(first), end=day_start(following), visible_to=self._visible_to(user)
        )
        expenses.sort(key=lambda e: (e.expense_date, e.category))

        by_day: Dict[date, DayExpenseTotal] = {}
        for expense in expenses:
            day = expense.expense_date.date()
            row = by_day.setdefault(day, DayExpenseTotal(day=day))
            row.count += 1
            row.total = to_money(row.total + expense.amount)

        monthly_total = to_money(sum(e.amount for e in expenses))
        return MonthlyExpenseReport(
            period=f"{year}-{month:02d}",
            expenses=[ExpenseResponse.model_validate(e) for e in expenses],
            monthly_total=monthly_total,
            total_expenses=len(expenses),
            daily_totals=list(by_day.values()),
            category_totals=category_totals(expenses),
            average_daily=to_money(monthly_total / len(by_day)) if by_day else 0.0,
            start_date=first,
            end_date=following - timedelta(days=1),
        )

    # ===== PRIVATE HELPERS =====

    @staticmethod
    def _visible_to(user: User) -> Optional[List[str]]:
        if user.role == UserRole.ADMIN:
            return None
        return [user.username, settings.DEFAULT_ADMIN_USERNAME]

    @staticmethod
    def _clean(fields: dict) -> dict:
        cleaned = {}
        for key, value in fields.items():
            if isinstance(value, Enum):
                cleaned[key] = value.value
            elif isinstance(value, str):
                cleaned[key] = value.strip()
        if "amount" in fields:
            amount = to_money(coerce_number(fields["amount"]))
            if amount <= 0:
                raise ValidationError("Amount must be greater than 0")
            cleaned["amount"] = amount
        return cleaned

    @staticmethod
    def _require_text(fields: dict, *keys: str) -> None:
        missing = [key for key in keys if not fields.get(key)]
        if missing:
            raise ValidationError(f"Required: {', '.join(missing)}")
