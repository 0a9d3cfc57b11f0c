from typing import Dict, List, Optional
from pydantic import BaseModel
from datetime import date, datetime
from quarry_ledger.schemas.receipt import ReceiptResponse


class AgingBuckets(BaseModel):
    days_0_7: float = 0.0
    days_8_30: float = 0.0
    days_30_plus: float = 0.0


class OwnerCredit(BaseModel):
    truck_owner: str
    pending_receipts: int
    total_credit: float
    oldest_date: datetime
    latest_date: datetime
    aging: AgingBuckets


class CreditReport(BaseModel):
    as_of: datetime
    owners: List[OwnerCredit]
    grand_total: float
    total_customers: int
    aging: AgingBuckets


class DailyTotals(BaseModel):
    total_transactions: int = 0
    total_amount: float = 0.0
    total_cash: float = 0.0
    total_credit: float = 0.0
    total_deposit: float = 0.0
    total_brass: float = 0.0


class TopOwner(BaseModel):
    truck_owner: str
    receipts: int
    total_amount: float
    total_brass: float


class DailySummary(BaseModel):
    date: date
    totals: DailyTotals
    payment_status: Dict[str, int]
    top_owners: List[TopOwner]


class PeriodTotals(BaseModel):
    total_transactions: int = 0
    total_amount: float = 0.0
    total_cash: float = 0.0
    total_credit: float = 0.0
    total_deposit: float = 0.0
    total_brass: float = 0.0
    avg_transaction: float = 0.0
    first_receipt: Optional[datetime] = None
    last_receipt: Optional[datetime] = None


class DayTrend(BaseModel):
    day: date
    transactions: int = 0
    total_amount: float = 0.0
    cash_collected: float = 0.0
    credit_given: float = 0.0
    total_brass: float = 0.0


class CustomerTotals(BaseModel):
    truck_owner: str
    transactions: int = 0
    total_amount: float = 0.0
    cash_paid: float = 0.0
    credit_amount: float = 0.0


class VehicleTrips(BaseModel):
    vehicle_number: str
    trips: int = 0
    total_amount: float = 0.0


class StatusShare(BaseModel):
    payment_status: str
    count: int = 0
    amount: float = 0.0
    percentage: float = 0.0


class ReportPeriod(BaseModel):
    start_date: Optional[date] = None  # None means since the first receipt
    end_date: date


class FinancialSummary(BaseModel):
    period: ReportPeriod
    summary: PeriodTotals
    daily_trends: List[DayTrend]
    customer_summary: List[CustomerTotals]
    vehicle_summary: List[VehicleTrips]
    payment_trends: List[StatusShare]


class MonthlyReport(BaseModel):
    month: str  # YYYY-MM
    summary: PeriodTotals
    daily_data: List[DayTrend]
    payment_distribution: List[StatusShare]
    top_customers: List[CustomerTotals]


class ClientSummary(BaseModel):
    truck_owner: str
    total_transactions: int
    total_brass: float
    total_amount: float
    total_cash: float
    total_credit: float
    first_transaction: datetime
    last_transaction: datetime
    avg_transaction_value: float
    payment_status: List[StatusShare]
    recent_transactions: List[ReceiptResponse]


class ClientReport(BaseModel):
    period: ReportPeriod
    clients: List[ClientSummary]
    total_clients: int
