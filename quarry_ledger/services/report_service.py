from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from quarry_ledger.core.exceptions import ValidationError
from quarry_ledger.models.base import to_naive_utc, utcnow
from quarry_ledger.models.receipt import OwnerType, PaymentStatus, Receipt
from quarry_ledger.repositories.store import LedgerStore
from quarry_ledger.schemas.owner import OwnerTypeStats, PartnerStatsResponse
from quarry_ledger.schemas.receipt import ReceiptResponse
from quarry_ledger.schemas.report import (
    AgingBuckets,
    ClientReport,
    ClientSummary,
    CreditReport,
    CustomerTotals,
    DailySummary,
    DailyTotals,
    DayTrend,
    FinancialSummary,
    MonthlyReport,
    OwnerCredit,
    PeriodTotals,
    ReportPeriod,
    StatusShare,
    TopOwner,
    VehicleTrips,
)
from quarry_ledger.utils.dates import day_start, month_bounds
from quarry_ledger.utils.receipt_validation import to_money

TOP_OWNERS = 10
TOP_MONTHLY_CUSTOMERS = 5
RECENT_PER_CLIENT = 5
FINANCIAL_WINDOW_DAYS = 30


def _add_to_bucket(buckets: AgingBuckets, age: timedelta, amount: float) -> None:
    if age.days <= 7:
        buckets.days_0_7 = to_money(buckets.days_0_7 + amount)
    elif age.days <= 30:
        buckets.days_8_30 = to_money(buckets.days_8_30 + amount)
    else:
        buckets.days_30_plus = to_money(buckets.days_30_plus + amount)


def _period_totals(receipts: List[Receipt]) -> PeriodTotals:
    totals = PeriodTotals(total_transactions=len(receipts))
    for receipt in receipts:
        totals.total_amount = to_money(totals.total_amount + receipt.total_amount)
        totals.total_cash = to_money(totals.total_cash + receipt.cash_paid)
        totals.total_credit = to_money(totals.total_credit + receipt.credit_amount)
        totals.total_deposit = to_money(totals.total_deposit + receipt.deposit_deducted)
        totals.total_brass = round(totals.total_brass + receipt.brass_qty, 3)
    if receipts:
        totals.avg_transaction = to_money(totals.total_amount / len(receipts))
        totals.first_receipt = min(r.date_time for r in receipts)
        totals.last_receipt = max(r.date_time for r in receipts)
    return totals


def _daily_trends(receipts: Iterable[Receipt]) -> List[DayTrend]:
    by_day: Dict[date, DayTrend] = {}
    for receipt in receipts:
        day = receipt.date_time.date()
        row = by_day.setdefault(day, DayTrend(day=day))
        row.transactions += 1
        row.total_amount = to_money(row.total_amount + receipt.total_amount)
        row.cash_collected = to_money(row.cash_collected + receipt.cash_paid)
        row.credit_given = to_money(row.credit_given + receipt.credit_amount)
        row.total_brass = round(row.total_brass + receipt.brass_qty, 3)
    return [by_day[day] for day in sorted(by_day)]


def _customer_totals(receipts: Iterable[Receipt]) -> List[CustomerTotals]:
    by_owner: Dict[str, CustomerTotals] = {}
    for receipt in receipts:
        row = by_owner.setdefault(receipt.truck_owner, CustomerTotals(truck_owner=receipt.truck_owner))
        row.transactions += 1
        row.total_amount = to_money(row.total_amount + receipt.total_amount)
        row.cash_paid = to_money(row.cash_paid + receipt.cash_paid)
        row.credit_amount = to_money(row.credit_amount + receipt.credit_amount)
    return sorted(by_owner.values(), key=lambda row: row.total_amount, reverse=True)


def _vehicle_trips(receipts: Iterable[Receipt]) -> List[VehicleTrips]:
    by_vehicle: Dict[str, VehicleTrips] = {}
    for receipt in receipts:
        row = by_vehicle.setdefault(receipt.vehicle_number, VehicleTrips(vehicle_number=receipt.vehicle_number))
        row.trips += 1
        row.total_amount = to_money(row.total_amount + receipt.total_amount)
    return sorted(by_vehicle.values(), key=lambda row: row.trips, reverse=True)


def _status_shares(receipts: List[Receipt]) -> List[StatusShare]:
    """Count, amount and share of receipts per payment status that occurs."""
    shares: Dict[str, StatusShare] = {}
    for receipt in receipts:
        row = shares.setdefault(receipt.payment_status, StatusShare(payment_status=receipt.payment_status))
        row.count += 1
        row.amount = to_money(row.amount + receipt.total_amount)
    for row in shares.values():
        row.percentage = round(row.count * 100.0 / len(receipts), 2)
    order = [status.value for status in PaymentStatus]
    return sorted(shares.values(), key=lambda row: order.index(row.payment_status))


class ReportService:
    """Read-only summaries over receipts."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def credit_report(self, as_of: Optional[datetime] = None) -> CreditReport:
        """Outstanding credit per owner with 0-7 / 8-30 / 30+ day aging."""
        as_of = to_naive_utc(as_of) if as_of else utcnow()
        receipts = await self.store.receipts.outstanding_credit()

        by_owner = {}
        overall = AgingBuckets()
        for receipt in receipts:
            entry = by_owner.get(receipt.truck_owner)
            if entry is None:
                entry = by_owner[receipt.truck_owner] = OwnerCredit(
                    truck_owner=receipt.truck_owner,
                    pending_receipts=0,
                    total_credit=0.0,
                    oldest_date=receipt.date_time,
                    latest_date=receipt.date_time,
                    aging=AgingBuckets(),
                )
            entry.pending_receipts += 1
            entry.total_credit = to_money(entry.total_credit + receipt.credit_amount)
            entry.oldest_date = min(entry.oldest_date, receipt.date_time)
            entry.latest_date = max(entry.latest_date, receipt.date_time)

            age = as_of - receipt.date_time
            _add_to_bucket(entry.aging, age, receipt.credit_amount)
            _add_to_bucket(overall, age, receipt.credit_amount)

        owners = sorted(by_owner.values(), key=lambda o: o.total_credit, reverse=True)
        return CreditReport(
            as_of=as_of,
            owners=owners,
            grand_total=to_money(sum(o.total_credit for o in owners)),
            total_customers=len(owners),
            aging=overall,
        )

    async def daily_summary(self, day: Optional[date] = None) -> DailySummary:
        """Totals for one UTC day."""
        day = day or utcnow().date()
        receipts = await self.store.receipts.list_between(day_start(day), day_start(day + timedelta(days=1)))

        totals = DailyTotals()
        statuses = Counter({status.value: 0 for status in PaymentStatus})
        per_owner = defaultdict(lambda: {"receipts": 0, "total_amount": 0.0, "total_brass": 0.0})
        for receipt in receipts:
            totals.total_transactions += 1
            totals.total_amount = to_money(totals.total_amount + receipt.total_amount)
            totals.total_cash = to_money(totals.total_cash + receipt.cash_paid)
            totals.total_credit = to_money(totals.total_credit + receipt.credit_amount)
            totals.total_deposit = to_money(totals.total_deposit + receipt.deposit_deducted)
            totals.total_brass = round(totals.total_brass + receipt.brass_qty, 3)
            statuses[receipt.payment_status] += 1

            owner = per_owner[receipt.truck_owner]
            owner["receipts"] += 1
            owner["total_amount"] = to_money(owner["total_amount"] + receipt.total_amount)
            owner["total_brass"] = round(owner["total_brass"] + receipt.brass_qty, 3)

        top = sorted(per_owner.items(), key=lambda item: item[1]["total_amount"], reverse=True)
        return DailySummary(
            date=day,
            totals=totals,
            payment_status=dict(statuses),
            top_owners=[TopOwner(truck_owner=name, **stats) for name, stats in top[:TOP_OWNERS]],
        )

    async def partner_stats(self) -> PartnerStatsResponse:
        totals = await self.store.receipts.totals_by_owner_type()

        def stats_for(owner_type: OwnerType, owners: int) -> OwnerTypeStats:
            row = totals.get(owner_type.value, {})
            return OwnerTypeStats(
                owners=owners,
                receipts=row.get("receipts", 0),
                total_amount=to_money(row.get("total_amount", 0.0)),
                total_brass=round(row.get("total_brass", 0.0), 3),
            )

        return PartnerStatsResponse(
            partner=stats_for(OwnerType.PARTNER, await self.store.owners.count(is_partner=True)),
            regular=stats_for(OwnerType.REGULAR, await self.store.owners.count(is_partner=False)),
        )

    async def financial_summary(self, start: Optional[date] = None, end: Optional[date] = None) -> FinancialSummary:
        """Totals and trends between two UTC days, inclusive; the last 30 days by default."""
        end = end or utcnow().date()
        start = start or end - timedelta(days=FINANCIAL_WINDOW_DAYS)
        if start > end:
            raise ValidationError("start_date must not be after end_date")
        receipts = await self.store.receipts.list_between(day_start(start), day_start(end + timedelta(days=1)))

        return FinancialSummary(
            period=ReportPeriod(start_date=start, end_date=end),
            summary=_period_totals(receipts),
            daily_trends=_daily_trends(receipts),
            customer_summary=_customer_totals(receipts)[:TOP_OWNERS],
            vehicle_summary=_vehicle_trips(receipts)[:TOP_OWNERS],
            payment_trends=_status_shares(receipts),
        )

    async def monthly_report(self, year: Optional[int] = None, month: Optional[int] = None) -> MonthlyReport:
        today = utcnow().date()
        year = year or today.year
        month = month or today.month
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}")
        first, following = month_bounds(year, month)
        receipts = await self.store.receipts.list_between(day_start(first), day_start(following))

        return MonthlyReport(
            month=f"{year}-{month:02d}",
            summary=_period_totals(receipts),
            daily_data=_daily_trends(receipts),
            payment_distribution=_status_shares(receipts),
            top_customers=_customer_totals(receipts)[:TOP_MONTHLY_CUSTOMERS],
        )

    async def client_report(self, start: Optional[date] = None, end: Optional[date] = None) -> ClientReport:
        """Per-owner totals, status mix and latest receipts; all time up to today by default."""
        end = end or utcnow().date()
        if start and start > end:
            raise ValidationError("start_date must not be after end_date")
        receipts = await self.store.receipts.list_between(
            day_start(start) if start else None, day_start(end + timedelta(days=1))
        )

        by_owner: Dict[str, List[Receipt]] = defaultdict(list)
        for receipt in receipts:
            by_owner[receipt.truck_owner].append(receipt)

        clients = []
        for name, owned in by_owner.items():
            totals = _period_totals(owned)
            latest = sorted(owned, key=lambda r: r.date_time, reverse=True)[:RECENT_PER_CLIENT]
            clients.append(ClientSummary(
                truck_owner=name,
                total_transactions=totals.total_transactions,
                total_brass=totals.total_brass,
                total_amount=totals.total_amount,
                total_cash=totals.total_cash,
                total_credit=totals.total_credit,
                first_transaction=totals.first_receipt,
                last_transaction=totals.last_receipt,
                avg_transaction_value=totals.avg_transaction,
                payment_status=_status_shares(owned),
                recent_transactions=[ReceiptResponse.model_validate(r) for r in latest],
            ))
        clients.sort(key=lambda client: client.total_amount, reverse=True)

        return ClientReport(
            period=ReportPeriod(start_date=start, end_date=end),
            clients=clients,
            total_clients=len(clients),
        )
