from datetime import date, datetime, timedelta
import pytest
from quarry_ledger.core.exceptions import ValidationError
from quarry_ledger.schemas.receipt import ReceiptCreate
from quarry_ledger.services.receipt_service import ReceiptService
from quarry_ledger.services.report_service import ReportService

AS_OF = datetime(2024, 3, 31, 12, 0)


async def bill(service, owner, days_ago, cash_paid=0, brass_qty=1, rate=1000):
    return await service.create_receipt(ReceiptCreate(
        truck_owner=owner,
        vehicle_number="MH12",
        brass_qty=brass_qty,
        rate=rate,
        cash_paid=cash_paid,
        date_time=AS_OF - timedelta(days=days_ago),
    ))


@pytest.mark.asyncio
async def test_credit_report_ages_outstanding_credit(store, locks):
    receipts = ReceiptService(store, locks=locks)
    await bill(receipts, "Ramesh", days_ago=2)
    await bill(receipts, "Ramesh", days_ago=10, cash_paid=400)
    await bill(receipts, "Patil", days_ago=45)
    await bill(receipts, "Paid Up", days_ago=1, cash_paid=1000)

    report = await ReportService(store).credit_report(AS_OF)

    assert report.total_customers == 2
    assert report.grand_total == 2600
    ramesh = next(o for o in report.owners if o.truck_owner == "Ramesh")
    assert ramesh.pending_receipts == 2
    assert ramesh.total_credit == 1600
    assert ramesh.aging.days_0_7 == 1000
    assert ramesh.aging.days_8_30 == 600
    assert report.aging.days_30_plus == 1000
    assert report.owners[0].truck_owner == "Ramesh"


@pytest.mark.asyncio
async def test_daily_summary(store, locks):
    receipts = ReceiptService(store, locks=locks)
    await bill(receipts, "Ramesh", days_ago=0, cash_paid=1000, brass_qty=1)
    await bill(receipts, "Ramesh", days_ago=0, cash_paid=0, brass_qty=2)
    await bill(receipts, "Patil", days_ago=0, cash_paid=500, brass_qty=1)
    await bill(receipts, "Yesterday", days_ago=1, cash_paid=1000)

    summary = await ReportService(store).daily_summary(date(2024, 3, 31))

    assert summary.totals.total_transactions == 3
    assert summary.totals.total_amount == 4000
    assert summary.totals.total_cash == 1500
    assert summary.totals.total_credit == 2500
    assert summary.totals.total_brass == 4
    assert summary.payment_status == {"paid": 1, "partial": 1, "unpaid": 1}
    assert summary.top_owners[0].truck_owner == "Ramesh"
    assert summary.top_owners[0].receipts == 2


@pytest.mark.asyncio
async def test_partner_stats(store, locks, partner_owner):
    receipts = ReceiptService(store, locks=locks)
    await bill(receipts, partner_owner.name, days_ago=0, brass_qty=2)
    await bill(receipts, "Ramesh", days_ago=0)

    stats = await ReportService(store).partner_stats()

    assert stats.partner.owners == 1
    assert stats.partner.receipts == 1
    assert stats.partner.total_amount == 2000
    assert stats.partner.total_brass == 2
    assert stats.regular.owners == 1
    assert stats.regular.total_amount == 1000


async def bill_vehicle(service, owner, vehicle, days_ago, cash_paid=0, rate=1000):
    return await service.create_receipt(ReceiptCreate(
        truck_owner=owner,
        vehicle_number=vehicle,
        brass_qty=1,
        rate=rate,
        cash_paid=cash_paid,
        date_time=AS_OF - timedelta(days=days_ago),
    ))


@pytest.mark.asyncio
async def test_financial_summary(store, locks):
    receipts = ReceiptService(store, locks=locks)
    await bill_vehicle(receipts, "Ramesh", "MH12", days_ago=0, cash_paid=1000)
    await bill_vehicle(receipts, "Ramesh", "MH12", days_ago=1, cash_paid=0)
    await bill_vehicle(receipts, "Patil", "MH14", days_ago=1, cash_paid=500)
    await bill_vehicle(receipts, "Old", "MH99", days_ago=40, cash_paid=1000)

    summary = await ReportService(store).financial_summary(end=date(2024, 3, 31))

    assert summary.period.start_date == date(2024, 3, 1)
    assert summary.summary.total_transactions == 3
    assert summary.summary.total_amount == 3000
    assert summary.summary.total_cash == 1500
    assert summary.summary.avg_transaction == 1000
    assert [(d.day, d.transactions) for d in summary.daily_trends] == [
        (date(2024, 3, 30), 2), (date(2024, 3, 31), 1),
    ]
    assert summary.customer_summary[0].truck_owner == "Ramesh"
    assert summary.vehicle_summary[0].vehicle_number == "MH12"
    assert summary.vehicle_summary[0].trips == 2
    shares = {s.payment_status: s.percentage for s in summary.payment_trends}
    assert shares == {"paid": 33.33, "partial": 33.33, "unpaid": 33.33}


@pytest.mark.asyncio
async def test_financial_summary_rejects_reversed_range(store):
    with pytest.raises(ValidationError):
        await ReportService(store).financial_summary(date(2024, 3, 31), date(2024, 3, 1))


@pytest.mark.asyncio
async def test_monthly_report(store, locks):
    receipts = ReceiptService(store, locks=locks)
    await bill_vehicle(receipts, "Ramesh", "MH12", days_ago=0, cash_paid=1000)
    await bill_vehicle(receipts, "Patil", "MH14", days_ago=30, cash_paid=0)
    await bill_vehicle(receipts, "February", "MH15", days_ago=31, cash_paid=0)

    report = await ReportService(store).monthly_report(2024, 3)

    assert report.month == "2024-03"
    assert report.summary.total_transactions == 2
    assert report.summary.total_credit == 1000
    assert [d.day for d in report.daily_data] == [date(2024, 3, 1), date(2024, 3, 31)]
    assert {c.truck_owner for c in report.top_customers} == {"Ramesh", "Patil"}
    assert {s.payment_status: s.count for s in report.payment_distribution} == {"paid": 1, "unpaid": 1}


@pytest.mark.asyncio
async def test_client_report_all_time(store, locks):
    receipts = ReceiptService(store, locks=locks)
    for days_ago in range(7):
        await bill_vehicle(receipts, "Ramesh", "MH12", days_ago=days_ago, cash_paid=1000)
    await bill_vehicle(receipts, "Patil", "MH14", days_ago=400, rate=5000)

    report = await ReportService(store).client_report(end=date(2024, 3, 31))

    assert report.total_clients == 2
    assert report.period.start_date is None
    ramesh, patil = report.clients
    assert ramesh.truck_owner == "Ramesh"
    assert patil.total_credit == 5000
    assert ramesh.total_transactions == 7
    assert ramesh.total_brass == 7
    assert [s.payment_status for s in ramesh.payment_status] == ["paid"]
    assert len(ramesh.recent_transactions) == 5
    assert ramesh.recent_transactions[0].date_time == AS_OF
    assert ramesh.first_transaction == AS_OF - timedelta(days=6)
