from datetime import date, datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from quarry_ledger.api.deps import get_report_service
from quarry_ledger.core.auth import get_current_user
from quarry_ledger.schemas.owner import PartnerStatsResponse
from quarry_ledger.schemas.report import ClientReport, CreditReport, DailySummary, FinancialSummary, MonthlyReport
from quarry_ledger.services.report_service import ReportService

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/credit", response_model=CreditReport)
async def credit_report(
    as_of: Optional[datetime] = None,
    service: ReportService = Depends(get_report_service)
):
    """Outstanding credit per owner with aging"""
    return await service.credit_report(as_of)


@router.get("/daily-summary", response_model=DailySummary)
async def daily_summary(
    day: Optional[date] = None,
    service: ReportService = Depends(get_report_service)
):
    return await service.daily_summary(day)


@router.get("/partner-stats", response_model=PartnerStatsResponse)
async def partner_stats(service: ReportService = Depends(get_report_service)):
    return await service.partner_stats()


@router.get("/financial-summary", response_model=FinancialSummary)
async def financial_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: ReportService = Depends(get_report_service)
):
    """Totals, daily trends, top owners and vehicles, status mix"""
    return await service.financial_summary(start_date, end_date)


@router.get("/monthly-report", response_model=MonthlyReport)
async def monthly_report(
    year: Optional[int] = Query(None, ge=2000, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    service: ReportService = Depends(get_report_service)
):
    return await service.monthly_report(year, month)


@router.get("/client-report", response_model=ClientReport)
async def client_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: ReportService = Depends(get_report_service)
):
    """Per-owner totals with their latest receipts"""
    return await service.client_report(start_date, end_date)
