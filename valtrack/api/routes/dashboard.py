# =======================================================================================
# valtrack/api/routes/dashboard.py - Dashboard & Report Endpoints
# =======================================================================================
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Connection
from ...models.enums import ReportPeriod
from ...models.schemas import BranchPopularity, DashboardSummary, TodayStats, TrafficReport
from ...services.dashboard_service import DashboardService
from ...services.report_service import ReportService
from ..dependencies import get_db_connection

router = APIRouter()
dashboard_service = DashboardService()
report_service = ReportService()


@router.get("/branches/{branch_id}/dashboard", response_model=DashboardSummary)
def get_dashboard(branch_id: int, conn: Connection = Depends(get_db_connection)):
    return dashboard_service.get_summary(conn, branch_id)


@router.get("/reports/today", response_model=TodayStats)
def today_stats(
    branch_id: Optional[int] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    return report_service.today_stats(conn, branch_id)


@router.get("/reports/popular-branches", response_model=List[BranchPopularity])
def popular_branches(
    period: ReportPeriod = Query("daily"),
    day: Optional[date] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    return report_service.popular_branches(conn, period, day)


@router.get("/reports/traffic", response_model=TrafficReport)
def traffic(
    branch_id: Optional[int] = Query(None),
    period: ReportPeriod = Query("daily"),
    day: Optional[date] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    return report_service.traffic(conn, branch_id, period, day)
