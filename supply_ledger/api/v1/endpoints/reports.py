from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from supply_ledger.db.mongo import get_db
from supply_ledger.models.entry import EntryResponse
from supply_ledger.schemas.report import DashboardResponse, ReportFilters
from supply_ledger.services.report_service import ReportService

router = APIRouter()


def get_report_filters(
    customer_id: Optional[str] = Query("all", description="'all' or a customer id"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> ReportFilters:
    return ReportFilters(customer_id=customer_id, start_date=start_date, end_date=end_date)


@router.get("/reports/entries", response_model=List[EntryResponse])
async def get_filtered_entries(
    filters: ReportFilters = Depends(get_report_filters),
    db = Depends(get_db)
):
    entries = await ReportService(db).get_filtered_entries(filters)
    return [entry.to_response() for entry in entries]


@router.get("/reports/export")
async def export_entries(
    filters: ReportFilters = Depends(get_report_filters),
    db = Depends(get_db)
):
    """Download the filtered report as CSV."""
    content = await ReportService(db).export_entries(filters)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="water-supply-report.csv"'}
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(db = Depends(get_db)):
    return await ReportService(db).get_dashboard_data()
