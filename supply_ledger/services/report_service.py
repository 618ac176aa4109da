"""Read-side rollups: dashboard statistics, filtered reports and CSV export."""

import asyncio
import csv
import io
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from supply_ledger.core.config import settings
from supply_ledger.core.exceptions import NoDataToExport, TransactionFailure
from supply_ledger.core.logging import get_logger
from supply_ledger.models.entry import SupplyEntry
from supply_ledger.repositories.entry_repo import EntryRepository
from supply_ledger.schemas.report import DashboardResponse, RecentActivity, ReportFilters
from supply_ledger.utils.dates import (
    end_of_day,
    end_of_month,
    end_of_year,
    months_ago,
    now_local,
    start_of_day,
    start_of_month,
    start_of_year,
    ymd,
)
from supply_ledger.utils.validation import parse_object_id

logger = get_logger(__name__)

CSV_HEADERS = [
    "Start Date",
    "End Date",
    "Customer",
    "Start Time",
    "End Time",
    "Duration (hrs)",
    "Crop Type",
    "Amount (INR)",
    "Status",
]
BOM = "\ufeff"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


def render_csv(entries: List[SupplyEntry]) -> bytes:
    """
    Spreadsheet-friendly CSV: UTF-8 with BOM, one row per entry.

    Text cells (customer name included) are always quoted; duration and
    amount are written as bare numbers.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for entry in entries:
        writer.writerow([
            ymd(entry.start_at),
            ymd(entry.end_at),
            entry.customer_name or "N/A",
            entry.start_time or "N/A",
            entry.end_time or "N/A",
            Decimal(f"{entry.duration_hours:.2f}"),
            entry.crop_type or "N/A",
            entry.amount,
            entry.status,
        ])
    return (BOM + buffer.getvalue()).encode("utf-8")


class ReportService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.entries = EntryRepository(db)

    async def get_filtered_entries(self, filters: ReportFilters) -> List[SupplyEntry]:
        """Entries starting within the selected days, optionally for one customer."""
        customer_id = None
        if filters.customer_id and filters.customer_id != "all":
            customer_id = parse_object_id(filters.customer_id, "customer id")
        start_from = start_of_day(filters.start_date) if filters.start_date else None
        start_to = end_of_day(filters.end_date) if filters.end_date else None

        try:
            entries = await self.entries.list_filtered(customer_id, start_from, start_to)
        except PyMongoError as exc:
            logger.error("filtered_entries_failed", error=str(exc))
            raise TransactionFailure(f"Failed to load entries: {exc}") from exc
        logger.info("filtered_entries_loaded", count=len(entries), customer_id=filters.customer_id)
        return entries

    async def export_entries(self, filters: ReportFilters) -> bytes:
        entries = await self.get_filtered_entries(filters)
        if not entries:
            logger.warning("export_empty", customer_id=filters.customer_id)
            raise NoDataToExport()
        logger.info("export_generated", rows=len(entries))
        return render_csv(entries)

    async def sum_field(self, collection: str, field: str, match: Optional[dict] = None) -> float:
        """
        Sum one numeric field over the matching documents.

        Uses a server-side $group; if the aggregation fails the same filter is
        re-run as a plain find and summed here.
        """
        match = match or {}
        pipeline = [
            {"$match": match},
            {"$group": {"_id": None, "total": {"$sum": f"${field}"}}}
        ]
        try:
            result = await self.db[collection].aggregate(pipeline).to_list(1)
            return result[0]["total"] if result else 0
        except PyMongoError as exc:
            logger.warning("aggregation_fallback", collection=collection, field=field, error=str(exc))

        try:
            docs = await self.db[collection].find(match).to_list(None)
        except PyMongoError as exc:
            logger.error("manual_sum_failed", collection=collection, field=field, error=str(exc))
            raise TransactionFailure(f"Failed to sum {field} in {collection}: {exc}") from exc
        return sum(doc.get(field) for doc in docs if _is_number(doc.get(field)))

    async def revenue_between(self, start: Optional[datetime], end: Optional[datetime]) -> float:
        return await self.sum_field("entries", "amount", EntryRepository.build_filter(None, start, end))

    async def get_dashboard_data(self, now: Optional[datetime] = None) -> DashboardResponse:
        now = now or now_local()
        today_start = start_of_day(now.date())
        today_end = end_of_day(now.date())

        try:
            today_entries = await self.db["entries"].find(
                EntryRepository.build_filter(None, today_start, today_end)
            ).to_list(None)
        except PyMongoError as exc:
            logger.error("dashboard_today_failed", error=str(exc))
            raise TransactionFailure(f"Failed to load today's entries: {exc}") from exc
        today_hours = sum(doc["duration_hours"] for doc in today_entries if _is_number(doc.get("duration_hours")))
        today_revenue = sum(doc["amount"] for doc in today_entries if _is_number(doc.get("amount")))

        pending_amount, monthly, six_month, yearly, total = await asyncio.gather(
            self.sum_field("customers", "pending_amount"),
            self.revenue_between(start_of_month(now), end_of_month(now)),
            self.revenue_between(months_ago(now, 6), today_end),
            self.revenue_between(start_of_year(now), end_of_year(now)),
            self.revenue_between(None, today_end),
        )

        try:
            recent = await self.entries.list_filtered(limit=settings.RECENT_ACTIVITY_LIMIT)
        except PyMongoError as exc:
            logger.error("dashboard_recent_failed", error=str(exc))
            raise TransactionFailure(f"Failed to load recent activity: {exc}") from exc
        recent_activity = [
            RecentActivity(
                id=str(entry.id),
                customer_name=entry.customer_name,
                start_at=entry.start_at,
                end_at=entry.end_at,
                start_time=entry.start_time,
                end_time=entry.end_time,
                duration_hours=entry.duration_hours,
                crop_type=entry.crop_type,
                amount=entry.amount,
                is_paid=entry.is_paid,
                time_slot=f"{entry.start_time}-{entry.end_time}",
                status=entry.status
            )
            for entry in recent
        ]

        logger.info("dashboard_computed", today_revenue=today_revenue, pending_amount=pending_amount)
        return DashboardResponse(
            todaySupplyHours=today_hours,
            todayRevenue=today_revenue,
            pendingAmount=pending_amount,
            monthlyRevenue=monthly,
            sixMonthRevenue=six_month,
            yearlyRevenue=yearly,
            totalRevenue=total,
            recentActivity=recent_activity
        )
