from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel


class ReportFilters(BaseModel):
    """Report filter: customer_id 'all' (or omitted) means every customer."""
    customer_id: Optional[str] = "all"
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class RecentActivity(BaseModel):
    """Dashboard row for one of the latest entries."""
    id: str
    customer_name: str
    start_at: datetime
    end_at: datetime
    start_time: str
    end_time: str
    duration_hours: float
    crop_type: str
    amount: int
    is_paid: bool
    time_slot: str
    status: str


class DashboardResponse(BaseModel):
    todaySupplyHours: float
    todayRevenue: float
    pendingAmount: float
    monthlyRevenue: float
    sixMonthRevenue: float
    yearlyRevenue: float
    totalRevenue: float
    recentActivity: List[RecentActivity]
