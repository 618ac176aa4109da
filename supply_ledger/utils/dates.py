"""Business-timezone date helpers.

Timestamps are stored timezone-aware (UTC in MongoDB). Calendar notions such
as "today", day boundaries and the HH:MM display strings are evaluated in the
configured business timezone.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from supply_ledger.core.config import settings


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes are taken as business-local wall time."""
    if value.tzinfo is None:
        return value.replace(tzinfo=business_tz())
    return value


def to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        # MongoDB hands back naive UTC unless the client is tz_aware
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(business_tz())


def now_local() -> datetime:
    return datetime.now(business_tz())


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=business_tz())


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=business_tz())


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment.date().replace(day=1))


def end_of_month(moment: datetime) -> datetime:
    first_next = moment.date().replace(day=1) + relativedelta(months=1)
    return end_of_day(first_next - timedelta(days=1))


def start_of_year(moment: datetime) -> datetime:
    return start_of_day(date(moment.year, 1, 1))


def end_of_year(moment: datetime) -> datetime:
    return end_of_day(date(moment.year, 12, 31))


def months_ago(moment: datetime, months: int) -> datetime:
    return start_of_day((moment - relativedelta(months=months)).date())


def hhmm(value: datetime) -> str:
    return to_local(value).strftime("%H:%M")


def ymd(value: datetime) -> str:
    return to_local(value).strftime("%Y-%m-%d")
