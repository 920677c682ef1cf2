import calendar
import re
from datetime import date, datetime, timedelta

import pytz

DATE_PATTERN = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


# -------------------------------
# 🕘 SLOT GRID
# -------------------------------

def generate_time_slots(opening_hour: int = 9, closing_hour: int = 18, step_minutes: int = 30) -> list[str]:
    """HH:MM slots from opening (inclusive) to closing (exclusive)."""
    slots = []
    minute = opening_hour * 60
    while minute < closing_hour * 60:
        slots.append(f"{minute // 60:02d}:{minute % 60:02d}")
        minute += step_minutes
    return slots


# -------------------------------
# 📅 DATES
# -------------------------------

def parse_date(value: str) -> date | None:
    """Strict DD/MM/YYYY. Returns None for bad format or impossible dates like 31/02."""
    match = DATE_PATTERN.match(value or "")
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic, clamping the day (31/01 + 1 month -> 28/02 or 29/02)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def clinic_today(tz_name: str) -> date:
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    return datetime.now(tz).date()


def within_booking_window(value: date, today: date, months: int = 3) -> bool:
    """Whole-day comparison: today itself and the last day of the window are both bookable."""
    return today <= value <= add_months(today, months)


def next_day(today: date) -> str:
    return format_date(today + timedelta(days=1))
