# services/datetimex.py
from __future__ import annotations
import os
from datetime import datetime, date, time, timedelta, timezone
from zoneinfo import ZoneInfo
import pandas as pd

APP_TZ = ZoneInfo(os.getenv("APP_TIMEZONE", "Asia/Jakarta"))


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything we store is UTC
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_z(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return as_utc(dt).isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_iso_to_utc(s: str | None) -> datetime | None:
    if not s:
        return None
    # pandas handles many formats & offsets; force UTC
    ts = pd.to_datetime(s, utc=True, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def local_year_month(dt: datetime) -> tuple[int, int]:
    """Calendar (year, month) of a UTC instant as seen in APP_TZ."""
    local = as_utc(dt).astimezone(APP_TZ)
    return local.year, local.month


def resolve_rollover(start: datetime, end: datetime) -> datetime:
    """An end before its start means the service ran past midnight."""
    if end < start:
        return end + timedelta(days=1)
    return end


def combine_date_time(d: date | str, hms: str) -> datetime:
    """Attach an HH:MM[:SS] UTC time of day to a calendar date."""
    if isinstance(d, str):
        d = date.fromisoformat(d[:10])
    elif isinstance(d, datetime):
        d = as_utc(d).date()
    parts = [int(p) for p in hms.strip().split(":")]
    parts += [0] * (3 - len(parts))
    h, m, sec = parts[:3]
    return datetime.combine(d, time(h, m, sec), tzinfo=timezone.utc)


def format_duration(minutes: int) -> str:
    hours, mins = divmod(max(0, int(minutes)), 60)
    return f"{hours:02d}:{mins:02d}:00"
