# Overview: UTC clock, ISO date parsing and YYYY-MM month keys shared by services and models.

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional


MONTH_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def current_month_key() -> str:
    return utcnow().strftime("%Y-%m")


def is_month_key(value: Optional[str]) -> bool:
    return bool(value) and bool(MONTH_KEY_RE.match(value))


def iso_day(value) -> str:
    """
    Render a sale/expense date as its ISO day string.

    Accepts date, datetime or an ISO string (returned stripped) so month
    prefixes can be matched the same way for all three.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_iso_date(value) -> Optional[date]:
    """
    Parse "YYYY-MM-DD" (or a full ISO datetime) into a date.

    - None / "" -> None
    - date/datetime instances pass through
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    if "T" in s:
        return datetime.fromisoformat(s).date()
    return date.fromisoformat(s)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
