"""Shared date and time utilities.

Formatting here never consults the process locale, so rendered reports are
identical on every machine for the same input.
"""
from __future__ import annotations

import datetime as _dt

__all__ = [
    "DAY_NAMES",
    "MONTH_NAMES",
    "FMT_TIMESTAMP",
    "format_long_date",
    "format_date",
    "format_timestamp",
    "format_duration",
]

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

FMT_TIMESTAMP = "%Y-%m-%d %H:%M:%S"


def format_long_date(d: _dt.date) -> str:
    """English long form, e.g. 'Monday, October 19, 2026'."""
    return f"{DAY_NAMES[d.weekday()]}, {MONTH_NAMES[d.month - 1]} {d.day}, {d.year}"


def format_date(d: _dt.date) -> str:
    """ISO calendar date, e.g. '2026-10-19'."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_timestamp(ts: _dt.datetime) -> str:
    return ts.strftime(FMT_TIMESTAMP)


def format_duration(seconds: int) -> str:
    """Compact duration string.

    Examples:
        3725 -> '1h 2m 5s'
        60 -> '1m'
        0 -> '0s'
    """
    hours, rem = divmod(int(seconds), 3600)
    minutes, secs = divmod(rem, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0:
        parts.append(f"{secs}s")
    return " ".join(parts) or "0s"
