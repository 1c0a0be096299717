# backend/baggo/utils/time_utils.py

from datetime import datetime
from typing import Optional

import pytz

from baggo.core.config_loader import settings


def local_now_str() -> str:
    tz = pytz.timezone(settings.timezone)
    return datetime.now(tz).strftime("%Y-%m-%d %H:%M:%S")


def parse_iso_date(text: Optional[str]) -> Optional[datetime]:
    """
    Accepts "2025-03-12" or a full ISO timestamp ("2025-03-12T00:00:00Z").
    Returns None for anything else.
    """
    if not text:
        return None
    try:
        return datetime.strptime(text.strip()[:10], "%Y-%m-%d")
    except ValueError:
        return None


def trip_length_days(start: Optional[str], end: Optional[str]) -> Optional[int]:
    """Inclusive number of days between two ISO dates."""
    start_dt = parse_iso_date(start)
    end_dt = parse_iso_date(end)
    if not start_dt or not end_dt or end_dt < start_dt:
        return None
    return (end_dt - start_dt).days + 1
