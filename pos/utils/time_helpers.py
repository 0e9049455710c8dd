import time
from datetime import date, datetime, timezone
from typing import Optional

from pos.core.config import KITCHEN_LATE_MINUTES, KITCHEN_WARNING_MINUTES

def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def date_key(day: Optional[date] = None) -> str:
    """Format a date as YYYY-MM-DD (today when not given)"""
    day = day or date.today()
    return day.strftime('%Y-%m-%d')

def format_elapsed(timestamp: Optional[int], now: Optional[int] = None) -> Optional[str]:
    """Human readable time since an epoch-ms timestamp ("45 seg", "5 min", "1h 23min")"""
    if not timestamp:
        return None
    now = now if now is not None else now_ms()
    seconds = max(0, (now - timestamp) // 1000)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        remaining = minutes % 60
        return f"{hours}h {remaining}min" if remaining else f"{hours}h"
    if minutes > 0:
        return f"{minutes} min"
    return f"{seconds} seg"

def elapsed_urgency(timestamp: Optional[int], now: Optional[int] = None) -> str:
    """Urgency band for a kitchen ticket: ok, warning or late"""
    if not timestamp:
        return 'unknown'
    now = now if now is not None else now_ms()
    minutes = (now - timestamp) // 60000
    if minutes < KITCHEN_WARNING_MINUTES:
        return 'ok'
    if minutes < KITCHEN_LATE_MINUTES:
        return 'warning'
    return 'late'
