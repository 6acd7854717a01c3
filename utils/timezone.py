from datetime import datetime, timezone

def utc_now() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)

def as_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def format_utc_time(dt: datetime = None) -> str:
    """Format datetime for log/console display."""
    if dt is None:
        dt = utc_now()
    return as_utc(dt).strftime('%Y-%m-%d %H:%M') + " (UTC)"
