from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp (MySQL DATETIME and SQLite both drop tzinfo)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_str() -> str:
    return date.today().isoformat()
