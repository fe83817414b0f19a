"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Use this instead of datetime.now() or datetime.utcnow() so every
    timestamp written to the backend is timezone-aware.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Return current UTC time as an ISO-8601 string, the form the backend stores.

    Example:
        >>> utc_now_iso().endswith("+00:00")
        True
    """
    return utc_now().isoformat()
