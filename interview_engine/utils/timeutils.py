from datetime import datetime, timezone


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Stored timestamps are naive UTC; convert aware inputs to match."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
