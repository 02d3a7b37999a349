from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC, same as what the DateTime columns store
    return datetime.now(timezone.utc).replace(tzinfo=None)
