from datetime import datetime, timezone


def utcnow() -> datetime:
    # naive UTC, the form stored in every DateTime column
    return datetime.now(timezone.utc).replace(tzinfo=None)
