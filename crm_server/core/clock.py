from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC so values compare cleanly after a SQLite roundtrip
    return datetime.now(timezone.utc).replace(tzinfo=None)
