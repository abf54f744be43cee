from datetime import datetime, timezone


def to_epoch_seconds(value: str) -> int:
    """Parse an ISO-8601 date or datetime; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())
