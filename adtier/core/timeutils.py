"""
Timezone helpers. All timestamps are handled as aware UTC datetimes.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def parse_fb_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a Graph API timestamp such as 2024-05-01T10:00:00+0000; None if unusable"""
    if not value or not isinstance(value, str):
        return None
    text = value.strip().replace("Z", "+00:00")
    # Graph API emits +0000; fromisoformat before 3.11 wants +00:00
    if len(text) > 5 and text[-5] in "+-" and text[-4:].isdigit():
        text = f"{text[:-2]}:{text[-2:]}"
    try:
        return ensure_aware(datetime.fromisoformat(text)).astimezone(timezone.utc)
    except ValueError:
        return None
