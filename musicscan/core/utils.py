import re
from datetime import datetime, timezone, timedelta
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def iso_days_ago(days: int, now: Optional[datetime] = None) -> str:
    return ((now or utcnow()) - timedelta(days=days)).isoformat()


_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?:\.\d+)?[+-]\d{2})$")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a PostgREST timestamp string (with or without offset) into an aware datetime."""
    if not value:
        return None
    # Postgres trims trailing zeros from the fraction and may emit a bare "+00" offset
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.replace("Z", "+00:00"), count=1)
    value = _SHORT_OFFSET.sub(r"\1:00", value)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def chunked(items: list, size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


def is_duplicate_error(error: Exception) -> bool:
    """Postgres unique violation (23505) as surfaced by PostgREST."""
    code = getattr(error, "code", None)
    if code == "23505":
        return True
    message = str(error).lower()
    return "23505" in message or "duplicate" in message or "unique" in message
