from datetime import datetime, timezone
from decimal import Decimal

from request_approval.core.helpers.pricing import quantize


def format_price(value: Decimal | None) -> str:
    """Two decimal places, or an empty string when there is no value."""
    if value is None:
        return ""
    return f"{quantize(value):.2f}"


def format_timestamp(value: datetime | None) -> str:
    """ISO 8601 in UTC to the second, or an empty string."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=0).isoformat()


def join_name(first: str | None, last: str | None) -> str:
    return f"{first or ''} {last or ''}".strip()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
