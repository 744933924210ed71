# ringoshop/utils.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_decimal(val, field: str = "") -> Decimal:
    try:
        return Decimal(str(val))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidOperation(f"invalid {field or 'number'}: {val!r}")


def money(val) -> Decimal:
    return to_decimal(val, "amount").quantize(CENT, rounding=ROUND_HALF_UP)


def iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None
