import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from fastapi import HTTPException


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_tx_date(value: Any) -> date:
    """Normalize a write payload date to the canonical calendar date.

    Accepts ``YYYY-MM-DD`` or any ISO 8601 datetime; aware datetimes are
    converted to UTC before the date is taken.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value
    else:
        raw = str(value or "").strip()
        if not raw:
            raise HTTPException(status_code=400, detail="date required")
        try:
            return datetime.strptime(raw, "%Y-%m-%d").date()
        except ValueError:
            pass
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid date format, expected YYYY-MM-DD")
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date()


def parse_amount(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise HTTPException(status_code=400, detail="Invalid amount")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise HTTPException(status_code=400, detail="Invalid amount")
    if not amount.is_finite() or amount < 0:
        raise HTTPException(status_code=400, detail="amount must be >= 0")
    return amount.quantize(Decimal("0.01"))


def parse_uuid_value(value: Any, field_name: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        raise HTTPException(status_code=400, detail=f"{field_name} required")
    try:
        return str(uuid.UUID(raw))
    except (TypeError, ValueError, AttributeError):
        raise HTTPException(status_code=400, detail=f"Invalid {field_name}")


def serialize_record(row: dict[str, Any]) -> dict[str, Any]:
    out = dict(row)
    out.pop("username", None)
    for key in ("date", "created_at", "updated_at"):
        val = out.get(key)
        if isinstance(val, datetime):
            out[key] = val.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
        elif isinstance(val, date):
            out[key] = val.isoformat()
    return out
