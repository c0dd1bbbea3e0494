"""Monthly report pipeline.

Turns a caller's unordered transactions into month summaries, newest month
first::

    fetch -> resolve categories -> bucket by (year, month) -> assemble

Every stage is a plain function over in-memory data. Nothing here logs,
caches or writes; failures surface as a ``ReportError`` subclass.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
UNCATEGORIZED = "Uncategorized"


class ReportError(Exception):
    """Base class for failures that prevent a complete report."""


class ReportUnavailableError(ReportError):
    """The record store could not be read."""


class ReportIntegrityError(ReportError):
    """A stored transaction cannot be placed in a month."""


class RecordStore(Protocol):
    def fetch_owned_transactions(self, owner_id: str) -> list[dict[str, Any]]: ...

    def fetch_owned_categories(self, owner_id: str) -> list[dict[str, Any]]: ...


@dataclass(frozen=True)
class ResolvedCategory:
    category: dict[str, Any]

    def as_view(self) -> dict[str, Any]:
        return {
            "category_id": self.category.get("category_id"),
            "name": self.category.get("name"),
            "category_type": self.category.get("category_type"),
            "icon": self.category.get("icon"),
        }


@dataclass(frozen=True)
class PlaceholderCategory:
    category_type: str

    def as_view(self) -> dict[str, Any]:
        return {"category_id": None, "name": UNCATEGORIZED, "category_type": self.category_type, "icon": None}


@dataclass
class MonthBucket:
    transactions: list[dict[str, Any]] = field(default_factory=list)
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")


def index_categories(categories: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    return {str(c["category_id"]).lower(): c for c in categories if c.get("category_id") is not None}


def resolve_category(
    tx: dict[str, Any], categories_by_id: dict[str, dict[str, Any]]
) -> ResolvedCategory | PlaceholderCategory:
    ref = tx.get("category_id")
    if ref is not None:
        category = categories_by_id.get(str(ref).strip().lower())
        if category is not None:
            return ResolvedCategory(category)
    return PlaceholderCategory(tx.get("transaction_type"))


def normalize_tx_date(value: Any, transaction_id: Any = None) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return normalize_tx_date(datetime.fromisoformat(raw.replace("Z", "+00:00")))
        except ValueError:
            pass
    raise ReportIntegrityError(f"Transaction {transaction_id} has an unreadable date: {value!r}")


def _coerce_amount(value: Any, transaction_id: Any = None) -> Decimal:
    if value is None:
        raise ReportIntegrityError(f"Transaction {transaction_id} has no amount")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ReportIntegrityError(f"Transaction {transaction_id} has an unreadable amount: {value!r}")
    if not amount.is_finite():
        raise ReportIntegrityError(f"Transaction {transaction_id} has an unreadable amount: {value!r}")
    return amount


def enrich_transaction(tx: dict[str, Any], categories_by_id: dict[str, dict[str, Any]]) -> dict[str, Any]:
    return {
        "transaction_id": tx.get("transaction_id"),
        "date": normalize_tx_date(tx.get("date"), tx.get("transaction_id")),
        "transaction_type": tx.get("transaction_type"),
        "amount": _coerce_amount(tx.get("amount"), tx.get("transaction_id")),
        "note": tx.get("note") or "",
        "category_id": tx.get("category_id"),
        "category": resolve_category(tx, categories_by_id).as_view(),
    }


def bucket_by_month(enriched: list[dict[str, Any]]) -> dict[tuple[int, int], MonthBucket]:
    buckets: dict[tuple[int, int], MonthBucket] = {}
    for tx in enriched:
        key = (tx["date"].year, tx["date"].month)
        bucket = buckets.setdefault(key, MonthBucket())
        if tx["transaction_type"] == "income":
            bucket.total_income += tx["amount"]
        elif tx["transaction_type"] == "expense":
            bucket.total_expense += tx["amount"]
        else:
            raise ReportIntegrityError(
                f"Transaction {tx['transaction_id']} has unknown type {tx['transaction_type']!r}"
            )
        bucket.transactions.append(tx)

    for bucket in buckets.values():
        bucket.transactions.sort(key=lambda t: (t["date"], str(t["transaction_id"])), reverse=True)
    return buckets


def month_label(month_start: date) -> str:
    return f"{MONTH_ABBR[month_start.month - 1]} {month_start.year:04d}"


def assemble_report(buckets: dict[tuple[int, int], MonthBucket]) -> list[dict[str, Any]]:
    keyed = sorted(
        ((date(year, month, 1), bucket) for (year, month), bucket in buckets.items()),
        key=lambda item: item[0],
        reverse=True,
    )
    return [
        {
            "month": month_label(month_start),
            "transactions": list(bucket.transactions),
            "totalIncome": bucket.total_income,
            "totalExpense": bucket.total_expense,
            "net": bucket.total_income - bucket.total_expense,
        }
        for month_start, bucket in keyed
    ]


def build_monthly_report(store: RecordStore, owner_id: str) -> list[dict[str, Any]]:
    try:
        transactions = store.fetch_owned_transactions(owner_id)
        categories = store.fetch_owned_categories(owner_id)
    except Exception as exc:
        raise ReportUnavailableError("Could not read transactions or categories") from exc

    categories_by_id = index_categories(categories)
    enriched = [enrich_transaction(tx, categories_by_id) for tx in transactions]
    return assemble_report(bucket_by_month(enriched))
