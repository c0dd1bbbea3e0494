import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from finsight.db.pool import get_record_store
from finsight.models.finance import (
    CategoryCreateRequest,
    CategoryUpdateRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from finsight.services.auth import require_session_user
from finsight.services.export import export_report_file
from finsight.services.records import parse_amount, parse_tx_date, parse_uuid_value, serialize_record
from finsight.services.reports import ReportError, build_monthly_report

logger = logging.getLogger(__name__)

router = APIRouter()


def resolve_category_ref(store, username: str, value: str | None) -> str | None:
    if value is None or not str(value).strip():
        return None
    category_id = parse_uuid_value(value, "category_id")
    if not store.get_category(username, category_id):
        raise HTTPException(status_code=400, detail="Unknown category_id")
    return category_id


# categories


@router.get("/categories")
def list_categories(req: Request, store=Depends(get_record_store)):
    username = require_session_user(req)
    return {"categories": [serialize_record(c) for c in store.fetch_owned_categories(username)]}


@router.post("/categories", status_code=201)
def create_category(req: Request, payload: CategoryCreateRequest, store=Depends(get_record_store)):
    username = require_session_user(req)
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name required")
    icon = (payload.icon or "").strip() or None

    row = store.insert_category(username, name, icon, payload.category_type)
    store.commit()
    return {"ok": True, "category": serialize_record(row)}


@router.put("/categories/{category_id}")
def update_category(category_id: str, req: Request, payload: CategoryUpdateRequest, store=Depends(get_record_store)):
    username = require_session_user(req)
    category_id = parse_uuid_value(category_id, "category_id")
    fields = payload.model_dump(exclude_unset=True)
    if "name" in fields:
        fields["name"] = (fields["name"] or "").strip()
        if not fields["name"]:
            raise HTTPException(status_code=400, detail="name required")
    if "icon" in fields:
        fields["icon"] = (fields["icon"] or "").strip() or None
    if "category_type" in fields and fields["category_type"] is None:
        raise HTTPException(status_code=400, detail="category_type cannot be null")
    if not fields:
        raise HTTPException(status_code=400, detail="Nothing to update")

    row = store.update_category(username, category_id, fields)
    if not row:
        raise HTTPException(status_code=404, detail="Category not found")
    store.commit()
    return {"ok": True, "category": serialize_record(row)}


@router.delete("/categories/{category_id}")
def delete_category(category_id: str, req: Request, store=Depends(get_record_store)):
    username = require_session_user(req)
    category_id = parse_uuid_value(category_id, "category_id")
    if not store.delete_category(username, category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    store.commit()
    return {"ok": True}


# transactions


@router.get("/transactions")
def list_transactions(req: Request, store=Depends(get_record_store)):
    username = require_session_user(req)
    return {"transactions": [serialize_record(t) for t in store.list_transactions(username)]}


@router.post("/transactions", status_code=201)
def create_transaction(req: Request, payload: TransactionCreateRequest, store=Depends(get_record_store)):
    username = require_session_user(req)
    tx_date = parse_tx_date(payload.date)
    amount = parse_amount(payload.amount)
    category_id = resolve_category_ref(store, username, payload.category_id)

    row = store.insert_transaction(
        username,
        tx_date,
        payload.transaction_type,
        amount,
        payload.note.strip(),
        category_id,
    )
    store.commit()
    return {"ok": True, "transaction": serialize_record(row)}


@router.put("/transactions/{transaction_id}")
def update_transaction(
    transaction_id: str, req: Request, payload: TransactionUpdateRequest, store=Depends(get_record_store)
):
    username = require_session_user(req)
    transaction_id = parse_uuid_value(transaction_id, "transaction_id")
    fields = payload.model_dump(exclude_unset=True)
    for key in ("date", "transaction_type", "amount"):
        if key in fields and fields[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    if "date" in fields:
        fields["date"] = parse_tx_date(fields["date"])
    if "amount" in fields:
        fields["amount"] = parse_amount(fields["amount"])
    if "note" in fields:
        fields["note"] = (fields["note"] or "").strip()
    if "category_id" in fields:
        fields["category_id"] = resolve_category_ref(store, username, fields["category_id"])
    if not fields:
        raise HTTPException(status_code=400, detail="Nothing to update")

    row = store.update_transaction(username, transaction_id, fields)
    if not row:
        raise HTTPException(status_code=404, detail="Transaction not found")
    store.commit()
    return {"ok": True, "transaction": serialize_record(row)}


@router.delete("/transactions/{transaction_id}")
def delete_transaction(transaction_id: str, req: Request, store=Depends(get_record_store)):
    username = require_session_user(req)
    transaction_id = parse_uuid_value(transaction_id, "transaction_id")
    if not store.delete_transaction(username, transaction_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    store.commit()
    return {"ok": True}


# monthly report


def load_report(store, username: str) -> list[dict]:
    try:
        return build_monthly_report(store, username)
    except ReportError:
        logger.exception("monthly report failed for %s", username)
        raise HTTPException(status_code=503, detail="Report unavailable")


@router.get("/transactions/monthly")
def monthly_report(req: Request, store=Depends(get_record_store)):
    username = require_session_user(req)
    return {"months": load_report(store, username)}


@router.get("/transactions/monthly/export")
def export_monthly_report(
    req: Request,
    format: str = "pdf",
    currency: str = "USD",
    store=Depends(get_record_store),
):
    username = require_session_user(req)
    export_format = (format or "pdf").lower()
    if export_format not in ("pdf", "csv"):
        raise HTTPException(status_code=400, detail="Invalid export format")
    currency_code = (currency or "USD").strip().upper()
    if len(currency_code) != 3 or not currency_code.isalpha():
        raise HTTPException(status_code=400, detail="Invalid currency")

    export_payload = export_report_file(load_report(store, username), username, export_format, currency_code)
    return Response(
        content=export_payload["content"],
        media_type=export_payload["media_type"],
        headers={"Content-Disposition": f'attachment; filename="{export_payload["filename"]}"'},
    )
