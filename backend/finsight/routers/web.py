import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request
from psycopg.errors import UniqueViolation

from finsight.db.pool import get_record_store
from finsight.models.finance import LoginRequest, RegisterRequest
from finsight.services.auth import (
    authenticate_user,
    check_password_length,
    enforce_login_rate_limit,
    enforce_register_rate_limit,
    register_user,
    require_session_user,
)
from finsight.services.records import now_utc

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
STARTED_AT = time.monotonic()

router = APIRouter()


@router.get("/")
def root():
    return {"message": "Welcome to FinSight API", "version": API_VERSION}


@router.get("/health")
def health():
    return {
        "status": "ok",
        "service": "finsight-api",
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "timestamp": now_utc().isoformat().replace("+00:00", "Z"),
    }


@router.post("/auth/register")
def register(req: Request, payload: RegisterRequest, store=Depends(get_record_store)):
    enforce_register_rate_limit(req)
    try:
        username, _ = register_user(store, payload.model_dump())
        store.commit()
    except HTTPException:
        store.rollback()
        raise
    except UniqueViolation:
        store.rollback()
        raise HTTPException(status_code=400, detail="User already exists")

    logger.info("registered user %s", username)
    return {"ok": True}


@router.post("/auth/login")
def login(req: Request, payload: LoginRequest, store=Depends(get_record_store)):
    username = payload.username.strip()
    password = payload.password.strip()
    check_password_length(password)
    if not username or not password:
        raise HTTPException(status_code=400, detail="username and password required")
    enforce_login_rate_limit(req, username)

    user = authenticate_user(store, username, password)
    req.session["username"] = user["username"]
    req.session["full_name"] = user["full_name"]
    return {"ok": True, "username": user["username"], "full_name": user["full_name"]}


@router.post("/auth/logout")
def logout(req: Request):
    req.session.clear()
    return {"ok": True}


@router.get("/me")
def me(req: Request):
    username = require_session_user(req)
    return {"username": username, "full_name": req.session.get("full_name", username)}
