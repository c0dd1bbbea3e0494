from typing import Any

from fastapi import HTTPException, Request
from passlib.hash import bcrypt

from finsight.core.config import settings
from finsight.services.state import rate_limiter


def get_client_ip(req: Request) -> str:
    forwarded = req.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = req.headers.get("x-real-ip", "")
    if real_ip:
        return real_ip.strip()
    if req.client:
        return req.client.host
    return "unknown"


def require_session_user(req: Request) -> str:
    username = (req.session or {}).get("username")
    if not username:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return username


def enforce_register_rate_limit(req: Request) -> None:
    client_ip = get_client_ip(req)
    if rate_limiter.exceeded(
        f"register:ip:{client_ip}",
        settings.register_rate_limit,
        settings.register_rate_window,
    ):
        raise HTTPException(status_code=429, detail="Too many registration attempts. Try again later.")


def enforce_login_rate_limit(req: Request, username: str) -> None:
    client_ip = get_client_ip(req)
    if rate_limiter.exceeded(f"login:ip:{client_ip}", settings.login_rate_limit, settings.login_rate_window):
        raise HTTPException(status_code=429, detail="Too many login attempts. Try again later.")
    if rate_limiter.exceeded(
        f"login:user:{username}",
        settings.login_user_rate_limit,
        settings.login_rate_window,
    ):
        raise HTTPException(status_code=429, detail="Too many login attempts. Try again later.")


def check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > 72:
        raise HTTPException(status_code=400, detail="Password too long (max 72 bytes)")


def register_user(store, data: dict[str, Any]) -> tuple[str, str]:
    username = (data.get("username") or "").strip()
    password = (data.get("password") or "").strip()
    if not username or not password:
        raise HTTPException(status_code=400, detail="username and password required")
    if not settings.username_re.fullmatch(username):
        raise HTTPException(
            status_code=400,
            detail="Invalid username. Use 3-32 chars: letters, numbers, dot, underscore, or hyphen.",
        )
    if len(password) < settings.password_min_len:
        raise HTTPException(status_code=400, detail=f"Password too short (min {settings.password_min_len})")
    check_password_length(password)

    full_name = (data.get("full_name") or "").strip() or username
    store.insert_user(username, bcrypt.hash(password), full_name)
    return username, full_name


def authenticate_user(store, username: str, password: str) -> dict[str, Any]:
    user = store.get_user(username)
    if not user or not bcrypt.verify(password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    rate_limiter.reset(f"login:user:{username}")
    return user
