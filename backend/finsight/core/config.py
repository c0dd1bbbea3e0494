import os
import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    database_url: str
    redis_url: str | None
    redis_prefix: str
    session_secret: str
    cookie_secure: bool
    frontend_url: str
    log_level: str
    login_rate_limit: int
    login_rate_window: int
    login_user_rate_limit: int
    register_rate_limit: int
    register_rate_window: int
    password_min_len: int
    username_re: re.Pattern[str]
    db_pool_min: int
    db_pool_max: int
    db_pool_timeout: float
    db_pool_max_waiting: int
    fx_api_url: str
    inflation_api_url: str
    http_timeout: float
    fx_cache_ttl: int
    inflation_cache_ttl: int
    default_fx_base: str
    default_fx_symbols: str
    default_inflation_country: str


def load_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL", "")
    session_secret = os.getenv("SESSION_SECRET")
    if not database_url:
        raise RuntimeError("DATABASE_URL is required")
    if not session_secret:
        raise RuntimeError("SESSION_SECRET is required")

    username_re = re.compile(r"^[a-zA-Z0-9._-]{3,32}$")

    db_pool_min = max(1, int(os.getenv("DB_POOL_MIN", "1")))
    db_pool_max = max(db_pool_min, int(os.getenv("DB_POOL_MAX", "10")))

    return Settings(
        database_url=database_url,
        redis_url=(os.getenv("REDIS_URL") or "").strip() or None,
        redis_prefix=(os.getenv("REDIS_PREFIX") or "finsight").strip() or "finsight",
        session_secret=session_secret,
        cookie_secure=os.getenv("COOKIE_SECURE", "false").lower() == "true",
        frontend_url=(os.getenv("FRONTEND_URL") or "http://localhost:5173").strip().rstrip("/"),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
        login_rate_limit=int(os.getenv("LOGIN_RATE_LIMIT", "10")),
        login_rate_window=int(os.getenv("LOGIN_RATE_WINDOW", "300")),
        login_user_rate_limit=int(os.getenv("LOGIN_USER_RATE_LIMIT", "5")),
        register_rate_limit=int(os.getenv("REGISTER_RATE_LIMIT", "5")),
        register_rate_window=int(os.getenv("REGISTER_RATE_WINDOW", "900")),
        password_min_len=int(os.getenv("PASSWORD_MIN_LEN", "8")),
        username_re=username_re,
        db_pool_min=db_pool_min,
        db_pool_max=db_pool_max,
        db_pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
        db_pool_max_waiting=int(os.getenv("DB_POOL_MAX_WAITING", "100")),
        fx_api_url=(os.getenv("FX_API_URL") or "https://api.frankfurter.dev/v1").strip().rstrip("/"),
        inflation_api_url=(os.getenv("INFLATION_API_URL") or "https://api.worldbank.org/v2").strip().rstrip("/"),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "10")),
        fx_cache_ttl=max(1, int(os.getenv("FX_CACHE_TTL", str(60 * 60 * 12)))),
        inflation_cache_ttl=max(1, int(os.getenv("INFLATION_CACHE_TTL", str(60 * 60 * 12)))),
        default_fx_base=(os.getenv("DEFAULT_FX_BASE") or "USD").strip().upper() or "USD",
        default_fx_symbols=(os.getenv("DEFAULT_FX_SYMBOLS") or "INR").strip().upper() or "INR",
        default_inflation_country=(os.getenv("DEFAULT_INFLATION_COUNTRY") or "USA").strip().upper() or "USA",
    )


settings = load_settings()
