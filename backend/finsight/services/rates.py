import re
from typing import Any

import httpx
from fastapi import HTTPException

from finsight.core.cache import TimedCache

# World Bank "Inflation, consumer prices (annual %)"
INFLATION_INDICATOR = "FP.CPI.TOTL.ZG"

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_COUNTRY_RE = re.compile(r"^[A-Z]{2,3}$")


class UpstreamUnavailable(RuntimeError):
    """Raised when an external rate provider cannot be reached or answers badly."""


def normalize_currency(value: str | None, default: str) -> str:
    code = (value or default).strip().upper()
    if not _CURRENCY_RE.fullmatch(code):
        raise HTTPException(status_code=400, detail="Currency must be a 3-letter ISO 4217 code")
    return code


def normalize_symbols(value: str | None, default: str) -> str:
    codes = [normalize_currency(part, default) for part in (value or default).split(",") if part.strip()]
    if not codes:
        raise HTTPException(status_code=400, detail="symbols required")
    return ",".join(codes)


def normalize_country(value: str | None, default: str) -> str:
    code = (value or default).strip().upper()
    if not _COUNTRY_RE.fullmatch(code):
        raise HTTPException(status_code=400, detail="country must be an ISO country code")
    return code


def _get_json(client: httpx.Client, url: str, params: dict[str, Any] | None = None) -> Any:
    try:
        response = client.get(url, params=params)
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise UpstreamUnavailable(f"Request to {url} failed") from exc


def fetch_fx_rate(client: httpx.Client, base_url: str, base: str, symbols: str) -> dict[str, Any]:
    payload = _get_json(client, f"{base_url}/latest", {"base": base, "symbols": symbols})
    if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
        raise UpstreamUnavailable("FX response missing rates")
    return {"base": payload.get("base", base), "date": payload.get("date"), "rates": payload["rates"]}


def clean_inflation_rows(rows: Any) -> list[dict[str, Any]]:
    cleaned = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        value = row.get("value")
        year = str(row.get("date") or "").strip()
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not year.isdigit():
            continue
        cleaned.append({"year": int(year), "value": value})
    cleaned.sort(key=lambda r: r["year"])
    return cleaned


def fetch_inflation(client: httpx.Client, base_url: str, country: str) -> dict[str, Any]:
    # Response shape: [metadata, rows]
    payload = _get_json(
        client,
        f"{base_url}/country/{country}/indicator/{INFLATION_INDICATOR}",
        {"format": "json", "per_page": 60},
    )
    rows = payload[1] if isinstance(payload, list) and len(payload) > 1 else []
    series = clean_inflation_rows(rows)
    return {"country": country, "latest": series[-1] if series else None, "series": series}


def cached_lookup(cache: TimedCache, key: str, ttl: int, fetch) -> dict[str, Any]:
    cached = cache.get(key)
    if cached is not None:
        return {**cached, "cached": True}
    data = fetch()
    cache.set(key, data, ttl)
    return {**data, "cached": False}
