import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException

from finsight.core.cache import TimedCache
from finsight.core.config import settings
from finsight.services.rates import (
    UpstreamUnavailable,
    cached_lookup,
    fetch_fx_rate,
    fetch_inflation,
    normalize_country,
    normalize_currency,
    normalize_symbols,
)
from finsight.services.state import get_cache, get_http_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/currency/rate")
def currency_rate(
    base: str | None = None,
    symbols: str | None = None,
    client: httpx.Client = Depends(get_http_client),
    cache: TimedCache = Depends(get_cache),
):
    base_code = normalize_currency(base, settings.default_fx_base)
    symbol_codes = normalize_symbols(symbols, settings.default_fx_symbols)
    try:
        return cached_lookup(
            cache,
            f"fx:{base_code}:{symbol_codes}",
            settings.fx_cache_ttl,
            lambda: fetch_fx_rate(client, settings.fx_api_url, base_code, symbol_codes),
        )
    except UpstreamUnavailable:
        logger.exception("FX lookup failed for %s -> %s", base_code, symbol_codes)
        raise HTTPException(status_code=502, detail="Failed to fetch FX rate")


@router.get("/inflation")
def inflation(
    country: str | None = None,
    client: httpx.Client = Depends(get_http_client),
    cache: TimedCache = Depends(get_cache),
):
    country_code = normalize_country(country, settings.default_inflation_country)
    try:
        return cached_lookup(
            cache,
            f"inflation:{country_code}",
            settings.inflation_cache_ttl,
            lambda: fetch_inflation(client, settings.inflation_api_url, country_code),
        )
    except UpstreamUnavailable:
        logger.exception("inflation lookup failed for %s", country_code)
        raise HTTPException(status_code=502, detail="Failed to fetch inflation data")
