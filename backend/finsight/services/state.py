import httpx

from finsight.core.cache import TimedCache
from finsight.core.config import settings
from finsight.core.rate_limit import RateLimiter

cache = TimedCache(redis_url=settings.redis_url, key_prefix=settings.redis_prefix)
rate_limiter = RateLimiter(redis_url=settings.redis_url, key_prefix=settings.redis_prefix)
http_client = httpx.Client(timeout=settings.http_timeout, headers={"Accept": "application/json"})


def get_cache() -> TimedCache:
    return cache


def get_http_client() -> httpx.Client:
    return http_client
