import json
import threading
import time
from typing import Any

from redis import Redis
from redis.exceptions import RedisError


class TimedCache:
    """TTL cache for JSON-serializable payloads.

    Uses redis when a URL is configured and reachable, and always keeps an
    in-process copy so a redis outage only costs a refetch.
    """

    def __init__(self, redis_url: str | None = None, key_prefix: str = "finsight") -> None:
        self._cache: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._key_prefix = key_prefix
        self._redis: Redis | None = None
        if redis_url:
            try:
                client = Redis.from_url(redis_url, decode_responses=True)
                client.ping()
                self._redis = client
            except RedisError:
                self._redis = None

    def _redis_key(self, key: str) -> str:
        return f"{self._key_prefix}:cache:{key}"

    def get(self, key: str) -> Any | None:
        if self._redis is not None:
            try:
                raw = self._redis.get(self._redis_key(key))
                if raw is not None:
                    return json.loads(raw)
            except (RedisError, ValueError):
                pass

        with self._lock:
            payload = self._cache.get(key)
            if not payload:
                return None
            expires_at, value = payload
            if time.time() > expires_at:
                self._cache.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        ttl = max(1, ttl)
        if self._redis is not None:
            try:
                self._redis.setex(self._redis_key(key), ttl, json.dumps(value))
            except (RedisError, TypeError, ValueError):
                pass

        with self._lock:
            self._cache[key] = (time.time() + ttl, value)

    def invalidate_prefix(self, prefix: str) -> None:
        if self._redis is not None:
            try:
                pattern = self._redis_key(f"{prefix}*")
                for key in self._redis.scan_iter(match=pattern, count=200):
                    self._redis.delete(key)
            except RedisError:
                pass

        with self._lock:
            for key in list(self._cache.keys()):
                if key.startswith(prefix):
                    self._cache.pop(key, None)
