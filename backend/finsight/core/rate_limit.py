import secrets
import threading
import time

from redis import Redis
from redis.exceptions import RedisError


class RateLimiter:
    """Sliding-window limiter keyed by arbitrary strings (ip, username)."""

    _REDIS_WINDOW_SCRIPT = """
local key = KEYS[1]
local now_ms = tonumber(ARGV[1])
local window_ms = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]
local ttl = tonumber(ARGV[5])

redis.call("ZREMRANGEBYSCORE", key, 0, now_ms - window_ms)
if redis.call("ZCARD", key) >= limit then
  redis.call("EXPIRE", key, ttl)
  return 1
end

redis.call("ZADD", key, now_ms, member)
redis.call("EXPIRE", key, ttl)
return 0
"""

    _SWEEP_INTERVAL_SECONDS = 60

    def __init__(self, redis_url: str | None = None, key_prefix: str = "finsight") -> None:
        self._events: dict[str, list[float]] = {}
        self._expires_at: dict[str, float] = {}
        self._next_sweep = 0.0
        self._lock = threading.Lock()
        self._key_prefix = key_prefix
        self._redis: Redis | None = None
        if redis_url:
            try:
                client = Redis.from_url(redis_url, decode_responses=False)
                client.ping()
                self._redis = client
            except RedisError:
                self._redis = None

    def _redis_key(self, key: str) -> str:
        return f"{self._key_prefix}:ratelimit:{key}"

    def _exceeded_redis(self, key: str, limit: int, window_seconds: int) -> bool | None:
        if self._redis is None:
            return None
        now_ms = int(time.time() * 1000)
        try:
            result = self._redis.eval(
                self._REDIS_WINDOW_SCRIPT,
                1,
                self._redis_key(key),
                now_ms,
                window_seconds * 1000,
                limit,
                f"{now_ms}-{secrets.token_hex(6)}",
                window_seconds + 1,
            )
            return int(result or 0) == 1
        except RedisError:
            return None

    def exceeded(self, key: str, limit: int, window_seconds: int) -> bool:
        limit = max(1, int(limit))
        window_seconds = max(1, int(window_seconds))

        redis_result = self._exceeded_redis(key, limit, window_seconds)
        if redis_result is not None:
            return redis_result

        now = time.time()
        cutoff = now - window_seconds
        with self._lock:
            self._sweep_expired(now)
            events = [ts for ts in self._events.get(key, []) if ts >= cutoff]
            if len(events) >= limit:
                self._events[key] = events
                return True
            events.append(now)
            self._events[key] = events
            self._expires_at[key] = now + window_seconds
            return False

    def _sweep_expired(self, now: float) -> None:
        # caller holds self._lock
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._SWEEP_INTERVAL_SECONDS
        for stale in [k for k, expires_at in self._expires_at.items() if expires_at < now]:
            self._expires_at.pop(stale, None)
            self._events.pop(stale, None)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._events.clear()
                self._expires_at.clear()
            else:
                self._events.pop(key, None)
                self._expires_at.pop(key, None)

        if self._redis is None:
            return
        try:
            if key is None:
                stale = list(self._redis.scan_iter(match=f"{self._key_prefix}:ratelimit:*", count=500))
                if stale:
                    self._redis.delete(*stale)
            else:
                self._redis.delete(self._redis_key(key))
        except RedisError:
            pass
