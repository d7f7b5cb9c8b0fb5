from threading import Lock

import redis
from cachetools import TTLCache

from .config import settings

class CounterStore:
    """
    Expiring integer counters for the rate limiter.
    Redis when USE_REDIS is set (INCR + EXPIRE), otherwise an in-process TTLCache.
    """
    def __init__(self, ttl_seconds: int, use_redis: bool = False, redis_url: str | None = None):
        self.ttl = ttl_seconds
        self.backend = None
        if use_redis and redis_url:
            self.backend = redis.Redis.from_url(redis_url, decode_responses=True)
        self._local: TTLCache = TTLCache(maxsize=8192, ttl=ttl_seconds)
        self._lock = Lock()

    def incr(self, key: str) -> int:
        """Increment ``key`` and return the new value."""
        if self.backend:
            pipe = self.backend.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.ttl)
            count, _ = pipe.execute()
            return int(count)
        with self._lock:
            count = self._local.get(key, 0) + 1
            self._local[key] = count
            return count

    def clear(self) -> None:
        with self._lock:
            self._local.clear()

counters = CounterStore(
    ttl_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    use_redis=settings.USE_REDIS,
    redis_url=settings.REDIS_URL,
)
