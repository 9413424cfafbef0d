import threading
import redis
from cachetools import TTLCache
from .config import Settings

class Cache:
    """
    Counter store for the rate limiter: Redis when enabled, otherwise an
    in-process TTLCache. Built per app from that app's settings.
    """
    def __init__(self, ttl_seconds: int, redis_client: redis.Redis | None = None):
        self.ttl_seconds = ttl_seconds
        self.backend = redis_client
        self._local = TTLCache(maxsize=4096, ttl=ttl_seconds)
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Cache":
        client = None
        if settings.USE_REDIS:
            client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
        return cls(settings.CACHE_TTL_SECONDS, client)

    def incr(self, key: str) -> int:
        """Bump a counter that expires ttl_seconds after its last hit."""
        if self.backend is not None:
            pipe = self.backend.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.ttl_seconds)
            count, _ = pipe.execute()
            return int(count)
        # TTLCache is not thread-safe
        with self._lock:
            count = self._local.get(key, 0) + 1
            self._local[key] = count
            return count
