from unittest.mock import MagicMock

from parkeasy.core.cache import Cache
from parkeasy.core.config import Settings


def test_in_process_counter_increments_per_key():
    cache = Cache(ttl_seconds=60)
    assert [cache.incr("rate:a") for _ in range(3)] == [1, 2, 3]
    assert cache.incr("rate:b") == 1


def test_in_process_by_default():
    cache = Cache.from_settings(Settings(USE_REDIS=False, CACHE_TTL_SECONDS=30))
    assert cache.backend is None
    assert cache.ttl_seconds == 30


def test_redis_counter_sets_expiry():
    client = MagicMock()
    pipe = client.pipeline.return_value
    pipe.execute.return_value = [4, True]

    cache = Cache(ttl_seconds=90, redis_client=client)

    assert cache.incr("rate:x") == 4
    pipe.incr.assert_called_once_with("rate:x")
    pipe.expire.assert_called_once_with("rate:x", 90)
