import redis

from gameclub import cache


def test_set_get_and_invalidate(fake_redis):
    cache.cache_set("club:1:members", [{"id": 1}], ttl=30)
    assert cache.cache_get("club:1:members") == [{"id": 1}]

    cache.invalidate_members(1)
    assert cache.cache_get("club:1:members") is None


def test_falls_back_when_redis_is_down(monkeypatch):
    cache.set_redis_client(None)

    def unreachable(*args, **kwargs):
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(redis.Redis, "from_url", unreachable)

    assert cache.get_redis() is None
    assert cache.cache_get("anything") is None
    cache.cache_set("anything", 1, ttl=5)
    cache.cache_invalidate("anything")


def test_broken_client_degrades_to_miss():
    class Broken:
        def get(self, key):
            raise redis.ConnectionError("gone")

        def setex(self, key, ttl, value):
            raise redis.ConnectionError("gone")

        def delete(self, *keys):
            raise redis.ConnectionError("gone")

    cache.set_redis_client(Broken())
    assert cache.cache_get("k") is None
    cache.cache_set("k", 1, ttl=5)
    cache.cache_invalidate("k")
