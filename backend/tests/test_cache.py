from decimal import Decimal

import fakeredis
import redis

from app.utils import redis_cache


def test_cache_distance_round_trip(monkeypatch):
    fake = fakeredis.FakeStrictRedis(decode_responses=True)
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    redis_cache.cache_distance("A", "B", Decimal("8.50"), Decimal("13"), expire=60)
    assert redis_cache.get_cached_distance("A", "B") == (Decimal("8.50"), Decimal("13"))
    # keys are normalised for case and surrounding whitespace
    assert redis_cache.get_cached_distance(" a ", "b") == (Decimal("8.50"), Decimal("13"))
    assert redis_cache.get_cached_distance("B", "A") is None


def test_cache_distance_sets_jittered_ttl(monkeypatch):
    fake = fakeredis.FakeStrictRedis(decode_responses=True)
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    redis_cache.cache_distance("A", "B", Decimal("1"), Decimal("1"), expire=100)
    ttl = fake.ttl(redis_cache._distance_key("A", "B"))
    assert 100 <= ttl <= 110


def test_zero_ttl_disables_caching(monkeypatch):
    fake = fakeredis.FakeStrictRedis(decode_responses=True)
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    redis_cache.cache_distance("A", "B", Decimal("1"), Decimal("1"), expire=0)
    assert fake.keys("*") == []


def test_malformed_entry_is_ignored(monkeypatch):
    fake = fakeredis.FakeStrictRedis(decode_responses=True)
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    fake.set(redis_cache._distance_key("A", "B"), "not json")
    assert redis_cache.get_cached_distance("A", "B") is None


def test_redis_errors_are_not_fatal(monkeypatch):
    class Broken:
        def get(self, key):
            raise redis.exceptions.ConnectionError("down")

        def setex(self, key, expire, value):
            raise redis.exceptions.ConnectionError("down")

    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: Broken())
    redis_cache.cache_distance("A", "B", Decimal("1"), Decimal("1"), expire=60)
    assert redis_cache.get_cached_distance("A", "B") is None


def test_disabled_url_uses_null_client(monkeypatch):
    monkeypatch.setattr(redis_cache, "_redis_client", None)
    monkeypatch.setattr(redis_cache.settings, "REDIS_URL", "disabled")
    client = redis_cache.get_redis_client()
    assert isinstance(client, redis_cache._NullRedis)
    assert client.get("anything") is None
