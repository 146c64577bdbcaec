from __future__ import annotations

from relay_core.cache import TTLCache, price_cache_key


class _Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_get_returns_value_until_expiry() -> None:
    clock = _Clock()
    cache: TTLCache[str] = TTLCache(ttl_s=60.0, clock=clock)
    cache.put("netflix|US", "value")
    clock.now += 59.9
    assert cache.get("netflix|US") == "value"
    clock.now += 0.1
    assert cache.get("netflix|US") is None
    assert len(cache) == 0


def test_put_overwrites_and_restarts_ttl() -> None:
    clock = _Clock()
    cache: TTLCache[str] = TTLCache(ttl_s=10.0, clock=clock)
    cache.put("k", "old")
    clock.now += 8
    cache.put("k", "new")
    clock.now += 8
    assert cache.get("k") == "new"


def test_put_accepts_per_entry_ttl() -> None:
    clock = _Clock()
    cache: TTLCache[str] = TTLCache(ttl_s=100.0, clock=clock)
    cache.put("short", "v", ttl_s=1.0)
    clock.now += 1.0
    assert cache.get("short") is None


def test_capacity_bound_evicts_expired_then_oldest() -> None:
    clock = _Clock()
    cache: TTLCache[int] = TTLCache(ttl_s=10.0, max_entries=2, clock=clock)
    cache.put("a", 1, ttl_s=1.0)
    cache.put("b", 2)
    clock.now += 2
    cache.put("c", 3)
    assert cache.get("a") is None
    assert cache.get("b") == 2
    cache.put("d", 4)
    assert len(cache) == 2
    assert cache.get("b") is None
    assert cache.get("c") == 3
    assert cache.get("d") == 4


def test_price_cache_key_normalizes_name_and_country() -> None:
    assert price_cache_key("  Netflix ", "ca") == "netflix|CA"
    assert price_cache_key("Spotify", "") == "spotify|US"
