from conftest import FakeClock

from portal_reports.services.cache import ResponseCache, cache_key


def test_entry_lives_until_ttl():
    clock = FakeClock(0.0)
    cache = ResponseCache(ttl=300.0, clock=clock)
    key = cache_key("cdrs", "acme", 1, 2)
    cache.set(key, [{"id": 1}], next="C")

    clock.advance(299)
    entry = cache.get(key)
    assert entry.rows == [{"id": 1}]
    assert entry.next == "C"

    clock.advance(1)
    assert cache.get(key) is None
    # expired entries are not evicted
    assert len(cache) == 1


def test_set_overwrites_and_copies_rows():
    cache = ResponseCache(clock=FakeClock())
    key = cache_key("cdrs", "acme")
    rows = [{"id": 1}]
    cache.set(key, rows)
    rows.append({"id": 2})
    assert cache.get(key).rows == [{"id": 1}]
    cache.set(key, [{"id": 3}])
    assert cache.get(key).rows == [{"id": 3}]


def test_key_ignores_filter_order():
    first = cache_key("cdrs", "acme", 1, 2, filters={"queue": "a", "agent": ["x", "y"]})
    second = cache_key("cdrs", "acme", 1, 2, filters={"agent": ["x", "y"], "queue": "a"})
    assert first == second
    assert hash(first) == hash(second)


def test_key_includes_window_and_cursor():
    base = cache_key("cdrs", "acme", 1, 2)
    assert base != cache_key("cdrs", "acme", 1, 3)
    assert base != cache_key("queueCalls", "acme", 1, 2)
    assert base != cache_key("cdrs", "acme", 1, 2, start_key="C")
