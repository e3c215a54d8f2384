from anomaly_watch.scoring.cache import ScoreCache


def test_entry_valid_just_before_ttl(clock):
    cache = ScoreCache(ttl_seconds=60.0, clock=clock)
    cache.put("A", 0.5)
    clock.advance(60.0 - 0.001)
    entry = cache.get("A")
    assert entry is not None
    assert entry.score == 0.5
    assert not cache.is_stale("A")


def test_entry_valid_exactly_at_ttl(clock):
    cache = ScoreCache(ttl_seconds=60.0, clock=clock)
    cache.put("A", 0.5)
    clock.advance(60.0)
    assert cache.get("A") is not None


def test_entry_absent_after_ttl(clock):
    cache = ScoreCache(ttl_seconds=60.0, clock=clock)
    cache.put("A", 0.5)
    clock.advance(60.0 + 0.001)
    assert cache.get("A") is None
    assert cache.is_stale("A")
    assert len(cache) == 0


def test_missing_entry_is_stale(clock):
    cache = ScoreCache(clock=clock)
    assert cache.is_stale("nobody")
    assert cache.get("nobody") is None


def test_put_overwrites_and_restamps(clock):
    cache = ScoreCache(ttl_seconds=10.0, clock=clock)
    cache.put("A", 0.1)
    clock.advance(8)
    cache.put("A", 0.9)
    clock.advance(8)
    entry = cache.get("A")
    assert entry.score == 0.9
    assert entry.fetched_at == clock.now - 8


def test_snapshot_evicts_expired(clock):
    cache = ScoreCache(ttl_seconds=60.0, clock=clock)
    cache.put("old", 0.2)
    clock.advance(30)
    cache.put("new", 0.7)
    assert cache.snapshot() == {"old": 0.2, "new": 0.7}

    clock.advance(31)
    assert cache.snapshot() == {"new": 0.7}
    assert len(cache) == 1


def test_clear(clock):
    cache = ScoreCache(clock=clock)
    cache.put("A", 1.0)
    cache.clear()
    assert cache.snapshot() == {}
