from core.rate_limit import TokenBucketLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_budget_per_address():
    clock = FakeClock()
    limiter = TokenBucketLimiter(max_requests=3, window_seconds=30, clock=clock)

    assert [limiter.acquire("10.0.0.1") for _ in range(3)] == [0, 0, 0]
    wait = limiter.acquire("10.0.0.1")

    assert wait > 0
    assert limiter.retry_after(wait) == 10
    # Other callers keep their own budget
    assert limiter.acquire("10.0.0.2") == 0


def test_refills_over_time():
    clock = FakeClock()
    limiter = TokenBucketLimiter(max_requests=2, window_seconds=10, clock=clock)
    limiter.acquire("a")
    limiter.acquire("a")
    assert limiter.acquire("a") > 0

    clock.now += 5
    assert limiter.acquire("a") == 0
    assert limiter.acquire("a") > 0


def test_idle_buckets_are_swept():
    clock = FakeClock()
    limiter = TokenBucketLimiter(max_requests=5, window_seconds=60, clock=clock)
    limiter.acquire("a")
    limiter.acquire("b")

    clock.now += 61
    limiter.acquire("c")

    assert len(limiter) == 1


def test_map_is_bounded():
    limiter = TokenBucketLimiter(max_requests=5, window_seconds=60, max_clients=2, clock=FakeClock())

    for address in ("a", "b", "c"):
        limiter.acquire(address)

    assert len(limiter) == 2
