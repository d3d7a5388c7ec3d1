import pytest

from nationscript.infrastructure.resilience.rate_limiter import RateLimiter

@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)

def test_calls_within_capacity_are_admitted_at_once(limiter, clock):
    start = clock.now()
    clock.run(*[limiter.acquire() for _ in range(49)])
    assert clock.now() == start
    assert limiter.sent_in_window == 49
    assert limiter.window_expires_at == pytest.approx(start + 30.2)

def test_call_over_capacity_waits_for_next_window(limiter, clock):
    """Test that the capacity+1-th call is released no earlier than the window's end."""
    start = clock.now()
    for _ in range(49):
        clock.run(limiter.acquire())
    first_window_end = limiter.window_expires_at

    clock.run(limiter.acquire())

    assert clock.now() >= first_window_end
    assert clock.now() == pytest.approx(start + 30.4)
    assert limiter.sent_in_window == 1
    assert limiter.queued_count == 0

def test_queued_calls_are_staggered(limiter, clock):
    start = clock.now()
    results = clock.run(*[limiter.acquire() for _ in range(52)])
    assert results == [None] * 52
    # Three calls queued: released at the window change, 0.25s apart
    assert clock.now() == pytest.approx(start + 30.4 + 2 * 0.25)
    assert limiter.sent_in_window == 3

def test_admissions_never_exceed_capacity_per_window(clock):
    """Test that no window of the limiter's length admits more than its capacity."""
    limiter = RateLimiter(clock=clock, window_seconds=10.0, capacity=5, safety_buffer=0.0, stagger=0.0)
    admitted = []

    async def call():
        await limiter.acquire()
        admitted.append(clock.now())

    clock.run(*[call() for _ in range(23)])

    assert len(admitted) == 23
    for t in admitted:
        in_window = [a for a in admitted if t <= a < t + 10.0]
        assert len(in_window) <= 5

def test_new_window_after_expiry_resets_counters(limiter, clock):
    clock.run(limiter.acquire())
    clock.run(limiter.acquire())
    clock.advance(31)
    clock.run(limiter.acquire())
    assert limiter.sent_in_window == 1
    assert limiter.window_expires_at == pytest.approx(clock.now() + 30.2)

def test_invalid_capacity_is_rejected(clock):
    with pytest.raises(ValueError):
        RateLimiter(clock=clock, capacity=0)

# --- update ---

def test_update_recalibrates_capacity(limiter):
    limiter.update({'RateLimit-Limit': '40'})
    assert limiter.capacity == 39

def test_update_capacity_has_a_floor(limiter):
    limiter.update({'ratelimit-limit': '0'})
    assert limiter.capacity == 1

def test_update_only_raises_sent_count(limiter, clock):
    """Test that the server can report more usage than we counted, never less."""
    clock.run(limiter.acquire())
    clock.run(limiter.acquire())
    clock.run(limiter.acquire())
    assert limiter.sent_in_window == 3

    limiter.update({'RateLimit-Limit': '50', 'RateLimit-Remaining': '48'})
    assert limiter.sent_in_window == 3

    limiter.update({'RateLimit-Limit': '50', 'RateLimit-Remaining': '40'})
    assert limiter.sent_in_window == 10

    limiter.update({'RateLimit-Remaining': '45'})
    assert limiter.sent_in_window == 10

def test_update_remaining_without_limit_uses_own_capacity(limiter):
    limiter.update({'RateLimit-Remaining': '30'})
    assert limiter.sent_in_window == 20

def test_update_extends_window_from_reset(limiter, clock):
    clock.run(limiter.acquire())
    limiter.update({'RateLimit-Reset': '45'})
    assert limiter.window_expires_at == pytest.approx(clock.now() + 45)
    limiter.update({'RateLimit-Reset': '5'})
    assert limiter.window_expires_at == pytest.approx(clock.now() + 45)

def test_update_ignores_malformed_headers(limiter):
    before = (limiter.capacity, limiter.sent_in_window, limiter.window_expires_at, limiter.server_retry_at)
    limiter.update({'RateLimit-Limit': 'many', 'RateLimit-Remaining': '', 'RateLimit-Reset': 'nan', 'Retry-After': None})
    limiter.update(None)
    limiter.update({})
    assert (limiter.capacity, limiter.sent_in_window, limiter.window_expires_at, limiter.server_retry_at) == before

def test_retry_after_holds_queued_calls(clock):
    """Test that queued calls keep waiting while the server's Retry-After is in the future."""
    limiter = RateLimiter(clock=clock, window_seconds=10.0, capacity=2, safety_buffer=0.0, stagger=0.0)
    start = clock.now()
    clock.run(limiter.acquire())
    clock.run(limiter.acquire())
    limiter.update({'Retry-After': '25'})
    assert limiter.server_retry_at == pytest.approx(start + 25)

    clock.run(limiter.acquire())

    assert clock.now() >= start + 25
