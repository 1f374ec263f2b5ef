import asyncio

from playerpeaks.utils.rate_limiter import Admission, RateLimiter, RateLimitState

START = 1_700_000_000_000


def _check(limiter, state, client, now):
    return asyncio.run(limiter.check(state, client, now))


def test_ten_requests_in_window_are_admitted_and_eleventh_blocks():
    limiter = RateLimiter()
    state = RateLimitState()
    results = [_check(limiter, state, "a", START + i * 500) for i in range(10)]
    assert all(result.allowed for result in results)

    denied = _check(limiter, state, "a", START + 5_000)
    assert denied == Admission(allowed=False, retry_after_seconds=3600)
    assert state.entries["a"].blocked_until == START + 5_000 + 3_600_000


def test_blocked_client_gets_remaining_seconds_rounded_up():
    limiter = RateLimiter()
    state = RateLimitState()
    for _ in range(11):
        _check(limiter, state, "a", START)
    denied = _check(limiter, state, "a", START + 1_500)
    assert not denied.allowed
    assert denied.retry_after_seconds == 3599


def test_block_expiry_starts_fresh_window():
    limiter = RateLimiter()
    state = RateLimitState()
    for _ in range(11):
        _check(limiter, state, "a", START)
    assert not _check(limiter, state, "a", START + 3_599_999).allowed

    assert _check(limiter, state, "a", START + 3_600_000).allowed
    entry = state.entries["a"]
    assert entry.count == 1
    assert entry.blocked_until is None


def test_window_expiry_resets_count():
    limiter = RateLimiter()
    state = RateLimitState()
    for _ in range(10):
        _check(limiter, state, "a", START)
    # still inside the window at exactly ten seconds
    assert _check(limiter, state, "b", START + 10_000).allowed
    assert _check(limiter, state, "a", START + 10_001).allowed
    assert state.entries["a"].count == 1
    assert state.entries["a"].window_start == START + 10_001


def test_clients_are_tracked_independently():
    limiter = RateLimiter(max_requests=2)
    state = RateLimitState()
    assert _check(limiter, state, "a", START).allowed
    assert _check(limiter, state, "a", START).allowed
    assert not _check(limiter, state, "a", START).allowed
    assert _check(limiter, state, "b", START).allowed


def test_internal_fault_fails_open():
    limiter = RateLimiter()
    state = RateLimitState()
    state.entries = None  # type: ignore[assignment]
    assert _check(limiter, state, "a", START).allowed


def test_sweep_drops_expired_entries():
    limiter = RateLimiter(max_requests=1)
    state = RateLimitState()
    _check(limiter, state, "idle", START)
    _check(limiter, state, "blocked", START)
    _check(limiter, state, "blocked", START)
    assert set(state.entries) == {"idle", "blocked"}

    _check(limiter, state, "fresh", START + 120_000)
    assert set(state.entries) == {"blocked", "fresh"}


def test_admission_deny_is_always_positive():
    assert Admission.deny(0).retry_after_seconds == 1
    assert Admission.allow().allowed
