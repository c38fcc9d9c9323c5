import pytest

from portfolio.errors import TooManyAttempts
from portfolio.services.attempt_tracker import LoginAttemptTracker


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return LoginAttemptTracker(clock=clock)


def fail(tracker, identifier, times):
    for _ in range(times):
        tracker.record_failure(identifier)


def test_unknown_identifier_passes(tracker):
    tracker.check("nobody@example.com")
    assert tracker.delay_for("nobody@example.com") == 0
    assert tracker.stage("nobody@example.com") == "clean"


def test_nine_failures_do_not_lock(tracker):
    fail(tracker, "x@example.com", 9)
    tracker.check("x@example.com")


def test_ten_failures_lock_the_identifier(tracker):
    fail(tracker, "x@example.com", 10)

    with pytest.raises(TooManyAttempts) as exc_info:
        tracker.check("x@example.com")

    assert exc_info.value.remaining_seconds == 300
    assert "300 seconds" in exc_info.value.detail
    assert tracker.stage("x@example.com") == "locked"


def test_identifier_is_case_insensitive(tracker):
    fail(tracker, "Mixed@Example.COM", 10)

    with pytest.raises(TooManyAttempts):
        tracker.check("mixed@example.com")


def test_remaining_seconds_round_up(tracker, clock):
    fail(tracker, "x@example.com", 10)
    clock.advance(299.5)

    with pytest.raises(TooManyAttempts) as exc_info:
        tracker.check("x@example.com")
    assert exc_info.value.remaining_seconds == 1


def test_lock_expires_after_five_minutes(tracker, clock):
    fail(tracker, "x@example.com", 10)
    clock.advance(301)

    tracker.check("x@example.com")


def test_success_clears_lockout(tracker):
    fail(tracker, "x@example.com", 10)

    tracker.record_success("x@example.com")

    tracker.check("x@example.com")
    assert tracker.delay_for("x@example.com") == 0
    assert tracker.stage("x@example.com") == "clean"


def test_idle_record_is_discarded_regardless_of_count(tracker, clock):
    fail(tracker, "x@example.com", 9)
    clock.advance(15 * 60 + 1)

    tracker.check("x@example.com")
    assert tracker.stage("x@example.com") == "clean"

    # The count starts over: one more failure is not a lockout
    tracker.record_failure("x@example.com")
    tracker.check("x@example.com")
    assert tracker.stage("x@example.com") == "warn"


def test_idle_window_is_measured_from_last_attempt(tracker, clock):
    fail(tracker, "x@example.com", 5)
    clock.advance(14 * 60)
    tracker.record_failure("x@example.com")
    clock.advance(14 * 60)

    assert tracker.stage("x@example.com") == "hard-delay"


@pytest.mark.parametrize(
    "failures, delay, stage",
    [
        (1, 0, "warn"),
        (2, 0, "warn"),
        (3, 5_000, "soft-delay"),
        (4, 5_000, "soft-delay"),
        (5, 30_000, "hard-delay"),
        (9, 30_000, "hard-delay"),
    ],
)
def test_progressive_delay(tracker, failures, delay, stage):
    fail(tracker, "x@example.com", failures)

    assert tracker.delay_for("x@example.com") == delay
    assert tracker.stage("x@example.com") == stage


def test_identifiers_are_independent(tracker):
    fail(tracker, "a@example.com", 10)

    tracker.check("b@example.com")
