"""
Tests for domain_animator.py, driven by a ManualFrameScheduler and a fake clock.

Run: pytest test_domain_animator.py -v
"""

from datetime import datetime

import pytest

import domain_animator as da


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _run_until_idle(scheduler, clock, step_ms=16.0, max_frames=1000):
    """Advance the clock one frame at a time until nothing is scheduled."""
    frames = 0
    while scheduler.pending and frames < max_frames:
        clock.now += step_ms
        scheduler.run_frame(clock.now)
        frames += 1
    return frames


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return da.ManualFrameScheduler()


def _animator(scheduler, clock, initial=(0.0, 100.0), **config):
    return da.DomainAnimator(initial, scheduler, clock=clock, config=da.AnimationConfig(**config))


def _date_animator(scheduler, clock, **config):
    return da.DateDomainAnimator(
        (datetime(2020, 1, 1), datetime(2021, 1, 1)), scheduler, clock=clock,
        config=da.AnimationConfig(**config))


# ===========================================================================
# Easing / lerp helpers
# ===========================================================================

class TestEasing:
    def test_linear(self):
        assert da.linear(0.25) == 0.25

    def test_ease_out_quart_endpoints(self):
        assert da.ease_out_quart(0) == 0
        assert da.ease_out_quart(1) == 1

    def test_ease_out_quart_is_ahead_of_linear(self):
        assert da.ease_out_quart(0.5) == pytest.approx(0.9375)

    def test_lerp_domain(self):
        assert da.lerp_domain((0, 10), (10, 30), 0.5) == (5, 20)

    def test_lerp_date_domain(self):
        start = (datetime(2020, 1, 1), datetime(2020, 1, 3))
        end = (datetime(2020, 1, 3), datetime(2020, 1, 5))
        assert da.lerp_date_domain(start, end, 0.5) == (datetime(2020, 1, 2), datetime(2020, 1, 4))


# ===========================================================================
# ManualFrameScheduler
# ===========================================================================

class TestManualFrameScheduler:
    def test_runs_requested_callback(self, scheduler):
        seen = []
        scheduler.request_frame(seen.append)
        assert scheduler.run_frame(16.0) == 1
        assert seen == [16.0]

    def test_cancelled_callback_never_runs(self, scheduler):
        seen = []
        handle = scheduler.request_frame(seen.append)
        scheduler.cancel_frame(handle)
        assert scheduler.run_frame(16.0) == 0
        assert seen == []
        assert not scheduler.pending

    def test_cancel_unknown_handle_is_noop(self, scheduler):
        scheduler.cancel_frame(12345)

    def test_callback_cancelled_earlier_in_same_frame_is_skipped(self, scheduler):
        seen = []
        handles = {}
        handles['first'] = scheduler.request_frame(
            lambda t: (seen.append('first'), scheduler.cancel_frame(handles['second'])))
        handles['second'] = scheduler.request_frame(lambda t: seen.append('second'))
        assert scheduler.run_frame(16.0) == 1
        assert seen == ['first']
        assert scheduler.run_frame(32.0) == 0

    def test_callbacks_run_in_request_order(self, scheduler):
        seen = []
        for name in ('a', 'b', 'c'):
            scheduler.request_frame(lambda t, name=name: seen.append(name))
        scheduler.run_frame(16.0)
        assert seen == ['a', 'b', 'c']

    def test_callback_requested_during_frame_runs_next_frame(self, scheduler):
        seen = []

        def first(t):
            seen.append(('first', t))
            scheduler.request_frame(lambda t2: seen.append(('second', t2)))

        scheduler.request_frame(first)
        scheduler.run_frame(1.0)
        assert seen == [('first', 1.0)]
        scheduler.run_frame(2.0)
        assert seen == [('first', 1.0), ('second', 2.0)]


# ===========================================================================
# DomainAnimator
# ===========================================================================

class TestDomainAnimator:
    def test_starts_idle_at_initial(self, scheduler, clock):
        a = _animator(scheduler, clock)
        assert a.domain == (0.0, 100.0)
        assert not a.is_animating
        assert a.state is None

    def test_same_target_is_noop(self, scheduler, clock):
        a = _animator(scheduler, clock)
        assert a.set_target((0, 100)) is False
        assert not scheduler.pending

    def test_new_target_starts_animating(self, scheduler, clock):
        a = _animator(scheduler, clock)
        assert a.set_target((50, 200)) is True
        assert a.is_animating
        assert a.target == (50, 200)
        assert a.state == da.DomainAnimationState((0.0, 100.0), (50, 200), 0.0, 600)

    def test_linear_midpoint(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((100, 300))
        scheduler.run_frame(300.0)
        assert a.domain == pytest.approx((50.0, 200.0))
        assert a.is_animating

    def test_eased_midpoint(self, scheduler, clock):
        a = _animator(scheduler, clock, easing=da.ease_out_quart)
        a.set_target((100, 300))
        scheduler.run_frame(300.0)
        assert a.domain == pytest.approx((93.75, 287.5))

    def test_converges_on_target(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((50, 200))
        _run_until_idle(scheduler, clock)
        assert a.domain == (50, 200)
        assert not a.is_animating
        assert clock.now >= 600

    def test_single_late_frame_completes(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((50, 200))
        scheduler.run_frame(5000.0)
        assert a.domain == (50, 200)
        assert not a.is_animating
        assert not scheduler.pending

    def test_reschedules_each_frame_while_animating(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((50, 200))
        frames = _run_until_idle(scheduler, clock, step_ms=100.0)
        assert frames == 6

    def test_interruption_lands_on_second_target(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((100, 300))
        clock.now = 300.0
        scheduler.run_frame(clock.now)
        a.set_target((-50, 50))
        _run_until_idle(scheduler, clock)
        assert a.domain == (-50, 50)

    def test_interruption_restarts_from_displayed_domain(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((100, 300))
        clock.now = 300.0
        scheduler.run_frame(clock.now)
        displayed = a.domain
        a.set_target((-50, 50))
        assert a.state.from_domain == displayed
        assert a.state.started_at == 300.0
        # First frame of the new animation: still at the displayed domain
        scheduler.run_frame(300.0)
        assert a.domain == pytest.approx(displayed)

    def test_only_one_callback_pending_after_interruption(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((100, 300))
        a.set_target((200, 400))
        a.set_target((300, 500))
        assert scheduler.run_frame(16.0) == 1

    def test_retarget_to_current_target_mid_flight_is_noop(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((100, 300))
        state = a.state
        assert a.set_target((100, 300)) is False
        assert a.state == state


class TestReducedMotion:
    def test_target_applied_immediately(self, scheduler, clock):
        a = _animator(scheduler, clock, reduced_motion=True)
        a.set_target((50, 200))
        assert a.domain == (50, 200)
        assert not a.is_animating

    def test_never_uses_scheduler(self, scheduler, clock):
        a = _animator(scheduler, clock, reduced_motion=True)
        a.set_target((50, 200))
        assert not scheduler.pending

    def test_is_animating_never_observed(self, scheduler, clock):
        a = _animator(scheduler, clock, reduced_motion=True)
        observed = []
        for target in [(1, 2), (3, 4), (5, 6)]:
            a.set_target(target)
            observed.append(a.is_animating)
            clock.now += 16
            scheduler.run_frame(clock.now)
            observed.append(a.is_animating)
        assert not any(observed)
        assert a.domain == (5, 6)

    def test_zero_duration_behaves_like_reduced_motion(self, scheduler, clock):
        a = _animator(scheduler, clock, duration_ms=0)
        a.set_target((50, 200))
        assert a.domain == (50, 200)
        assert not scheduler.pending


class TestClose:
    def test_close_cancels_pending_frame(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((50, 200))
        a.close()
        assert not scheduler.pending
        assert not a.is_animating

    def test_no_effect_after_close(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((100, 300))
        clock.now = 300.0
        scheduler.run_frame(clock.now)
        displayed = a.domain
        a.close()
        scheduler.run_frame(900.0)
        assert a.domain == displayed

    def test_stale_callback_is_ignored(self, clock):
        # A scheduler that cannot cancel still must not let old frames apply
        class NoCancelScheduler(da.ManualFrameScheduler):
            def cancel_frame(self, handle):
                pass

        scheduler = NoCancelScheduler()
        a = _animator(scheduler, clock)
        a.set_target((100, 300))
        a.set_target((-50, 50))
        scheduler.run_frame(5000.0)
        assert a.domain == (-50, 50)
        a.close()
        scheduler.run_frame(6000.0)
        assert a.domain == (-50, 50)

    def test_closed_animator_snaps_to_new_targets(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.close()
        a.set_target((7, 8))
        assert a.domain == (7, 8)
        assert not scheduler.pending

    def test_close_before_first_frame(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.set_target((50, 200))
        a.close()
        assert scheduler.run_frame(16.0) == 0
        assert a.domain == (0.0, 100.0)

    def test_context_manager_closes(self, scheduler, clock):
        with _animator(scheduler, clock) as a:
            a.set_target((50, 200))
        assert a.closed
        assert not scheduler.pending

    def test_close_twice(self, scheduler, clock):
        a = _animator(scheduler, clock)
        a.close()
        a.close()
        assert a.closed


# ===========================================================================
# DateDomainAnimator
# ===========================================================================

class TestDateDomainAnimator:
    def test_accepts_iso_strings(self, scheduler, clock):
        a = da.DateDomainAnimator(("2020-01-01", "2021-01-01"), scheduler, clock=clock)
        assert a.domain == (datetime(2020, 1, 1), datetime(2021, 1, 1))

    def test_midpoint(self, scheduler, clock):
        a = _date_animator(scheduler, clock)
        a.set_target((datetime(2020, 1, 3), datetime(2021, 1, 3)))
        scheduler.run_frame(300.0)
        assert a.domain == (datetime(2020, 1, 2), datetime(2021, 1, 2))

    def test_converges_exactly(self, scheduler, clock):
        a = _date_animator(scheduler, clock)
        target = (datetime(1950, 7, 1), datetime(2025, 12, 31))
        a.set_target(target)
        _run_until_idle(scheduler, clock)
        assert a.domain == target
        assert not a.is_animating

    def test_interruption(self, scheduler, clock):
        a = _date_animator(scheduler, clock)
        a.set_target(("2010-01-01", "2015-01-01"))
        clock.now = 200.0
        scheduler.run_frame(clock.now)
        a.set_target(("2023-02-01", "2025-12-31"))
        _run_until_idle(scheduler, clock)
        assert a.domain == (datetime(2023, 2, 1), datetime(2025, 12, 31))

    def test_reduced_motion(self, scheduler, clock):
        a = _date_animator(scheduler, clock, reduced_motion=True)
        a.set_target(("2023-02-01", "2025-12-31"))
        assert a.domain == (datetime(2023, 2, 1), datetime(2025, 12, 31))
        assert not a.is_animating
        assert not scheduler.pending
