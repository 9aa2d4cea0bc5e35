"""
Animated axis domains.

A DomainAnimator moves a displayed [start, end] pair toward a target over a
fixed duration, one scheduler frame at a time. DateDomainAnimator does the
same for a pair of datetimes (the X-axis window when the anchor metric
changes).

State machine:

    Idle --set_target(new)--> Animating --elapsed >= duration--> Idle

A set_target() while Animating replaces the in-flight animation and starts
from the currently displayed domain, not the old starting point. With
reduced motion the target is applied immediately and nothing is scheduled.
"""

import time
from collections import namedtuple
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from metric_series import from_epoch_ms, parse_date, to_epoch_ms

ANIMATION_DURATION_MS = 600


def linear(t):
    return t


def ease_out_quart(t):
    """Fast start, slow finish: 1 - (1 - t)^4."""
    return 1 - (1 - t) ** 4


def lerp_domain(from_domain, to_domain, progress):
    return (
        from_domain[0] + (to_domain[0] - from_domain[0]) * progress,
        from_domain[1] + (to_domain[1] - from_domain[1]) * progress,
    )


def lerp_date_domain(from_domain, to_domain, progress):
    """Interpolate two (start, end) datetime pairs via their epoch-ms values."""
    f0, f1 = (to_epoch_ms(d) for d in from_domain)
    t0, t1 = (to_epoch_ms(d) for d in to_domain)
    s, e = lerp_domain((f0, f1), (t0, t1), progress)
    return from_epoch_ms(s), from_epoch_ms(e)


def _monotonic_ms():
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class AnimationConfig:
    duration_ms: float = ANIMATION_DURATION_MS
    reduced_motion: bool = False
    easing: Callable[[float], float] = linear


DomainAnimationState = namedtuple(
    'DomainAnimationState', ['from_domain', 'to_domain', 'started_at', 'duration_ms'])


# ── Frame scheduling ─────────────────────────────────────────────────────

class ManualFrameScheduler:
    """Cooperative per-frame callback queue.

    Callbacks requested during a frame run on the next frame, never the
    current one. A callback cancelled by an earlier callback of the same
    frame does not run. The host (a render loop, or a test) calls
    run_frame() with the frame's timestamp in milliseconds.
    """

    def __init__(self):
        self._callbacks = {}
        self._due = {}
        self._next_handle = 1

    def request_frame(self, callback):
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        return handle

    def cancel_frame(self, handle):
        self._callbacks.pop(handle, None)
        self._due.pop(handle, None)

    @property
    def pending(self):
        return bool(self._callbacks)

    def run_frame(self, frame_time_ms):
        """Run every callback queued before this frame; returns how many ran."""
        self._due, self._callbacks = self._callbacks, {}
        ran = 0
        while self._due:
            handle = next(iter(self._due))
            callback = self._due.pop(handle)
            callback(frame_time_ms)
            ran += 1
        return ran


# ── Animators ────────────────────────────────────────────────────────────

class DomainAnimator:
    """Animates a numeric (lo, hi) domain."""

    def __init__(self, initial_domain, scheduler, clock=None, config=None):
        self.config = config or AnimationConfig()
        self._scheduler = scheduler
        self._clock = clock or _monotonic_ms
        self._target_external = self._normalize(initial_domain)
        self._target = self._to_internal(self._target_external)
        self._displayed = self._target
        self._from = None
        self._started_at = None
        self._handle = None
        self._generation = 0
        self._closed = False

    def _normalize(self, domain):
        lo, hi = domain
        return lo, hi

    def _to_internal(self, domain):
        lo, hi = domain
        return float(lo), float(hi)

    def _to_external(self, domain):
        return domain

    @property
    def domain(self):
        if self._displayed == self._target:
            return self._target_external
        return self._to_external(self._displayed)

    @property
    def target(self):
        return self._target_external

    @property
    def is_animating(self):
        return self._handle is not None

    @property
    def closed(self):
        return self._closed

    @property
    def state(self):
        """DomainAnimationState of the running animation, or None when idle."""
        if not self.is_animating:
            return None
        return DomainAnimationState(
            self._to_external(self._from), self._target_external,
            self._started_at, self.config.duration_ms)

    def set_target(self, domain):
        """Start animating toward domain. Returns False if it is already the target."""
        domain = self._normalize(domain)
        target = self._to_internal(domain)
        if target == self._target:
            return False

        superseded = self._cancel_frame()
        self._generation += 1
        self._target = target
        self._target_external = domain

        if self._closed or self.config.reduced_motion or self.config.duration_ms <= 0:
            self._displayed = target
            self._from = None
            return True

        self._from = self._displayed
        self._started_at = self._clock()
        generation = self._generation
        self._handle = self._scheduler.request_frame(
            lambda t: self._on_frame(generation, t))
        logger.debug("Domain animation {} {} -> {}",
                     "restarted" if superseded else "started", self._from, target)
        return True

    def _on_frame(self, generation, frame_time):
        if generation != self._generation or self._closed:
            return
        self._handle = None

        elapsed = frame_time - self._started_at
        progress = min(max(elapsed / self.config.duration_ms, 0.0), 1.0)
        if progress >= 1.0:
            self._displayed = self._target
            self._from = None
            logger.debug("Domain animation complete at {}", self._target)
            return

        self._displayed = lerp_domain(self._from, self._target, self.config.easing(progress))
        self._handle = self._scheduler.request_frame(
            lambda t: self._on_frame(generation, t))

    def _cancel_frame(self):
        if self._handle is None:
            return False
        self._scheduler.cancel_frame(self._handle)
        self._handle = None
        return True

    def close(self):
        """Stop any scheduled frame. Later targets are applied without animating."""
        if self._closed:
            return
        self._cancel_frame()
        self._generation += 1
        self._closed = True
        logger.debug("Domain animator closed")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class DateDomainAnimator(DomainAnimator):
    """Animates a (start, end) datetime window through epoch milliseconds."""

    def _normalize(self, domain):
        start, end = domain
        return parse_date(start), parse_date(end)

    def _to_internal(self, domain):
        start, end = domain
        return float(to_epoch_ms(start)), float(to_epoch_ms(end))

    def _to_external(self, domain):
        return from_epoch_ms(domain[0]), from_epoch_ms(domain[1])
