"""
Y-axis domains for the active metrics, and the position scales built from them.

Log-scaled kinds (training compute, task minutes) are padded by one order of
magnitude on each side; linear kinds (percentages, indices) by a tenth of
their span. Only series flagged ``domain_determining`` move the domain, so an
overlay drawn on the same axis in other units cannot skew it.
"""

import math

import numpy as np
from loguru import logger

from metric_series import LOG10_FLOP, MINUTES, UnknownMetricError, parse_date

# 10^17 .. 10^27 FLOP: the plausible span of modern training runs
DEFAULT_DOMAIN = (1e17, 1e27)

_LOG_KINDS = (LOG10_FLOP, MINUTES)


def log_to_flop(log_value):
    return math.pow(10, log_value)


def flop_to_log(flop):
    """log10 of a FLOP count; -inf for 0, nan for negatives."""
    if flop == 0:
        return -math.inf
    if flop < 0:
        return math.nan
    return math.log10(flop)


def is_log_kind(value_kind):
    return value_kind in _LOG_KINDS


def filter_points_by_date_range(series, start, end):
    """Points dated within [start, end], inclusive at both ends."""
    start, end = parse_date(start), parse_date(end)
    return [p for p in series.points if start <= p.date <= end]


def _padded(value_kind, lo, hi):
    if value_kind == LOG10_FLOP:
        return log_to_flop(lo - 1), log_to_flop(hi + 1)
    if value_kind == MINUTES:
        return lo / 10, hi * 10
    pad = max((hi - lo) * 0.1, 1.0)
    return lo - pad, hi + pad


def metric_domain(series, start, end):
    """Padded display-space [min, max] of a series' values within a date range.

    Falls back to the whole series when no point lies in the range; returns
    None only for an empty series.
    """
    filtered = filter_points_by_date_range(series, start, end)
    if filtered:
        values = [p.value for p in filtered]
        lo, hi = min(values), max(values)
    elif series.value_range is not None:
        lo, hi = series.value_range
    else:
        return None
    return _padded(series.value_kind, lo, hi)


def compute_domain(store, active_metric_ids, start, end):
    """Shared Y domain for the active metrics over [start, end].

    Non-domain-determining metrics are ignored. With none left (or all of
    them empty) the fixed DEFAULT_DOMAIN is returned instead of failing.
    """
    lo = hi = None
    for metric_id in active_metric_ids:
        try:
            series = store.get(metric_id)
        except UnknownMetricError:
            logger.warning("compute_domain: unknown metric {!r} ignored", metric_id)
            continue
        if not series.domain_determining:
            continue
        dom = metric_domain(series, start, end)
        if dom is None:
            continue
        lo = dom[0] if lo is None else min(lo, dom[0])
        hi = dom[1] if hi is None else max(hi, dom[1])

    if lo is None:
        return DEFAULT_DOMAIN
    return lo, hi


# ── Position scales ──────────────────────────────────────────────────────

class LinearScale:
    """Maps a value domain linearly onto a pixel range."""

    def __init__(self, domain, range):
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range[0]), float(range[1]))

    def _forward(self, v):
        return v

    def _inverse(self, v):
        return v

    def __call__(self, value):
        d0, d1 = (self._forward(d) for d in self.domain)
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2
        t = (self._forward(value) - d0) / (d1 - d0)
        return r0 + t * (r1 - r0)

    def invert(self, pixel):
        d0, d1 = (self._forward(d) for d in self.domain)
        r0, r1 = self.range
        if r1 == r0:
            return self._inverse(d0)
        t = (pixel - r0) / (r1 - r0)
        return self._inverse(d0 + t * (d1 - d0))


class LogScale(LinearScale):
    """Base-10 log mapping; domain endpoints must be positive."""

    def __init__(self, domain, range):
        if domain[0] <= 0 or domain[1] <= 0:
            raise ValueError(f"Log scale domain must be positive, got {domain}")
        super().__init__(domain, range)

    def _forward(self, v):
        return np.log10(v)

    def _inverse(self, v):
        return float(10 ** v)


def create_log_y_scale(height, domain):
    """Log Y scale with large values at the top (pixel 0)."""
    return LogScale(domain, (height, 0))


def create_linear_y_scale(height, domain):
    return LinearScale(domain, (height, 0))
