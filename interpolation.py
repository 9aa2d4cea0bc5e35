"""
Value-at-date lookups over MetricSeries.

value_at is a binary search over a per-series array of epoch-millisecond
timestamps followed by linear interpolation. Dates before the first sample or
after the last clamp to the end values; they never raise.
"""

import numpy as np
from loguru import logger

from metric_series import COMPUTE, LOG10_FLOP, parse_date, to_epoch_ms

# Returned by every lookup on a series with no points
EMPTY_SERIES_VALUE = 0.0


def timestamps(series):
    """Epoch-ms array for the series' points, built once and kept on the series."""
    ts = series._timestamps
    if ts is None:
        ts = np.array([to_epoch_ms(p.date) for p in series.points], dtype=np.int64)
        ts.flags.writeable = False
        series._timestamps = ts
        logger.debug("Built timestamp index for {!r} ({} points)", series.id, len(ts))
    return ts


def find_interval(ts, target):
    """Index i with ts[i] <= target < ts[i+1].

    Returns -1 when target is at or before the first timestamp and len-1 when
    it is at or after the last one.
    """
    n = len(ts)
    if target <= ts[0]:
        return -1
    if target >= ts[n - 1]:
        return n - 1
    return int(np.searchsorted(ts, target, side='right')) - 1


def value_at(series, when):
    """Interpolated series value at a date, clamped to the first/last sample."""
    points = series.points
    if not points:
        logger.warning("value_at on empty series {!r}", series.id)
        return EMPTY_SERIES_VALUE

    ts = timestamps(series)
    target = to_epoch_ms(when)
    idx = find_interval(ts, target)
    if idx == -1:
        return points[0].value
    if idx == len(points) - 1:
        return points[-1].value

    t0, t1 = ts[idx], ts[idx + 1]
    v0, v1 = points[idx].value, points[idx + 1].value
    ratio = (target - t0) / (t1 - t0)
    return float(v0 + ratio * (v1 - v0))


def values_at(series, dates):
    """Vectorised value_at for drawing a curve; same clamping at both ends."""
    if series.is_empty:
        return np.full(len(dates), EMPTY_SERIES_VALUE)
    targets = np.array([to_epoch_ms(d) for d in dates], dtype=np.float64)
    return np.interp(targets, timestamps(series).astype(np.float64),
                     np.array(series.values, dtype=np.float64))


def normalize_value(series, value):
    """Rescale to [0, 1] by the full series' min/max (not a visible-range min/max)."""
    vr = series.value_range
    if vr is None:
        return EMPTY_SERIES_VALUE
    lo, hi = vr
    if hi == lo:
        return 0.0
    return (value - lo) / (hi - lo)


def normalized_value_at(series, when):
    return normalize_value(series, value_at(series, when))


def actual_flop_at(series, when):
    """FLOP (not log) at a date; series must hold log10 FLOP values."""
    if series.value_kind != LOG10_FLOP:
        raise ValueError(f"Series {series.id!r} is {series.value_kind}, not log10 FLOP")
    return 10 ** value_at(series, when)


# ── Store-level helpers ──────────────────────────────────────────────────

def metric_value_for_claim(store, metric_id, when):
    """value_at for a claim's date, or None before the metric's data begins."""
    if not store.is_date_in_metric_range(metric_id, when):
        return None
    return value_at(store.get(metric_id), when)


def metrics_snapshot(store, when):
    """Every metric's value at a date, rounded to 0.1, None before its data starts.

    Compute is also given as a display string, e.g. "10^25.3".
    """
    when = parse_date(when)
    snapshot = {}
    for series in store:
        value = metric_value_for_claim(store, series.id, when)
        snapshot[series.id] = None if value is None else round(value, 1)
    compute = snapshot.get(COMPUTE)
    snapshot['compute_formatted'] = None if compute is None else f"10^{compute:.1f}"
    return snapshot
