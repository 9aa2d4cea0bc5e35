"""
Where claims land on the chart.

The Y axis of the active metric decides how claims are jittered: log axes
(training compute, task minutes) get the half-decade multiplicative spread,
linear axes (percentages, indices) a spread of a few percent so markers stay
on the curve. Pixel positions come from the same scales the axis is built
from; they feed the proximity clustering in clustering.py.
"""

from collections import namedtuple
from datetime import timedelta

import yaml
from loguru import logger

from axis_ticks import (
    MINUTES_TICK_VALUES, compute_axis_labels, format_metr_tick, visible_metric_ticks, visible_ticks,
)
from clustering import PositionedClaim, compute_clusters, is_point_clustered, should_show_clusters
from frontier_models import model_at
from interpolation import metric_value_for_claim
from jitter import apply_jitter
from metric_series import LOG10_FLOP, DatasetError, data_path, from_epoch_ms, parse_date, to_epoch_ms
from scales import (
    DEFAULT_DOMAIN, LinearScale, compute_domain, create_linear_y_scale, create_log_y_scale, is_log_kind,
    metric_domain,
)

LOG_JITTER_SPREAD = 1.0      # ± half a decade
LINEAR_JITTER_SPREAD = 0.05  # ± ~6%

# A window this long is zoom scale 1; wider windows zoom out
_ZOOM_REFERENCE = timedelta(days=3652)
_ZOOM_LIMITS = (0.5, 5.0)

AxisSpec = namedtuple('AxisSpec', ['log', 'domain', 'tick_values', 'tick_text', 'title'])


def load_claims(path=None):
    """Claims as [{'id', 'date'}] sorted by date."""
    path = path or data_path('OBITUARY_CLAIMS_PATH', 'sample_claims.yaml')
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}
    try:
        claims = [{'id': str(c['id']), 'date': parse_date(c['date'])}
                  for c in raw.get('claims', [])]
    except (KeyError, TypeError, ValueError) as e:
        raise DatasetError(f"{path}: bad claim entry: {e}") from e
    claims.sort(key=lambda c: c['date'])
    logger.debug("Loaded {} claims from {}", len(claims), path)
    return claims


def to_display(series, value):
    """Series value in axis units: log10 FLOP becomes FLOP."""
    return 10 ** value if series.value_kind == LOG10_FLOP else value


# ── Y axis ───────────────────────────────────────────────────────────────

def y_axis_for(store, metric_axes, series, overlays, start, end):
    """AxisSpec for the active series over [start, end], in display units."""
    title = metric_axes[series.id]['label']
    if is_log_kind(series.value_kind):
        if series.domain_determining:
            domain = compute_domain(store, [series.id] + list(overlays), start, end)
        else:
            domain = metric_domain(series, start, end) or DEFAULT_DOMAIN
        if series.value_kind == LOG10_FLOP:
            ticks, text = compute_axis_labels(domain)
        else:
            ticks = visible_ticks(domain, MINUTES_TICK_VALUES)
            text = [format_metr_tick(v) for v in ticks]
        return AxisSpec(True, domain, ticks, text, title)

    axis = metric_axes[series.id]
    ticks = visible_metric_ticks(metric_axes, series.id, axis['domain'])
    return AxisSpec(False, axis['domain'], ticks, [axis['format_tick'](v) for v in ticks], title)


def jitter_spread(axis):
    return LOG_JITTER_SPREAD if axis.log else LINEAR_JITTER_SPREAD


def y_pixel_scale(axis, height):
    if axis.log:
        return create_log_y_scale(height, axis.domain)
    return create_linear_y_scale(height, axis.domain)


def x_pixel_scale(window, width):
    """Epoch-ms to pixels across the visible date window."""
    return LinearScale((to_epoch_ms(window[0]), to_epoch_ms(window[1])), (0, width))


def zoom_scale(window):
    """Ten years visible is 1.0; wider windows go below 1, clamped to [0.5, 5]."""
    span = parse_date(window[1]) - parse_date(window[0])
    if span.total_seconds() <= 0:
        return _ZOOM_LIMITS[1]
    lo, hi = _ZOOM_LIMITS
    return min(max(_ZOOM_REFERENCE / span, lo), hi)


# ── Claims ───────────────────────────────────────────────────────────────

def position_claims(store, series, claims, axis, window, timeline, width, height):
    """Jittered claim markers in data and pixel space.

    Claims dated before the series has data are dropped.
    """
    spread = jitter_spread(axis)
    to_x = x_pixel_scale(window, width)
    to_y = y_pixel_scale(axis, height)
    points = []
    for c in claims:
        value = metric_value_for_claim(store, series.id, c['date'])
        if value is None:
            continue
        true_y = to_display(series, value)
        y = apply_jitter(true_y, c['id'], spread)
        points.append({
            'claim': c,
            'y': y,
            'true_y': true_y,
            'model': model_at(timeline, c['date']),
            'px': to_x(to_epoch_ms(c['date'])),
            'py': to_y(y),
        })
    return points


def cluster_claims(points, axis, window, width, height):
    """Split positioned claims into (clusters, unclustered points).

    Clusters are only formed when the window is zoomed out far enough.
    Each cluster is returned with its centroid mapped back to data space
    as 'date' and 'y'.
    """
    zoom = zoom_scale(window)
    if not points or not should_show_clusters(zoom):
        return [], points

    clusters = compute_clusters(
        [PositionedClaim(p['claim']['id'], p['claim']['date'], p['px'], p['py']) for p in points],
        zoom_scale=zoom)
    to_x = x_pixel_scale(window, width)
    to_y = y_pixel_scale(axis, height)
    placed = [{'cluster': c, 'date': from_epoch_ms(to_x.invert(c.x)), 'y': to_y.invert(c.y)}
              for c in clusters]
    single = [p for p in points if not is_point_clustered(p['claim']['id'], clusters)]
    return placed, single
