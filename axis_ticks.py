"""
Y-axis tick values and labels.

The compute axis uses a fixed ladder of powers of ten, filtered to whatever
domain is showing and labelled as 10 with a superscript exponent. The other
metrics get per-metric configs built from their data (build_metric_axes).
"""

import math

from metric_series import INDEX, LOG10_FLOP, MINUTES, PERCENTAGE

LOG_TICK_VALUES = (
    1e17, 1e18, 1e19, 1e20, 1e21, 1e22, 1e23, 1e24, 1e25, 1e26, 1e27,
)

# Task-horizon ladder in minutes: 5s up to 32 hours
MINUTES_TICK_VALUES = (
    1 / 12, 0.25, 0.5, 1, 2, 5, 15, 30, 60, 120, 240, 480, 960, 1920,
)

_SUPERSCRIPTS = '⁰¹²³⁴⁵⁶⁷⁸⁹'
_SUPERSCRIPT_MINUS = '⁻'


def visible_ticks(domain, ladder=LOG_TICK_VALUES):
    """Ladder values with min <= v <= max."""
    lo, hi = domain
    return [v for v in ladder if lo <= v <= hi]


def to_superscript(n):
    n = int(round(n))
    digits = ''.join(_SUPERSCRIPTS[int(d)] for d in str(abs(n)))
    return (_SUPERSCRIPT_MINUS if n < 0 else '') + digits


def format_flop_tick(value):
    """1e24 -> '10²⁴'."""
    return '10' + to_superscript(round(math.log10(value)))


def format_compute_tick(log_value):
    """Tick for an axis already in log10 FLOP units: 24 -> '10²⁴'."""
    return '10' + to_superscript(round(log_value))


def format_metr_tick(minutes):
    if minutes == 0:
        return '0'
    if minutes < 1:
        return f"{int(round(minutes * 60))}s"
    rounded = int(round(minutes))
    if rounded < 60:
        return f"{rounded}min"
    hours, mins = divmod(rounded, 60)
    if mins == 0:
        return f"{hours}hr"
    return f"{hours}hr {mins}m"


def format_percent_tick(value):
    return f"{round(value)}%"


def format_index_tick(value):
    return f"{round(value)}"


# ── Per-metric axes ──────────────────────────────────────────────────────

def data_domain(series, floor_min=0):
    """[floor(min), max + 10% headroom rounded up to a multiple of 10]."""
    lo, hi = series.value_range
    return max(floor_min, math.floor(lo)), math.ceil(hi * 1.1 / 10) * 10


def generate_tick_values(domain, target_count=6):
    """Evenly stepped ticks from min, step rounded up to a multiple of 10.

    The domain max is always included.
    """
    lo, hi = domain
    step = max(math.ceil((hi - lo) / target_count / 10) * 10, 10)
    ticks = []
    v = lo
    while v <= hi:
        ticks.append(v)
        v += step
    if ticks[-1] < hi:
        ticks.append(hi)
    return ticks


def _compute_axis(series):
    lo, hi = series.value_range
    domain = (math.floor(lo), math.ceil(hi * 1.05))
    ticks = list(range(domain[0], domain[1] + 1, 2))
    return domain, ticks, format_compute_tick


def _percent_axis(series):
    domain = data_domain(series, 20)
    ticks = [v for v in (20, 40, 60, 80, 100) if domain[0] <= v <= domain[1]]
    return domain, ticks, format_percent_tick


def _index_axis(series):
    lo, hi = series.value_range
    domain = (math.floor(lo / 10) * 10, math.ceil(hi * 1.1 / 10) * 10)
    return domain, generate_tick_values(domain, 5), format_index_tick


def _minutes_axis(series):
    domain = data_domain(series, 0)
    return domain, generate_tick_values(domain, 5), format_metr_tick


_AXIS_BUILDERS = {
    LOG10_FLOP: _compute_axis,
    PERCENTAGE: _percent_axis,
    INDEX: _index_axis,
    MINUTES: _minutes_axis,
}


def build_metric_axes(store):
    """Per-metric {domain, tick_values, format_tick, label} for every non-empty series."""
    axes = {}
    for series in store:
        if series.is_empty:
            continue
        domain, ticks, fmt = _AXIS_BUILDERS[series.value_kind](series)
        axes[series.id] = {
            'domain': domain,
            'tick_values': ticks,
            'format_tick': fmt,
            'label': f"{series.label} ({series.unit})" if series.unit else series.label,
        }
    return axes


def visible_metric_ticks(axes, metric_id, domain):
    """A metric's configured ticks that fit inside a (possibly clamped) domain."""
    return visible_ticks(domain, axes[metric_id]['tick_values'])


def compute_axis_labels(domain):
    """(tick values, labels) for the FLOP axis of the given domain."""
    ticks = visible_ticks(domain)
    return ticks, [format_flop_tick(v) for v in ticks]

