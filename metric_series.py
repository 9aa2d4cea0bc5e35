"""
AI progress metric series: immutable, date-sorted samples loaded from ai_metrics.yaml.

Each series owns its own timestamp cache (see interpolation.py), built lazily
the first time it is interpolated and kept for the life of the series object.
"""

import os
from collections import namedtuple
from datetime import date, datetime, timedelta, timezone

import yaml
from loguru import logger

_EPOCH = datetime(1970, 1, 1)

LOG10_FLOP = 'log10_flop'
PERCENTAGE = 'percentage'
INDEX = 'index'
MINUTES = 'minutes'
VALUE_KINDS = (LOG10_FLOP, PERCENTAGE, INDEX, MINUTES)

COMPUTE = 'compute'


class SeriesOrderError(ValueError):
    """Series points are not strictly ascending by date."""


class DatasetError(ValueError):
    """A static dataset file is missing required structure."""


class UnknownMetricError(KeyError):
    """No series with the requested metric id is loaded."""


# ── Dates ────────────────────────────────────────────────────────────────

def parse_date(value):
    """Parse a YYYY-MM-DD string as (naive, UTC) midnight.

    date and datetime values pass through; plain dates become midnight.
    Timezone-aware datetimes are converted to naive UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.strptime(value.strip(), '%Y-%m-%d')


def to_epoch_ms(value):
    delta = parse_date(value) - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_epoch_ms(ms):
    return _EPOCH + timedelta(milliseconds=float(ms))


# ── Series ───────────────────────────────────────────────────────────────

class MetricPoint(namedtuple('MetricPoint', ['date', 'value'])):
    __slots__ = ()

    def __new__(cls, date, value):
        return super().__new__(cls, parse_date(date), float(value))

    def __repr__(self):
        return f"MetricPoint({self.date:%Y-%m-%d}, {self.value})"


class MetricSeries:
    """An immutable, strictly date-ascending sequence of MetricPoints.

    Construction rejects duplicate or descending dates with SeriesOrderError.
    An empty series is allowed (queries on it fall back to defined values)
    but is logged as a warning since it never occurs with real data.
    """

    def __init__(self, id, points, value_kind, label=None, unit='', color=None,
                 domain_determining=False):
        if value_kind not in VALUE_KINDS:
            raise ValueError(f"Unknown value kind {value_kind!r} for series {id!r}")
        pts = tuple(p if isinstance(p, MetricPoint) else MetricPoint(p[0], p[1])
                    for p in points)
        for prev, cur in zip(pts, pts[1:]):
            if cur.date <= prev.date:
                raise SeriesOrderError(
                    f"Series {id!r}: {cur.date:%Y-%m-%d} does not follow "
                    f"{prev.date:%Y-%m-%d}; dates must be strictly ascending")
        if not pts:
            logger.warning("Series {!r} has no points; queries will return fallbacks", id)

        self.id = id
        self.points = pts
        self.value_kind = value_kind
        self.label = label or id
        self.unit = unit
        self.color = color
        self.domain_determining = bool(domain_determining)
        # Filled on first interpolation; see interpolation.timestamps()
        self._timestamps = None
        if pts:
            values = [p.value for p in pts]
            self._value_range = (min(values), max(values))
        else:
            self._value_range = None

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __repr__(self):
        return f"MetricSeries({self.id!r}, {len(self.points)} points, {self.value_kind})"

    @property
    def is_empty(self):
        return not self.points

    @property
    def values(self):
        return [p.value for p in self.points]

    @property
    def start_date(self):
        return self.points[0].date if self.points else None

    @property
    def end_date(self):
        return self.points[-1].date if self.points else None

    @property
    def value_range(self):
        """(min, max) over the full series, or None when empty."""
        return self._value_range


# ── Store ────────────────────────────────────────────────────────────────

class MetricStore:
    """Read-only lookup of MetricSeries by metric id, in dataset order."""

    def __init__(self, series):
        self._series = {}
        for s in series:
            if s.id in self._series:
                raise DatasetError(f"Duplicate metric id {s.id!r}")
            self._series[s.id] = s

    def __contains__(self, metric_id):
        return metric_id in self._series

    def __iter__(self):
        return iter(self._series.values())

    def __len__(self):
        return len(self._series)

    def ids(self):
        return list(self._series)

    def get(self, metric_id):
        try:
            return self._series[metric_id]
        except KeyError:
            raise UnknownMetricError(metric_id) from None

    def date_range(self, metric_id):
        s = self.get(metric_id)
        return s.start_date, s.end_date

    def data_start_date(self, metric_id):
        return self.get(metric_id).start_date

    def is_date_in_metric_range(self, metric_id, when):
        """True once the metric has data, i.e. on or after its first sample."""
        start = self.data_start_date(metric_id)
        return start is not None and parse_date(when) >= start

    def min_data_year(self):
        s = self._series.get(COMPUTE)
        if s is None or s.is_empty:
            return 1950
        return s.start_date.year

    def max_data_year(self):
        s = self._series.get(COMPUTE)
        if s is None or s.is_empty:
            return datetime.now().year
        return s.end_date.year


# ── Data loading ─────────────────────────────────────────────────────────

def data_path(env_var, filename):
    return os.environ.get(env_var) or os.path.join(os.path.dirname(__file__), filename)


def series_from_dict(metric_id, raw):
    try:
        data = raw['data']
        kind = raw['value_kind']
    except (KeyError, TypeError):
        raise DatasetError(f"Series {metric_id!r} needs 'data' and 'value_kind'") from None
    if kind not in VALUE_KINDS:
        raise DatasetError(f"Series {metric_id!r}: unknown value_kind {kind!r}")
    points = [MetricPoint(d['date'], d['value']) for d in data or []]
    return MetricSeries(
        metric_id, points, kind,
        label=raw.get('label'), unit=raw.get('unit', ''), color=raw.get('color'),
        domain_determining=raw.get('domain_determining', False),
    )


def load_metric_store(path=None):
    """Load every series in ai_metrics.yaml into a MetricStore."""
    path = path or data_path('OBITUARY_METRICS_PATH', 'ai_metrics.yaml')
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or not isinstance(raw.get('series'), dict):
        raise DatasetError(f"{path}: expected a top-level 'series' mapping")

    series = [series_from_dict(k, v) for k, v in raw['series'].items()]
    logger.debug("Loaded {} metric series from {}", len(series), path)
    return MetricStore(series)
