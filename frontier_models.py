"""
Which model held the training-compute frontier at a given date.
"""

import bisect
from collections import namedtuple

import yaml
from loguru import logger

from metric_series import DatasetError, data_path, parse_date

FrontierModelEntry = namedtuple(
    'FrontierModelEntry', ['effective_date', 'name', 'org', 'training_compute_log10_flop'])


def load_frontier_timeline(path=None):
    """Read frontier_models.yaml into an ascending tuple of FrontierModelEntry.

    Entries may share a date but must not go backwards.
    """
    path = path or data_path('OBITUARY_FRONTIER_PATH', 'frontier_models.yaml')
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or not isinstance(raw.get('frontier_models'), list):
        raise DatasetError(f"{path}: expected a top-level 'frontier_models' list")

    entries = []
    for r in raw['frontier_models']:
        try:
            entry = FrontierModelEntry(
                effective_date=parse_date(r['date']),
                name=str(r['model']),
                org=str(r.get('org', '')),
                training_compute_log10_flop=r.get('compute_log10_flop'),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DatasetError(f"{path}: bad frontier model entry {r!r}: {e}") from e
        if entries and entry.effective_date < entries[-1].effective_date:
            raise DatasetError(
                f"{path}: {entry.name} ({entry.effective_date:%Y-%m-%d}) is out of order")
        entries.append(entry)

    logger.debug("Loaded {} frontier models from {}", len(entries), path)
    return tuple(entries)


def model_at(timeline, when):
    """Last entry effective on or before the date, or None if the date precedes them all."""
    when = parse_date(when)
    idx = bisect.bisect_right([e.effective_date for e in timeline], when)
    return timeline[idx - 1] if idx else None
