"""Detection of collection events: sudden drops in fill or weight series.

A drop is a candidate when the previous value is positive and the current one
is lower. It counts as a collection when it falls to zero from at least
``ZERO_DROP_MIN_PREVIOUS``, or when it is both at least
``LARGE_DROP_MIN_PERCENT`` of the previous value and at least
``LARGE_DROP_MIN_AMOUNT`` in absolute terms.

Candidates from every series are pooled, ordered by time and thinned in a
single greedy pass: events closer than ``min_separation`` to an already
accepted event either replace it or are discarded. A drop to zero always wins
over a non-zero drop, otherwise the larger drop wins. The pass is order
sensitive but deterministic for a given matrix.

This module is the single implementation used by the waste detail API, the
web UI and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from services.timeseries import TimeSeriesMatrix
from services.timestamps import parse_timestamp

ZERO_DROP_MIN_PREVIOUS = 10
LARGE_DROP_MIN_PERCENT = 25
LARGE_DROP_MIN_AMOUNT = 10
DEFAULT_MIN_SEPARATION = timedelta(hours=6)


@dataclass(frozen=True)
class CollectionEvent:
    timestamp: str
    time: datetime
    series_index: int
    index: int
    drop_amount: float
    dropped_to_zero: bool

    @property
    def snapshot_index(self) -> int:
        """Index of the reading just before the drop."""
        return self.index - 1 if self.index > 0 else self.index


def _qualifies(previous: float, current: float) -> Optional[tuple[float, bool]]:
    if not (previous > 0 and current < previous):
        return None
    drop_amount = previous - current
    drop_percentage = drop_amount / previous * 100
    dropped_to_zero = current == 0 and previous >= ZERO_DROP_MIN_PREVIOUS
    large_drop = (
        drop_percentage >= LARGE_DROP_MIN_PERCENT and drop_amount >= LARGE_DROP_MIN_AMOUNT
    )
    if dropped_to_zero or large_drop:
        return drop_amount, dropped_to_zero
    return None


def find_candidates(dates: Sequence[str], values: Sequence[float], series_index: int = 0) -> list[CollectionEvent]:
    """Scan one series for qualifying drops, in index order."""
    candidates: list[CollectionEvent] = []
    for idx in range(1, min(len(dates), len(values))):
        result = _qualifies(values[idx - 1], values[idx])
        if result is None:
            continue
        drop_amount, dropped_to_zero = result
        timestamp = dates[idx]
        candidates.append(
            CollectionEvent(
                timestamp=timestamp,
                time=parse_timestamp(timestamp),
                series_index=series_index,
                index=idx,
                drop_amount=drop_amount,
                dropped_to_zero=dropped_to_zero,
            )
        )
    return candidates


def _should_replace(candidate: CollectionEvent, existing: CollectionEvent) -> bool:
    if existing.dropped_to_zero:
        return False
    return candidate.dropped_to_zero or candidate.drop_amount > existing.drop_amount


def deduplicate(
    candidates: Iterable[CollectionEvent],
    min_separation: timedelta = DEFAULT_MIN_SEPARATION,
) -> list[CollectionEvent]:
    ordered = sorted(candidates, key=lambda event: event.time)
    accepted: List[CollectionEvent] = []
    for candidate in ordered:
        close_index = next(
            (
                position
                for position, existing in enumerate(accepted)
                if abs(candidate.time - existing.time) < min_separation
            ),
            None,
        )
        if close_index is None:
            accepted.append(candidate)
        elif _should_replace(candidate, accepted[close_index]):
            accepted[close_index] = candidate
    return accepted


def detect_collection_events(
    matrix: TimeSeriesMatrix,
    min_separation: timedelta = DEFAULT_MIN_SEPARATION,
) -> list[CollectionEvent]:
    """Return deduplicated collection events, oldest first."""
    if not matrix.dates or not matrix.series:
        return []
    candidates: list[CollectionEvent] = []
    for series_index, series in enumerate(matrix.series):
        candidates.extend(find_candidates(matrix.dates, series.data, series_index))
    return deduplicate(candidates, min_separation)


def latest_first(events: Sequence[CollectionEvent]) -> list[CollectionEvent]:
    return list(reversed(events))
