"""Alignment of irregularly sampled named series onto a shared date axis."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Sequence, Tuple

from services.timestamps import parse_timestamp

WASTE_SERIES_ORDER: Tuple[str, ...] = (
    "Recycled paper",
    "Newspapers & magazines",
    "Empty bottles",
    "Composite items",
    "Resin & rubber scraps",
    "Scrap iron",
    "Spray cans",
    "Combustibles",
    "Other",
)

Point = Tuple[str, float]


class AlignmentError(ValueError):
    """Raised when a point cannot be placed on the merged date axis."""


@dataclass
class NamedSeries:
    name: str
    data: List[float] = field(default_factory=list)


@dataclass
class TimeSeriesMatrix:
    """Dense matrix: every series carries one value per entry in ``dates``."""

    dates: List[str] = field(default_factory=list)
    series: List[NamedSeries] = field(default_factory=list)

    def find(self, name: str) -> NamedSeries | None:
        for item in self.series:
            if item.name == name:
                return item
        return None


def _collation_key(name: str) -> Tuple[str, str, str]:
    """Case- and accent-insensitive key, independent of the process locale.

    Ties are broken by case-folded text and then by the raw name so the order
    stays total.
    """
    folded = unicodedata.normalize("NFKC", name).casefold()
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return (base, folded, name)


def series_name_key(
    order: Sequence[str] = WASTE_SERIES_ORDER,
) -> Callable[[str], tuple]:
    """Sort key placing known names in ``order`` first, unknown names after."""
    rank = {name: index for index, name in enumerate(order)}

    def key(name: str) -> tuple:
        if name in rank:
            return (0, rank[name], ("", "", ""))
        return (1, 0, _collation_key(name))

    return key


def sort_series_names(
    names: Iterable[str], order: Sequence[str] = WASTE_SERIES_ORDER
) -> list[str]:
    return sorted(names, key=series_name_key(order))


def _sorted_axis(timestamps: Iterable[str]) -> list[str]:
    parsed: Dict[str, datetime] = {}
    for timestamp in timestamps:
        if timestamp not in parsed:
            parsed[timestamp] = parse_timestamp(timestamp)
    # Distinct strings for the same instant would break the strict ordering.
    instants = list(parsed.values())
    if len(set(instants)) != len(instants):
        raise AlignmentError("Distinct timestamp strings map to the same instant.")
    return sorted(parsed, key=parsed.__getitem__)


def align_series(
    points_by_name: Mapping[str, Iterable[Point]],
    order: Sequence[str] = WASTE_SERIES_ORDER,
) -> TimeSeriesMatrix:
    """Merge named (timestamp, value) series into a zero-filled matrix.

    >>> m = align_series({"A": [("2024/01/01 00:00", 5), ("2024/01/01 01:00", 7)],
    ...                   "B": [("2024/01/01 00:00", 3)]})
    >>> m.dates, [(s.name, s.data) for s in m.series]
    (['2024/01/01 00:00', '2024/01/01 01:00'], [('A', [5, 7]), ('B', [3, 0])])
    """
    materialized = {name: list(points) for name, points in points_by_name.items()}
    dates = _sorted_axis(
        timestamp for points in materialized.values() for timestamp, _ in points
    )
    return scatter_onto_axis(dates, materialized, order=order)


def scatter_onto_axis(
    dates: Sequence[str],
    points_by_name: Mapping[str, Iterable[Point]],
    order: Sequence[str] = WASTE_SERIES_ORDER,
) -> TimeSeriesMatrix:
    """Place each series' points at their position on an existing axis."""
    index = {timestamp: position for position, timestamp in enumerate(dates)}
    columns: Dict[str, List[float]] = {}
    for name, points in points_by_name.items():
        data = columns.setdefault(name, [0] * len(dates))
        for timestamp, value in points:
            position = index.get(timestamp)
            if position is None:
                raise AlignmentError(
                    f"Timestamp {timestamp!r} of series {name!r} is not on the date axis."
                )
            data[position] = value

    return TimeSeriesMatrix(
        dates=list(dates),
        series=[NamedSeries(name=name, data=columns[name]) for name in sort_series_names(columns, order)],
    )
