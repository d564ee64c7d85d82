# backend/inspection_engine/domain/sampling.py
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .errors import InvalidPopulationSize, InvalidSampleSizeTable

# (upper bound inclusive, sample size). Units beyond the last bound use the
# last sample size.
DEFAULT_SAMPLE_SIZE_TABLE: tuple[tuple[int, int], ...] = (
    (1, 1),
    (8, 2),
    (15, 3),
    (25, 4),
    (40, 5),
    (65, 6),
    (90, 7),
    (150, 8),
    (280, 10),
    (500, 11),
    (1200, 15),
    (1201, 19),
)


def _as_positive_int(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        iv = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    if iv != value and not isinstance(value, str):
        # reject 2.5 silently becoming 2
        return None
    return iv if iv > 0 else None


def normalize_table(rows: Iterable[Sequence[int]]) -> tuple[tuple[int, int], ...]:
    """
    Validate a sample size table.

    Rules:
      - at least one row
      - bounds strictly ascending, positive
      - sample sizes positive and non-decreasing (keeps resolve() monotonic)
    """
    table: list[tuple[int, int]] = []
    for i, row in enumerate(rows or ()):
        try:
            upper, sample = row
        except (TypeError, ValueError):
            raise InvalidSampleSizeTable(f"row #{i} must be (upper_bound, sample_size), got {row!r}") from None

        u = _as_positive_int(upper)
        s = _as_positive_int(sample)
        if u is None or s is None:
            raise InvalidSampleSizeTable(f"row #{i} must hold positive integers, got {row!r}")

        if table:
            prev_u, prev_s = table[-1]
            if u <= prev_u:
                raise InvalidSampleSizeTable(f"row #{i}: bound {u} is not above previous bound {prev_u}")
            if s < prev_s:
                raise InvalidSampleSizeTable(f"row #{i}: sample size {s} is below previous sample size {prev_s}")

        table.append((u, s))

    if not table:
        raise InvalidSampleSizeTable("sample size table is empty")
    return tuple(table)


class SampleSizeResolver:
    """
    Maps a property's total unit count to the number of units to inspect.

    The table is configuration; several protocol variants ship different ones.
    """

    def __init__(self, table: Iterable[Sequence[int]] = DEFAULT_SAMPLE_SIZE_TABLE) -> None:
        self._table = normalize_table(table)

    @classmethod
    def from_settings(cls, s=None) -> "SampleSizeResolver":
        if s is None:
            from ..config import settings as s
        return cls(s.sample_size_table)

    @property
    def table(self) -> tuple[tuple[int, int], ...]:
        return self._table

    def resolve(self, total_units: int) -> int:
        n = _as_positive_int(total_units)
        if n is None:
            raise InvalidPopulationSize(total_units)

        sample = self._table[-1][1]
        for upper, size in self._table:
            if n <= upper:
                sample = size
                break

        # A table may ask for more units than exist (e.g. 2 units, sample 3).
        return min(sample, n)

    __call__ = resolve


def resolve_sample_size(total_units: int, table: Optional[Iterable[Sequence[int]]] = None) -> int:
    return SampleSizeResolver(table if table is not None else DEFAULT_SAMPLE_SIZE_TABLE).resolve(total_units)
