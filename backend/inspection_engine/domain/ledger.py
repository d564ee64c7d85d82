# backend/inspection_engine/domain/ledger.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, NamedTuple, Optional

from .errors import InspectionLocked, InvalidPopulationSize, ScopeOutOfRange
from .keys import ObservationKey

log = logging.getLogger(__name__)


@dataclass
class Observation:
    key: ObservationKey
    count: int = 0
    note: Optional[str] = None
    # Opaque handles to externally stored photos / audio.
    media: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.count == 0 and not self.note and not self.media


class Occurrence(NamedTuple):
    key: ObservationKey
    count: int
    note: Optional[str]


class OccurrenceView:
    """
    Lazy view over a ledger's non-zero entries.
    Each iteration snapshots the live ledger when it starts, in key order, so
    edits made mid-walk show up on the next pass.
    """

    def __init__(self, entries: dict[ObservationKey, Observation]) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[Occurrence]:
        snapshot = [Occurrence(k, o.count, o.note) for k, o in self._entries.items() if o.count > 0]
        snapshot.sort(key=lambda occ: occ.key.sort_key())
        yield from snapshot

    def __len__(self) -> int:
        return sum(1 for o in self._entries.values() if o.count > 0)

    def __bool__(self) -> bool:
        return any(o.count > 0 for o in self._entries.values())


class ObservationLedger:
    """
    How many times each defect was seen, where, plus free-text notes.

    Entries with count 0 are kept only while they still carry a note or media
    handles; aggregation treats them exactly like absent keys.
    """

    def __init__(self) -> None:
        self._entries: dict[ObservationKey, Observation] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: ObservationKey) -> Optional[Observation]:
        return self._entries.get(key)

    def count(self, key: ObservationKey) -> int:
        obs = self._entries.get(key)
        return obs.count if obs else 0

    def note(self, key: ObservationKey) -> Optional[str]:
        obs = self._entries.get(key)
        return obs.note if obs else None

    def _entry(self, key: ObservationKey) -> Observation:
        obs = self._entries.get(key)
        if obs is None:
            obs = Observation(key=key)
            self._entries[key] = obs
        return obs

    def _prune(self, key: ObservationKey) -> None:
        obs = self._entries.get(key)
        if obs is not None and obs.is_empty:
            del self._entries[key]

    def record_occurrence(self, key: ObservationKey, delta: int = 1) -> int:
        """
        Add `delta` sightings at `key` and return the new count.
        The count never drops below zero; an extra decrement is a no-op.
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise TypeError(f"delta must be an int, got {delta!r}")

        current = self.count(key)
        new_count = max(0, current + delta)
        if new_count == current:
            return current

        obs = self._entry(key)
        obs.count = new_count
        self._prune(key)
        return new_count

    def set_note(self, key: ObservationKey, text: Optional[str]) -> None:
        """Attach or replace the note at `key`, whatever its count."""
        obs = self._entry(key)
        obs.note = text if text else None
        self._prune(key)

    def append_note(self, key: ObservationKey, text: str) -> str:
        """Append a paragraph (e.g. a transcription) to the existing note."""
        text = (text or "").strip()
        existing = self.note(key) or ""
        merged = f"{existing}\n{text}" if existing and text else (existing or text)
        self.set_note(key, merged)
        return merged

    def attach_media(self, key: ObservationKey, handle: str) -> None:
        h = (handle or "").strip()
        if not h:
            raise ValueError("media handle is required")
        obs = self._entry(key)
        if h not in obs.media:
            obs.media.append(h)

    def detach_media(self, key: ObservationKey, handle: str) -> None:
        obs = self._entries.get(key)
        if obs is None:
            return
        obs.media = [m for m in obs.media if m != handle]
        self._prune(key)

    def occurrences(self) -> OccurrenceView:
        return OccurrenceView(self._entries)

    def entries(self) -> list[Observation]:
        """Every retained entry (zero-count ones included), in key order."""
        return [self._entries[k] for k in sorted(self._entries)]


class InspectionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


_FIXED_FIELDS = frozenset({"total_unit_count", "sample_size"})


@dataclass
class Inspection:
    """
    Aggregate root for one property inspection.

    `total_unit_count` and `sample_size` are fixed when the inspection starts;
    unit-scoped keys must stay inside 1..sample_size. Once completed the
    inspection is read-only.
    """

    total_unit_count: int
    sample_size: int
    property_name: str = ""
    year_built: Optional[int] = None
    catalog_version: Optional[str] = None
    status: InspectionStatus = InspectionStatus.IN_PROGRESS
    ledger: ObservationLedger = field(default_factory=ObservationLedger)
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.total_unit_count, bool) or not isinstance(self.total_unit_count, int) or self.total_unit_count < 1:
            raise InvalidPopulationSize(self.total_unit_count, field="total_unit_count")
        if isinstance(self.sample_size, bool) or not isinstance(self.sample_size, int) or self.sample_size < 1:
            raise InvalidPopulationSize(self.sample_size, field="sample_size")
        if self.sample_size > self.total_unit_count:
            raise InvalidPopulationSize(self.sample_size, field="sample_size")
        self.status = InspectionStatus(self.status)

    def __setattr__(self, name: str, value) -> None:
        # Population and sample are fixed once the dataclass __init__ has set them.
        if name in _FIXED_FIELDS and name in self.__dict__:
            raise AttributeError(f"{name} is fixed when the inspection starts")
        super().__setattr__(name, value)

    @property
    def is_complete(self) -> bool:
        return self.status == InspectionStatus.COMPLETED

    def check_scope(self, key: ObservationKey) -> None:
        unit = key.scope.unit
        if unit is not None and unit > self.sample_size:
            raise ScopeOutOfRange(unit, self.sample_size)

    def _check_writable(self) -> None:
        if self.is_complete:
            label = f"inspection {self.id}" if self.id is not None else "inspection"
            raise InspectionLocked(f"{label} is complete and read-only")

    def record_occurrence(self, key: ObservationKey, delta: int = 1) -> int:
        self._check_writable()
        self.check_scope(key)
        return self.ledger.record_occurrence(key, delta)

    def set_note(self, key: ObservationKey, text: Optional[str]) -> None:
        self._check_writable()
        self.check_scope(key)
        self.ledger.set_note(key, text)

    def append_note(self, key: ObservationKey, text: str) -> str:
        self._check_writable()
        self.check_scope(key)
        return self.ledger.append_note(key, text)

    def attach_media(self, key: ObservationKey, handle: str) -> None:
        self._check_writable()
        self.check_scope(key)
        self.ledger.attach_media(key, handle)

    def detach_media(self, key: ObservationKey, handle: str) -> None:
        self._check_writable()
        self.ledger.detach_media(key, handle)

    def occurrences(self) -> OccurrenceView:
        return self.ledger.occurrences()

    def complete(self) -> None:
        if self.is_complete:
            return
        self.status = InspectionStatus.COMPLETED
        log.info(
            "inspection completed",
            extra={"inspection_id": self.id, "catalog_version": self.catalog_version},
        )
