"""
Assignment grid for one placement attempt.

The grid maps a slot key (day, period, class) to the lesson placed there, or
None for an open cell. Cells are also indexed by (day, period) so the
constraint checks only look at lessons running at the same time.
"""

from __future__ import annotations

import hashlib
import json
from typing import Iterable, Iterator, NamedTuple, Optional

from .data.models import KEY_SEPARATOR, Period, SlotValue


class SlotKey(NamedTuple):
    """Identity of one placement cell."""
    day: str
    period_id: str
    class_id: str

    def encode(self) -> str:
        """Wire form used by the editor: 'day|periodId|classId'."""
        return KEY_SEPARATOR.join(self)

    @classmethod
    def parse(cls, key: str) -> "SlotKey":
        parts = key.split(KEY_SEPARATOR)
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"invalid slot key '{key}', expected 'day|periodId|classId'")
        return cls(*parts)


def slot_key(day: str, period_id: str, class_id: str) -> str:
    """Encoded slot key for a cell."""
    return SlotKey(day, period_id, class_id).encode()


class AssignmentGrid:
    """
    Mutable mapping from SlotKey to SlotValue-or-None.

    Only cells created up front exist in the grid; assigning to an unknown
    key is an error, which keeps break periods and unknown classes out.
    """

    def __init__(self) -> None:
        self._cells: dict[SlotKey, Optional[SlotValue]] = {}
        self._by_time: dict[tuple[str, str], dict[str, SlotValue]] = {}

    @classmethod
    def empty(
        cls,
        days: Iterable[str],
        periods: Iterable[Period],
        class_ids: Iterable[str],
    ) -> "AssignmentGrid":
        """Open cell for every non-break (day, period, class) triple."""
        grid = cls()
        class_ids = list(class_ids)
        periods = [p for p in periods if not p.is_break]
        for day in days:
            for period in periods:
                for class_id in class_ids:
                    grid._cells[SlotKey(day, period.id, class_id)] = None
        return grid

    # -------------------------------------------------------------------------
    # Mapping protocol
    # -------------------------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return key in self._cells

    def __getitem__(self, key: SlotKey) -> Optional[SlotValue]:
        return self._cells[key]

    def __iter__(self) -> Iterator[SlotKey]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def get(self, key: SlotKey) -> Optional[SlotValue]:
        return self._cells.get(key)

    def items(self) -> Iterator[tuple[SlotKey, Optional[SlotValue]]]:
        return iter(self._cells.items())

    def filled(self) -> Iterator[tuple[SlotKey, SlotValue]]:
        """Occupied cells only."""
        for key, value in self._cells.items():
            if value is not None:
                yield key, value

    @property
    def filled_count(self) -> int:
        return sum(1 for _ in self.filled())

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def assign(self, key: SlotKey, value: Optional[SlotValue]) -> None:
        """Set a cell's value; None clears it."""
        if key not in self._cells:
            raise KeyError(f"slot {key.encode()} is not part of this grid")

        time_key = (key.day, key.period_id)
        if self._cells[key] is not None:
            del self._by_time[time_key][key.class_id]

        self._cells[key] = value
        if value is not None:
            self._by_time.setdefault(time_key, {})[key.class_id] = value

    def occupants(self, day: str, period_id: str) -> Iterable[SlotValue]:
        """Lessons placed at (day, period) across all classes."""
        return self._by_time.get((day, period_id), {}).values()

    def copy(self) -> "AssignmentGrid":
        clone = AssignmentGrid()
        clone._cells = dict(self._cells)
        clone._by_time = {k: dict(v) for k, v in self._by_time.items()}
        return clone

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_slots(self) -> dict[str, Optional[SlotValue]]:
        """Encoded-key snapshot, the shape TimetableData.slots uses."""
        return {key.encode(): value for key, value in self._cells.items()}

    def to_wire(self) -> dict[str, Optional[dict]]:
        return {
            key.encode(): (value.to_wire() if value is not None else None)
            for key, value in self._cells.items()
        }

    def signature(self) -> str:
        """Deterministic fingerprint of the full grid."""
        return grid_signature(self.to_slots())


def grid_signature(slots: dict[str, Optional[SlotValue]]) -> str:
    """
    SHA-256 over the canonical JSON form of a slot mapping.

    Keys are sorted, so two grids with the same cells and values always have
    the same signature regardless of construction order.
    """
    canonical = {
        key: (value.to_wire() if value is not None else None)
        for key, value in slots.items()
    }
    payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
