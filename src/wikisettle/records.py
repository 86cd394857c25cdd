"""
Settlement records and their lifecycle.

A record is opened when its block's START marker is read, collects raw
fields while ACTIVE, is normalized and then CLOSED at the END marker. Closed
records reject every mutation.

Each field key carries an explicit status:
    UNSET   - never captured; the parser may fill it
    PENDING - raw value captured; later lines can no longer overwrite it
    FINAL   - canonical value written by the normalizer
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

CANONICAL_ORDER = (
    'name',
    'type',
    'subdivision_type',
    'country',
    'population',
    'population_type',
    'population_density',
    'area_km2',
    'area_type',
    'elevation_m',
    'leader',
    'errors',
)


class FieldStatus(Enum):
    UNSET = 'unset'
    PENDING = 'pending'
    FINAL = 'final'


class RecordState(Enum):
    ACTIVE = 'active'
    CLOSED = 'closed'


class RecordClosedError(RuntimeError):
    """Raised when a closed record is modified."""


@dataclass
class SettlementRecord:
    """Raw and canonical fields of one infobox block."""

    block_id: int
    state: RecordState = RecordState.ACTIVE
    fields: Dict[str, Any] = field(default_factory=dict)
    status: Dict[str, FieldStatus] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.state is RecordState.ACTIVE

    def _check_active(self) -> None:
        if not self.is_active:
            raise RecordClosedError(f"Record {self.block_id} is closed")

    def field_status(self, key: str) -> FieldStatus:
        return self.status.get(key, FieldStatus.UNSET)

    def is_unset(self, key: str) -> bool:
        return self.field_status(key) is FieldStatus.UNSET

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def capture(self, key: str, value: Any) -> bool:
        """
        Store a raw value if the key is still UNSET.

        Returns True when the value was stored.
        """
        self._check_active()
        if value is None or not self.is_unset(key):
            return False
        self.fields[key] = value
        self.status[key] = FieldStatus.PENDING
        return True

    def set_final(self, key: str, value: Any) -> None:
        """Write a canonical value, replacing whatever was there."""
        self._check_active()
        self.fields[key] = value
        self.status[key] = FieldStatus.FINAL

    def discard(self, *keys: str) -> None:
        """Delete raw keys; they stay locked so they cannot be captured again."""
        self._check_active()
        for key in keys:
            self.fields.pop(key, None)

    def add_error(self, message: str) -> None:
        self._check_active()
        self.errors.append(message)

    def close(self) -> None:
        self._check_active()
        self.state = RecordState.CLOSED

    def to_dict(self) -> Dict[str, Any]:
        """Canonical fields in display order; absent keys are left out."""
        out: Dict[str, Any] = {}
        for key in CANONICAL_ORDER:
            if key == 'errors':
                out['errors'] = list(self.errors)
            elif key in self.fields:
                out[key] = self.fields[key]
        return out


class RecordStore:
    """
    Arena of records for one run, addressed by index.

    At most one record is active at a time.
    """

    def __init__(self):
        self.records: List[SettlementRecord] = []
        self._active_index: Optional[int] = None

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[SettlementRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> SettlementRecord:
        return self.records[index]

    @property
    def active(self) -> Optional[SettlementRecord]:
        if self._active_index is None:
            return None
        return self.records[self._active_index]

    def open(self, block_id: int) -> SettlementRecord:
        """Append a new active record. Fails if another record is active."""
        if self._active_index is not None:
            raise RuntimeError(f"Record {self.active.block_id} is still active")
        record = SettlementRecord(block_id=block_id)
        self.records.append(record)
        self._active_index = len(self.records) - 1
        return record

    def close_active(self) -> SettlementRecord:
        record = self.active
        if record is None:
            raise RuntimeError("No active record")
        record.close()
        self._active_index = None
        return record

    def drop_active(self) -> Optional[SettlementRecord]:
        """Remove the active record without closing it."""
        if self._active_index is None:
            return None
        record = self.records.pop(self._active_index)
        self._active_index = None
        return record

    def closed(self) -> List[SettlementRecord]:
        return [r for r in self.records if r.state is RecordState.CLOSED]
