from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Tuple
import hashlib

from .dimensions import DimensionVector, TraitVector
from .events import BaseShiftRecord


class QueryDirection(Enum):
    """Implicit resolver state, decided by query time vs anchor time."""
    FORWARD = "forward"    # query >= anchor: project anchor forward
    BACKWARD = "backward"  # query < anchor: regress anchor backward


@dataclass(frozen=True)
class Snapshot:
    """
    Computed state of one entity at one instant.

    INVARIANTS:
    - Every value lies within its declared range
    - Same (anchor, events, query time) -> same state_hash
    - Never stored by the engine; recomputed per query
    """
    entity_id: str
    timestamp: datetime
    direction: QueryDirection
    state: DimensionVector
    traits: TraitVector
    applied_event_ids: Tuple[str, ...] = field(default_factory=tuple)
    base_shifts: Tuple[BaseShiftRecord, ...] = field(default_factory=tuple)
    state_hash: str = ""

    def __post_init__(self):
        if not self.state_hash:
            object.__setattr__(self, 'state_hash', self.compute_hash())

    def compute_hash(self) -> str:
        """Bit-exact hash: floats are encoded with float.hex()."""
        content = (
            f"{self.entity_id}|"
            f"{self.timestamp.isoformat()}|"
            f"{self.direction.value}|"
            f"{','.join(v.hex() for v in self.state.values)}|"
            f"{','.join(v.hex() for v in self.traits.values)}|"
            f"{','.join(self.applied_event_ids)}"
        )
        return hashlib.sha256(content.encode()).hexdigest()

    def __getitem__(self, key) -> float:
        """Dimension lookup by name, e.g. snapshot['valence']."""
        return self.state[key]

    def to_dict(self) -> dict:
        return {
            'entity_id': self.entity_id,
            'timestamp': self.timestamp.isoformat(),
            'direction': self.direction.value,
            'state': self.state.to_dict(),
            'traits': self.traits.to_dict(),
            'applied_event_ids': list(self.applied_event_ids),
            'base_shifts': [r.to_dict() for r in self.base_shifts],
            'state_hash': self.state_hash,
        }
