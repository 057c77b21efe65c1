"""
Event Contracts

Immutable input types consumed by the engine: event specifications,
split deltas, events, base-shift requests/records and entity anchors.

WHAT THESE TYPES MUST NOT DO:
=============================
- Reference catalog or engine implementations
- Validate construction-time identity rules (the builder does that)
- Hold mutable state
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Mapping, Optional, Tuple, Union
import hashlib

from .base import ensure_utc, years_between
from .dimensions import (
    Dimension, DimensionVector, Trait, TraitVector, TRAITS, ROUTED_DIMENSIONS,
    routed_flags, routed_fractions,
)


def clamp_unit(value: float) -> float:
    """Clamp to [0, 1]. Used for severity and permanence."""
    return min(1.0, max(0.0, float(value)))


# =============================================================================
# EVENT SPECIFICATION
# =============================================================================

@dataclass(frozen=True)
class EventSpec:
    """
    Complete per-dimension impact matrix for one kind of event.

    chronic and permanence are indexed by ROUTED_DIMENSIONS
    (acquired_capability excluded: it is always fully permanent).
    """
    impact: DimensionVector
    chronic: Tuple[bool, ...] = (False,) * len(ROUTED_DIMENSIONS)
    permanence: Tuple[float, ...] = (0.0,) * len(ROUTED_DIMENSIONS)

    def __post_init__(self):
        if len(self.chronic) != len(ROUTED_DIMENSIONS):
            raise ValueError("chronic flags must cover every routed dimension")
        if len(self.permanence) != len(ROUTED_DIMENSIONS):
            raise ValueError("permanence must cover every routed dimension")

    @staticmethod
    def from_mapping(
        impact: Mapping[Union[str, Dimension], float],
        chronic: Optional[Mapping[Union[str, Dimension], bool]] = None,
        permanence: Optional[Mapping[Union[str, Dimension], float]] = None,
    ) -> 'EventSpec':
        """Build a spec from partial mappings; absent entries default to zero/false."""
        return EventSpec(
            impact=DimensionVector.from_mapping(impact),
            chronic=routed_flags(chronic or {}),
            permanence=routed_fractions(permanence or {}),
        )

    def is_chronic(self, dimension: Dimension) -> bool:
        if dimension is Dimension.ACQUIRED_CAPABILITY:
            return False
        return self.chronic[ROUTED_DIMENSIONS.index(dimension)]

    def permanence_of(self, dimension: Dimension) -> float:
        if dimension is Dimension.ACQUIRED_CAPABILITY:
            return 1.0
        return self.permanence[ROUTED_DIMENSIONS.index(dimension)]

    def to_dict(self) -> dict:
        return {
            'impact': self.impact.to_dict(),
            'chronic': {d.value: f for d, f in zip(ROUTED_DIMENSIONS, self.chronic)},
            'permanence': {d.value: p for d, p in zip(ROUTED_DIMENSIONS, self.permanence)},
        }


@dataclass(frozen=True)
class AppliedDeltas:
    """
    The three disjoint severity-scaled contributions of one event.

    permanent never decays; acute and chronic decay on different clocks.
    """
    permanent: DimensionVector
    acute: DimensionVector
    chronic: DimensionVector


# =============================================================================
# FORMATIVE EVENTS
# =============================================================================

@dataclass(frozen=True)
class BaseShiftRequest:
    """
    A raw request to permanently shift a personality trait.

    entity_age_at_event may be None; the engine then derives it from the
    anchor's birth date when one is known.
    """
    trait: Trait
    raw_magnitude: float
    event_timestamp: datetime
    entity_age_at_event: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'trait', Trait.parse(self.trait))
        object.__setattr__(self, 'event_timestamp', ensure_utc(self.event_timestamp))


@dataclass(frozen=True)
class BaseShiftRecord:
    """
    The realized (post-modifier) trait change of one request.

    cumulative_after is the lifetime magnitude consumed for this trait
    once this record is applied. severe records partially recover.
    """
    event_id: str
    trait: Trait
    requested: float
    realized: float
    cumulative_after: float
    event_timestamp: datetime
    severe: bool = False

    def to_dict(self) -> dict:
        return {
            'event_id': self.event_id,
            'trait': self.trait.value,
            'requested': self.requested,
            'realized': self.realized,
            'cumulative_after': self.cumulative_after,
            'event_timestamp': self.event_timestamp.isoformat(),
            'severe': self.severe,
        }


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Immutable life event targeting one entity.

    Exactly one of event_type (catalog id) or custom_spec is expected;
    when both are set the custom spec wins.
    """
    target_entity: str
    timestamp: datetime
    severity: float = 1.0
    event_type: Optional[str] = None
    custom_spec: Optional[EventSpec] = None
    base_shifts: Tuple[BaseShiftRequest, ...] = field(default_factory=tuple)
    event_id: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'timestamp', ensure_utc(self.timestamp))
        object.__setattr__(self, 'severity', clamp_unit(self.severity))
        object.__setattr__(self, 'base_shifts', tuple(self.base_shifts))
        if not self.event_id:
            object.__setattr__(self, 'event_id', self._generate_id())

    def _generate_id(self) -> str:
        """Deterministic id from content, so replays produce the same ids."""
        shifts = ";".join(
            f"{r.trait.value}:{float(r.raw_magnitude).hex()}:"
            f"{'' if r.entity_age_at_event is None else float(r.entity_age_at_event).hex()}"
            for r in self.base_shifts
        )
        content = (
            f"{self.target_entity}|{self.timestamp.isoformat()}|"
            f"{self.event_type or 'custom'}|{self.severity.hex()}|{shifts}"
        )
        if self.custom_spec is not None:
            spec = self.custom_spec
            content += (
                "|" + ",".join(v.hex() for v in spec.impact.values)
                + "|" + "".join("1" if f else "0" for f in spec.chronic)
                + "|" + ",".join(float(p).hex() for p in spec.permanence)
            )
        return "evt_" + hashlib.sha256(content.encode('utf-8')).hexdigest()[:16]

    @property
    def is_formative(self) -> bool:
        return len(self.base_shifts) > 0

    @staticmethod
    def from_catalog(
        event_type: str,
        target_entity: str,
        timestamp: datetime,
        severity: float = 1.0,
    ) -> 'Event':
        return Event(
            target_entity=target_entity,
            timestamp=timestamp,
            severity=severity,
            event_type=event_type,
        )

    @staticmethod
    def custom(
        spec: EventSpec,
        target_entity: str,
        timestamp: datetime,
        severity: float = 1.0,
    ) -> 'Event':
        return Event(
            target_entity=target_entity,
            timestamp=timestamp,
            severity=severity,
            custom_spec=spec,
        )

    def with_base_shift(
        self,
        trait: Union[str, Trait],
        magnitude: float,
        entity_age: Optional[float] = None,
    ) -> 'Event':
        """Return a copy carrying an additional trait base-shift request."""
        request = BaseShiftRequest(
            trait=Trait.parse(trait),
            raw_magnitude=float(magnitude),
            event_timestamp=self.timestamp,
            entity_age_at_event=entity_age,
        )
        return replace(self, base_shifts=self.base_shifts + (request,), event_id="")


# =============================================================================
# ANCHOR
# =============================================================================

@dataclass(frozen=True)
class EntityAnchor:
    """
    The single fixed reference point for one entity.

    trait_shift_used records lifetime trait-shift magnitude already
    consumed before the anchor (per trait, in TRAITS order).
    """
    entity_id: str
    timestamp: datetime
    state: DimensionVector = field(default_factory=DimensionVector)
    traits: TraitVector = field(default_factory=TraitVector)
    birth_date: Optional[datetime] = None
    trait_shift_used: Tuple[float, ...] = (0.0,) * len(TRAITS)

    def __post_init__(self):
        object.__setattr__(self, 'timestamp', ensure_utc(self.timestamp))
        if self.birth_date is not None:
            object.__setattr__(self, 'birth_date', ensure_utc(self.birth_date))
        if len(self.trait_shift_used) != len(TRAITS):
            raise ValueError("trait_shift_used must cover every trait")
        object.__setattr__(
            self, 'trait_shift_used', tuple(float(v) for v in self.trait_shift_used)
        )

    def age_at(self, when: datetime) -> Optional[float]:
        """Age in years at `when`, or None if no birth date is known."""
        if self.birth_date is None:
            return None
        return years_between(when, self.birth_date)

    def used_for(self, trait: Trait) -> float:
        return self.trait_shift_used[TRAITS.index(trait)]
