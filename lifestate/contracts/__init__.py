"""
Contracts Layer

Immutable data types shared by every layer. No behavior beyond
construction helpers, no dependencies on other layers.
"""

from .base import (
    ErrorCode, Error, LifeStateError, NoAnchorError, DuplicateAnchorError,
    UnknownDimensionError, UnknownEventTypeError, TimelineCorruptionError,
    HydrationError, InvalidHydrationRecordError,
    ensure_utc, years, years_between,
)
from .dimensions import (
    Dimension, Trait, DimensionVector, TraitVector,
    DIMENSIONS, TRAITS, ROUTED_DIMENSIONS,
)
from .events import (
    EventSpec, AppliedDeltas, BaseShiftRequest, BaseShiftRecord,
    Event, EntityAnchor,
)
from .temporal import QueryDirection, Snapshot

__all__ = [
    'ErrorCode',
    'Error',
    'LifeStateError',
    'NoAnchorError',
    'DuplicateAnchorError',
    'UnknownDimensionError',
    'UnknownEventTypeError',
    'TimelineCorruptionError',
    'HydrationError',
    'InvalidHydrationRecordError',
    'ensure_utc',
    'years',
    'years_between',
    'Dimension',
    'Trait',
    'DimensionVector',
    'TraitVector',
    'DIMENSIONS',
    'TRAITS',
    'ROUTED_DIMENSIONS',
    'EventSpec',
    'AppliedDeltas',
    'BaseShiftRequest',
    'BaseShiftRecord',
    'Event',
    'EntityAnchor',
    'QueryDirection',
    'Snapshot',
]
