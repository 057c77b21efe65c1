"""
LifeState Temporal State Engine

Derives the psychological state of an entity at any instant from one
anchor snapshot and an append-only timeline of life events.

LAYERS:
=======
- contracts: immutable types (dimensions, events, anchors, snapshots)
- temporal: append-only timelines and forward/backward scope resolution
- core: splitter, decay, base-shift pipeline, compositor
- catalog: declarative event-type table
- observability: query audit log
- serialization: hydration records and replay verification

The engine holds no derived state: every query recomputes from
(anchor, events, query time).
"""

from .contracts import (
    Dimension, Trait, DimensionVector, TraitVector,
    EventSpec, Event, EntityAnchor, Snapshot, QueryDirection,
    ErrorCode, LifeStateError, NoAnchorError, DuplicateAnchorError,
    UnknownEventTypeError, HydrationError, InvalidHydrationRecordError,
    years,
)
from .catalog import EventCatalog, default_catalog
from .engine import EngineConfig, EntityHandle, Simulation, TemporalStateEngine

__version__ = "0.1.0"

__all__ = [
    'Dimension',
    'Trait',
    'DimensionVector',
    'TraitVector',
    'EventSpec',
    'Event',
    'EntityAnchor',
    'Snapshot',
    'QueryDirection',
    'ErrorCode',
    'LifeStateError',
    'NoAnchorError',
    'DuplicateAnchorError',
    'UnknownEventTypeError',
    'HydrationError',
    'InvalidHydrationRecordError',
    'years',
    'EventCatalog',
    'default_catalog',
    'EngineConfig',
    'EntityHandle',
    'Simulation',
    'TemporalStateEngine',
]
