"""
Engine Orchestration Module

Unified interface over the temporal, core and observability layers.

DESIGN PRINCIPLES:
==================
1. state_at(anchor, events, when) is a PURE FUNCTION of its inputs
2. Layers communicate only through contracts
3. The only shared mutable resource is a Timeline's append
4. Every query is recorded by observability, which never alters results
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple
import logging
import threading

from .catalog import EventCatalog, default_catalog
from .contracts.base import DuplicateAnchorError, NoAnchorError, ensure_utc
from .contracts.events import EntityAnchor, Event
from .contracts.temporal import Snapshot
from .core.base_shift import BaseShiftConfig, BaseShiftPipeline
from .core.compositor import StateCompositor
from .core.decay import DecayConfig, DecayEngine
from .observability import ObservabilityConfig, QueryAuditLog
from .temporal.resolver import resolve_scope
from .temporal.timeline import Timeline, TimelineEntry

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Unified configuration for the engine."""
    decay: DecayConfig = None
    base_shift: BaseShiftConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.decay = self.decay or DecayConfig()
        self.base_shift = self.base_shift or BaseShiftConfig()
        self.observability = self.observability or ObservabilityConfig()


class TemporalStateEngine:
    """
    Temporal State Computation Engine.

    FLOW:
    =====
    1. Resolver: (anchor, events, when) -> ordered in-scope events
    2. Splitter: each event -> permanent / acute / chronic deltas
    3. Decay: temporary deltas decayed by elapsed time
    4. Base-shift: formative requests folded into a fresh trait ledger
    5. Compositor: clamp and emit the Snapshot

    No hidden state between calls.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        catalog: Optional[EventCatalog] = None,
    ):
        self._config = config or EngineConfig()
        self._catalog = catalog if catalog is not None else default_catalog()
        self._compositor = StateCompositor(
            decay=DecayEngine(self._config.decay),
            base_shift=BaseShiftPipeline(self._config.base_shift),
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def catalog(self) -> EventCatalog:
        return self._catalog

    def state_at(
        self,
        anchor: EntityAnchor,
        events: Iterable[Event],
        when: datetime,
    ) -> Snapshot:
        """Compute the snapshot of `anchor`'s entity at `when`."""
        if anchor is None:
            raise NoAnchorError("Cannot compute state without an anchor")
        scope = resolve_scope(anchor.timestamp, events, ensure_utc(when))
        return self._compositor.compose(anchor, scope, self._catalog.spec_for)


class EntityHandle:
    """Read-only view of one registered entity."""

    def __init__(self, simulation: 'Simulation', entity_id: str):
        self._simulation = simulation
        self._entity_id = entity_id

    @property
    def entity_id(self) -> str:
        return self._entity_id

    @property
    def anchor(self) -> EntityAnchor:
        return self._simulation.anchor(self._entity_id)

    def state_at(self, when: datetime) -> Snapshot:
        return self._simulation.state_at(self._entity_id, when)

    def age_at(self, when: datetime) -> Optional[float]:
        return self.anchor.age_at(when)

    def events(self) -> Tuple[Event, ...]:
        return self._simulation.timeline(self._entity_id).ordered_events()


class Simulation:
    """
    Registry of entity anchors and timelines.

    GUARANTEES:
    ===========
    1. An anchor is set exactly once per entity
    2. Appends are serialized per timeline; queries never mutate
    3. Queries for unknown entities raise NoAnchorError
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        catalog: Optional[EventCatalog] = None,
    ):
        self._engine = TemporalStateEngine(config, catalog)
        self._anchors: Dict[str, EntityAnchor] = {}
        self._timelines: Dict[str, Timeline] = {}
        self._registry_lock = threading.Lock()
        self._audit = QueryAuditLog(self._engine.config.observability)

    @property
    def engine(self) -> TemporalStateEngine:
        return self._engine

    @property
    def audit_log(self) -> QueryAuditLog:
        return self._audit

    def add_entity(self, anchor: EntityAnchor) -> EntityHandle:
        with self._registry_lock:
            if anchor.entity_id in self._anchors:
                error = DuplicateAnchorError(
                    f"Entity {anchor.entity_id!r} already has an anchor",
                    entity_id=anchor.entity_id,
                )
                self._audit.record_error(error.error, anchor.entity_id)
                raise error
            self._anchors[anchor.entity_id] = anchor
            self._timelines[anchor.entity_id] = Timeline(anchor.entity_id)
        logger.info("Registered entity %s anchored at %s",
                    anchor.entity_id, anchor.timestamp.isoformat())
        self._audit.record_registration(anchor.entity_id)
        return EntityHandle(self, anchor.entity_id)

    def add_event(self, event: Event) -> TimelineEntry:
        entry = self.timeline(event.target_entity).append(event)
        self._audit.record_append(event.target_entity, event.event_id)
        return entry

    def add_events(self, events: Iterable[Event]) -> Tuple[TimelineEntry, ...]:
        return tuple(self.add_event(e) for e in events)

    def anchor(self, entity_id: str) -> EntityAnchor:
        anchor = self._anchors.get(entity_id)
        if anchor is None:
            error = NoAnchorError(f"No anchor for entity {entity_id!r}", entity_id=entity_id)
            self._audit.record_error(error.error, entity_id)
            raise error
        return anchor

    def timeline(self, entity_id: str) -> Timeline:
        self.anchor(entity_id)
        return self._timelines[entity_id]

    def entity(self, entity_id: str) -> EntityHandle:
        self.anchor(entity_id)
        return EntityHandle(self, entity_id)

    def entity_ids(self) -> Tuple[str, ...]:
        return tuple(sorted(self._anchors))

    def state_at(self, entity_id: str, when: datetime) -> Snapshot:
        anchor = self.anchor(entity_id)
        events = self._timelines[entity_id].events()
        snapshot = self._engine.state_at(anchor, events, when)
        self._audit.record_query(snapshot)
        return snapshot
