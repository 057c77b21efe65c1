"""
Hydration Format
================

Persisted anchor + ordered event log + the log's hash-chain head
(+ optionally the snapshot that was observed when the record was written).

CONTRACT:
The stored events rebuild the stored chain head, and replaying them against
the stored anchor reproduces the persisted snapshot bit-for-bit at the
persisted timestamp.

RULES:
1. Datetimes are ISO 8601 strings (UTC)
2. Enums use their .value
3. Floats are stored with float.hex() so no precision is lost
4. Sets become sorted lists
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple
import json
import logging

from .contracts.base import (
    HydrationError, InvalidHydrationRecordError, TimelineCorruptionError, ensure_utc,
)
from .contracts.dimensions import DimensionVector, TraitVector, TRAITS
from .contracts.events import BaseShiftRequest, EntityAnchor, Event, EventSpec
from .contracts.temporal import Snapshot
from .temporal.timeline import chain_head

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"


class StrictEncoder(json.JSONEncoder):
    """JSON encoder that prioritizes fidelity over flexibility."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(list(obj))
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        return super().default(obj)


def _hex_map(mapping: Mapping[str, float]) -> Dict[str, str]:
    return {k: float(v).hex() for k, v in mapping.items()}


def _unhex_map(mapping: Mapping[str, str]) -> Dict[str, float]:
    return {k: float.fromhex(v) for k, v in mapping.items()}


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))


# =============================================================================
# RECORD TYPES
# =============================================================================

@dataclass(frozen=True)
class PersistedSnapshot:
    """The observed state stored alongside a hydration record."""
    timestamp: datetime
    state: DimensionVector
    traits: TraitVector
    state_hash: str

    @staticmethod
    def from_snapshot(snapshot: Snapshot) -> 'PersistedSnapshot':
        return PersistedSnapshot(
            timestamp=snapshot.timestamp,
            state=snapshot.state,
            traits=snapshot.traits,
            state_hash=snapshot.state_hash,
        )


@dataclass(frozen=True)
class HydrationRecord:
    anchor: EntityAnchor
    events: Tuple[Event, ...] = field(default_factory=tuple)
    snapshot: Optional[PersistedSnapshot] = None
    timeline_head: str = ""


# =============================================================================
# ENCODE
# =============================================================================

def _encode_spec(spec: EventSpec) -> dict:
    raw = spec.to_dict()
    return {
        'impact': _hex_map(raw['impact']),
        'chronic': raw['chronic'],
        'permanence': _hex_map(raw['permanence']),
    }


def _encode_event(event: Event) -> dict:
    return {
        'event_id': event.event_id,
        'target_entity': event.target_entity,
        'timestamp': event.timestamp,
        'severity': event.severity.hex(),
        'event_type': event.event_type,
        'custom_spec': _encode_spec(event.custom_spec) if event.custom_spec else None,
        'base_shifts': [
            {
                'trait': r.trait,
                'raw_magnitude': float(r.raw_magnitude).hex(),
                'event_timestamp': r.event_timestamp,
                'entity_age_at_event': (
                    None if r.entity_age_at_event is None
                    else float(r.entity_age_at_event).hex()
                ),
            }
            for r in event.base_shifts
        ],
    }


def encode_record(record: HydrationRecord) -> str:
    anchor = record.anchor
    payload = {
        'version': FORMAT_VERSION,
        'anchor': {
            'entity_id': anchor.entity_id,
            'timestamp': anchor.timestamp,
            'birth_date': anchor.birth_date,
            'state': _hex_map(anchor.state.to_dict()),
            'traits': _hex_map(anchor.traits.to_dict()),
            'trait_shift_used': _hex_map(
                {t.value: v for t, v in zip(TRAITS, anchor.trait_shift_used)}
            ),
        },
        'events': [_encode_event(e) for e in record.events],
        'timeline_head': record.timeline_head,
        'snapshot': None,
    }
    if record.snapshot is not None:
        payload['snapshot'] = {
            'timestamp': record.snapshot.timestamp,
            'state': _hex_map(record.snapshot.state.to_dict()),
            'traits': _hex_map(record.snapshot.traits.to_dict()),
            'state_hash': record.snapshot.state_hash,
        }
    return json.dumps(payload, cls=StrictEncoder, indent=2, sort_keys=True)


# =============================================================================
# DECODE
# =============================================================================

def _decode_spec(raw: dict) -> EventSpec:
    return EventSpec.from_mapping(
        impact=_unhex_map(raw['impact']),
        chronic=raw.get('chronic'),
        permanence=_unhex_map(raw.get('permanence', {})),
    )


def _decode_event(raw: dict) -> Event:
    shifts = tuple(
        BaseShiftRequest(
            trait=s['trait'],
            raw_magnitude=float.fromhex(s['raw_magnitude']),
            event_timestamp=_parse_time(s['event_timestamp']),
            entity_age_at_event=(
                None if s.get('entity_age_at_event') is None
                else float.fromhex(s['entity_age_at_event'])
            ),
        )
        for s in raw.get('base_shifts', [])
    )
    return Event(
        target_entity=raw['target_entity'],
        timestamp=_parse_time(raw['timestamp']),
        severity=float.fromhex(raw['severity']),
        event_type=raw.get('event_type'),
        custom_spec=_decode_spec(raw['custom_spec']) if raw.get('custom_spec') else None,
        base_shifts=shifts,
        event_id=raw.get('event_id', ""),
    )


def decode_record(text: str) -> HydrationRecord:
    try:
        payload = json.loads(text)
        if payload.get('version') != FORMAT_VERSION:
            raise InvalidHydrationRecordError(
                f"Unsupported hydration format version: {payload.get('version')!r}"
            )
        raw_anchor = payload['anchor']
        anchor = EntityAnchor(
            entity_id=raw_anchor['entity_id'],
            timestamp=_parse_time(raw_anchor['timestamp']),
            birth_date=_parse_time(raw_anchor.get('birth_date')),
            state=DimensionVector.from_mapping(_unhex_map(raw_anchor['state'])),
            traits=TraitVector.from_mapping(_unhex_map(raw_anchor['traits'])),
            trait_shift_used=TraitVector.from_mapping(
                _unhex_map(raw_anchor.get('trait_shift_used', {}))
            ).values,
        )
        events = tuple(_decode_event(e) for e in payload.get('events', []))
        snapshot = None
        if payload.get('snapshot'):
            raw_snap = payload['snapshot']
            snapshot = PersistedSnapshot(
                timestamp=_parse_time(raw_snap['timestamp']),
                state=DimensionVector.from_mapping(_unhex_map(raw_snap['state'])),
                traits=TraitVector.from_mapping(_unhex_map(raw_snap['traits'])),
                state_hash=raw_snap['state_hash'],
            )
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidHydrationRecordError(f"Malformed hydration record: {exc}") from exc
    return HydrationRecord(
        anchor=anchor,
        events=events,
        snapshot=snapshot,
        timeline_head=payload.get('timeline_head', ""),
    )


# =============================================================================
# REPLAY VERIFICATION
# =============================================================================

def capture(simulation, entity_id: str, when: datetime) -> HydrationRecord:
    """Build a record of an entity, including its snapshot at `when`."""
    timeline = simulation.timeline(entity_id)
    valid, error = timeline.verify_integrity()
    if not valid:
        logger.error("Refusing to capture %s: %s", entity_id, error.message)
        raise TimelineCorruptionError(error.message, entity_id=entity_id)

    snapshot = simulation.state_at(entity_id, when)
    return HydrationRecord(
        anchor=simulation.anchor(entity_id),
        events=timeline.events(),
        snapshot=PersistedSnapshot.from_snapshot(snapshot),
        timeline_head=timeline.state.head_hash,
    )


def verify_replay(record: HydrationRecord, engine=None) -> Snapshot:
    """
    Replay a record and require a bit-for-bit match with its snapshot.

    Returns the replayed Snapshot; raises HydrationError on divergence,
    including an event log that no longer rebuilds its recorded chain head.
    """
    if engine is None:
        from .engine import TemporalStateEngine
        engine = TemporalStateEngine()
    if record.snapshot is None:
        raise InvalidHydrationRecordError(
            "Record has no persisted snapshot to verify",
            entity_id=record.anchor.entity_id,
        )

    if record.timeline_head and chain_head(record.events) != record.timeline_head:
        logger.warning(
            "Event log for %s does not rebuild chain head %s",
            record.anchor.entity_id, record.timeline_head,
        )
        raise HydrationError(
            "Event log does not match its recorded chain head",
            entity_id=record.anchor.entity_id,
            expected_head=record.timeline_head,
        )

    replayed = engine.state_at(record.anchor, record.events, record.snapshot.timestamp)
    persisted = record.snapshot
    if (
        replayed.state.values != persisted.state.values
        or replayed.traits.values != persisted.traits.values
        or replayed.state_hash != persisted.state_hash
    ):
        logger.warning(
            "Hydration mismatch for %s at %s: %s != %s",
            record.anchor.entity_id, persisted.timestamp.isoformat(),
            replayed.state_hash, persisted.state_hash,
        )
        raise HydrationError(
            "Replayed state does not match persisted snapshot",
            entity_id=record.anchor.entity_id,
            expected_hash=persisted.state_hash,
            actual_hash=replayed.state_hash,
        )
    return replayed
