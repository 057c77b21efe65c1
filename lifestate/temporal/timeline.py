"""
Timeline
========

Append-only, per-entity event storage with sequence numbering.

INVARIANTS:
- No updates or deletes - append only
- Every entry has a monotonic sequence number
- Hash chain for integrity verification
- Readers get an immutable tuple copy; append is serialized by a lock

This is the SOURCE OF TRUTH for an entity's history.
State is DERIVED from it per query, never stored here.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
import hashlib
import threading

from ..contracts.base import Error, ErrorCode
from ..contracts.events import Event


@dataclass(frozen=True)
class TimelineEntry:
    """
    Immutable timeline entry.
    Once written, never modified. Entries form a hash chain.
    """
    sequence: int
    event: Event
    previous_hash: str
    entry_hash: str

    @staticmethod
    def create(sequence: int, event: Event, previous_hash: str) -> 'TimelineEntry':
        return TimelineEntry(
            sequence=sequence,
            event=event,
            previous_hash=previous_hash,
            entry_hash=TimelineEntry.compute_hash(sequence, event, previous_hash),
        )

    @staticmethod
    def compute_hash(sequence: int, event: Event, previous_hash: str) -> str:
        hash_content = (
            f"{sequence}|"
            f"{event.event_id}|"
            f"{event.timestamp.isoformat()}|"
            f"{previous_hash}"
        )
        return hashlib.sha256(hash_content.encode()).hexdigest()


def chain_head(events: Iterable[Event]) -> str:
    """Head hash of the chain that appending `events` in order would build."""
    head = ""
    for sequence, event in enumerate(events, start=1):
        head = TimelineEntry.compute_hash(sequence, event, head)
    return head


@dataclass(frozen=True)
class TimelineState:
    """Immutable snapshot of timeline bookkeeping."""
    head_sequence: int
    head_hash: str
    entry_count: int


class Timeline:
    """
    Append-only event history of one entity.

    GUARANTEES:
    ===========
    1. NO updates - entries are immutable once written
    2. NO deletes - the timeline only grows
    3. Reads never observe a half-applied append
    4. Events may arrive in any time order; ordered views sort by
       (timestamp, sequence)
    """

    def __init__(self, entity_id: str):
        self._entity_id = entity_id
        self._entries: List[TimelineEntry] = []
        self._head_hash = ""
        self._lock = threading.Lock()
        # Published copy for lock-free readers; replaced on every append.
        self._published: Tuple[TimelineEntry, ...] = ()

    @property
    def entity_id(self) -> str:
        return self._entity_id

    @property
    def state(self) -> TimelineState:
        entries = self._published
        return TimelineState(
            head_sequence=entries[-1].sequence if entries else 0,
            head_hash=entries[-1].entry_hash if entries else "",
            entry_count=len(entries),
        )

    def append(self, event: Event) -> TimelineEntry:
        """
        Append an event. This is the ONLY write operation.
        """
        with self._lock:
            entry = TimelineEntry.create(
                sequence=len(self._entries) + 1,
                event=event,
                previous_hash=self._head_hash,
            )
            self._entries.append(entry)
            self._head_hash = entry.entry_hash
            self._published = tuple(self._entries)
        return entry

    def entries(self) -> Tuple[TimelineEntry, ...]:
        """Immutable copy of all entries in append order."""
        return self._published

    def events(self) -> Tuple[Event, ...]:
        """Events in append order."""
        return tuple(entry.event for entry in self._published)

    def ordered_events(self) -> Tuple[Event, ...]:
        """Events in ascending timestamp order, append order breaking ties."""
        ordered = sorted(
            self._published,
            key=lambda entry: (entry.event.timestamp, entry.sequence),
        )
        return tuple(entry.event for entry in ordered)

    def verify_integrity(self) -> Tuple[bool, Optional[Error]]:
        """
        Verify the hash chain.
        Returns (is_valid, error); error carries the broken sequence.
        """
        expected_previous = ""
        for entry in self._published:
            recomputed = TimelineEntry.compute_hash(
                entry.sequence, entry.event, entry.previous_hash
            )
            if entry.previous_hash != expected_previous or recomputed != entry.entry_hash:
                return (False, Error.create(
                    ErrorCode.TIMELINE_CORRUPTION,
                    f"Hash chain broken at sequence {entry.sequence}",
                    entity_id=self._entity_id,
                    expected_hash=expected_previous,
                    actual_hash=entry.previous_hash,
                ))
            expected_previous = entry.entry_hash
        return (True, None)

    def __len__(self) -> int:
        return len(self._published)
