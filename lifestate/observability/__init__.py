"""
Observability & Audit Layer

RESPONSIBILITY: Record what the engine computed, never influence it
OUTPUTS: QueryAuditEntry records, error records, simple counters

WHAT THIS LAYER MUST NOT DO:
============================
- Modify engine behavior or results
- Filter or interpret recorded data
- Hold references to mutable engine state

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable values only (hashes, ids, counts, Error)
- Append-only; safe to call from concurrent query threads
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple
import hashlib
import logging
import threading

from ..contracts.base import Error
from ..contracts.temporal import QueryDirection, Snapshot

logger = logging.getLogger(__name__)


class AuditEventType(Enum):
    QUERY = "query"
    ENTITY_REGISTERED = "entity_registered"
    EVENT_APPENDED = "event_appended"
    ERROR = "error"


@dataclass(frozen=True)
class QueryAuditEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    recorded_at: datetime
    entity_id: Optional[str] = None
    query_time: Optional[datetime] = None
    direction: Optional[QueryDirection] = None
    in_scope_count: int = 0
    state_hash: str = ""
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


@dataclass
class ObservabilityConfig:
    """Configuration for the audit log."""
    enabled: bool = True
    max_entries: int = 10_000  # oldest entries are dropped beyond this


class QueryAuditLog:
    """
    Append-only audit collector.

    Recording never raises into the caller's computation path and never
    changes what the engine returns.
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._entries: List[QueryAuditEntry] = []
        self._counters: Dict[AuditEventType, int] = {t: 0 for t in AuditEventType}
        self._lock = threading.Lock()
        self._sequence = 0

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def _next_id(self, kind: AuditEventType) -> str:
        self._sequence += 1
        digest = hashlib.sha256(f"{kind.value}|{self._sequence}".encode()).hexdigest()[:16]
        return f"audit_{digest}"

    def _collect(self, kind: AuditEventType, **fields) -> None:
        if not self._config.enabled:
            return
        with self._lock:
            entry = QueryAuditEntry(
                entry_id=self._next_id(kind),
                event_type=kind,
                recorded_at=datetime.now(timezone.utc),
                **fields,
            )
            self._entries.append(entry)
            self._counters[kind] += 1
            overflow = len(self._entries) - self._config.max_entries
            if overflow > 0:
                del self._entries[:overflow]

    def record_query(self, snapshot: Snapshot) -> None:
        self._collect(
            AuditEventType.QUERY,
            entity_id=snapshot.entity_id,
            query_time=snapshot.timestamp,
            direction=snapshot.direction,
            in_scope_count=len(snapshot.applied_event_ids),
            state_hash=snapshot.state_hash,
        )

    def record_registration(self, entity_id: str) -> None:
        self._collect(AuditEventType.ENTITY_REGISTERED, entity_id=entity_id)

    def record_append(self, entity_id: str, event_id: str) -> None:
        self._collect(
            AuditEventType.EVENT_APPENDED,
            entity_id=entity_id,
            metadata=(("event_id", event_id),),
        )

    def record_error(self, error: Error, entity_id: Optional[str] = None) -> None:
        logger.debug("Recording error %s: %s", error.code.name, error.message)
        self._collect(
            AuditEventType.ERROR,
            entity_id=entity_id,
            metadata=(("code", error.code.name), ("message", error.message)) + error.context,
        )

    def entries(
        self,
        event_type: Optional[AuditEventType] = None,
        entity_id: Optional[str] = None,
    ) -> List[QueryAuditEntry]:
        """Get entries, optionally filtered."""
        with self._lock:
            entries = list(self._entries)
        if event_type is not None:
            entries = [e for e in entries if e.event_type == event_type]
        if entity_id is not None:
            entries = [e for e in entries if e.entity_id == entity_id]
        return entries

    def count(self, event_type: AuditEventType) -> int:
        with self._lock:
            return self._counters[event_type]


__all__ = [
    'AuditEventType',
    'QueryAuditEntry',
    'ObservabilityConfig',
    'QueryAuditLog',
]
