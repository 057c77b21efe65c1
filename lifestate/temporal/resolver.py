"""
Timeline/Anchor Resolver
========================

Decides which events are visible to one (anchor, query time) pair.

SCOPE RULES:
- FORWARD  (query >= anchor): anchor <= t <= query
- BACKWARD (query <  anchor): query <= t <  anchor

Events at or after the anchor are never visible to a backward query,
and events before the anchor are never visible to a forward query.
Scope is recomputed per query; nothing is cached on the Timeline.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Tuple
import logging

from ..contracts.base import ensure_utc
from ..contracts.events import Event
from ..contracts.temporal import QueryDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedScope:
    """
    Ordered application record consumed by the compositor.

    events are in ascending timestamp order; the input order breaks ties.
    """
    direction: QueryDirection
    anchor_time: datetime
    query_time: datetime
    events: Tuple[Event, ...] = field(default_factory=tuple)


def direction_for(anchor_time: datetime, query_time: datetime) -> QueryDirection:
    if ensure_utc(query_time) >= ensure_utc(anchor_time):
        return QueryDirection.FORWARD
    return QueryDirection.BACKWARD


def in_scope(event: Event, anchor_time: datetime, query_time: datetime) -> bool:
    anchor_time = ensure_utc(anchor_time)
    query_time = ensure_utc(query_time)
    if query_time >= anchor_time:
        return anchor_time <= event.timestamp <= query_time
    return query_time <= event.timestamp < anchor_time


def resolve_scope(
    anchor_time: datetime,
    events: Iterable[Event],
    query_time: datetime,
) -> ResolvedScope:
    """Select and order the events visible to this query."""
    anchor_time = ensure_utc(anchor_time)
    query_time = ensure_utc(query_time)
    direction = direction_for(anchor_time, query_time)

    selected = [e for e in events if in_scope(e, anchor_time, query_time)]
    # sorted() is stable: same-timestamp events keep their input order
    ordered = tuple(sorted(selected, key=lambda e: e.timestamp))

    logger.debug(
        "Resolved %s scope [%s, %s]: %d event(s)",
        direction.value, anchor_time.isoformat(), query_time.isoformat(), len(ordered),
    )
    return ResolvedScope(
        direction=direction,
        anchor_time=anchor_time,
        query_time=query_time,
        events=ordered,
    )
