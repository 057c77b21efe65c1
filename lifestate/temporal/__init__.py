"""
Temporal Layer
==============

Event-sourced history and query scoping.

INVARIANTS:
- All state is derived from the append-only timeline
- No mutation of stored events
- Scope is recomputed per query, never cached

Modules:
- timeline: Append-only per-entity event storage
- resolver: Forward/backward scope resolution
"""

from .timeline import Timeline, TimelineEntry, TimelineState, chain_head
from .resolver import ResolvedScope, resolve_scope, direction_for, in_scope

__all__ = [
    'Timeline',
    'TimelineEntry',
    'TimelineState',
    'chain_head',
    'ResolvedScope',
    'resolve_scope',
    'direction_for',
    'in_scope',
]
