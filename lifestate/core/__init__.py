"""
Core Computation Layer

RESPONSIBILITY: The numerical state machine
- splitter: severity / permanence / chronic routing
- decay: half-life residuals of temporary deltas
- base_shift: realized personality trait changes
- compositor: merge everything into a Snapshot

WHAT THIS LAYER MUST NOT DO:
============================
- Store state between calls
- Read the wall clock
- Mutate anchors, events or timelines
"""

from .splitter import split_impact
from .decay import DecayConfig, DecayEngine, CHRONIC_MULTIPLIER
from .base_shift import (
    BaseShiftConfig, BaseShiftPipeline, TraitLedger,
    MAX_RAW_SHIFT, LIFETIME_CAP,
)
from .compositor import StateCompositor

__all__ = [
    'split_impact',
    'DecayConfig',
    'DecayEngine',
    'CHRONIC_MULTIPLIER',
    'BaseShiftConfig',
    'BaseShiftPipeline',
    'TraitLedger',
    'MAX_RAW_SHIFT',
    'LIFETIME_CAP',
    'StateCompositor',
]
