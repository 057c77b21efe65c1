"""
Engine Test Fixtures

Fixed timestamps, anchors and specs for deterministic testing.

RULES:
======
1. All timestamps are explicit UTC constants, never wall-clock
2. Specs are built from partial mappings; everything else is zero
3. No fixture depends on the bundled catalog unless it says so
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone

from lifestate.contracts import (
    DimensionVector, EntityAnchor, Event, EventSpec, TraitVector, years,
)


# =============================================================================
# FIXED TIMESTAMPS
# =============================================================================

T0 = datetime(2030, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
BIRTH = T0 - years(30)

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


# =============================================================================
# SPECS
# =============================================================================

VALENCE_HIT = EventSpec.from_mapping(
    impact={'valence': -1.0},
    permanence={'valence': 0.10},
)

REPEATED_SETBACK = EventSpec.from_mapping(
    impact={'valence': -0.55},
    permanence={'valence': 0.05},
)

CHRONIC_STRESS = EventSpec.from_mapping(
    impact={'stress': 0.60, 'valence': -0.40},
    chronic={'stress': True},
    permanence={'stress': 0.10},
)

CAPABILITY_EXPOSURE = EventSpec.from_mapping(
    impact={'acquired_capability': 0.25, 'valence': -0.30},
)

CAPABILITY_NEGATIVE = EventSpec.from_mapping(
    impact={'acquired_capability': -0.50},
)

FULLY_PERMANENT_UPLIFT = EventSpec.from_mapping(
    impact={'purpose': 0.40, 'self_worth': 0.20},
    permanence={'purpose': 1.0, 'self_worth': 1.0},
)


# =============================================================================
# BUILDERS
# =============================================================================

def make_anchor(
    entity_id: str = "person_001",
    timestamp: datetime = T0,
    birth_date: datetime = BIRTH,
    **state: float,
) -> EntityAnchor:
    """Anchor with neutral traits and the given dimension values."""
    return EntityAnchor(
        entity_id=entity_id,
        timestamp=timestamp,
        state=DimensionVector.from_mapping(state),
        traits=TraitVector.from_mapping({'neuroticism': 0.1, 'openness': 0.2}),
        birth_date=birth_date,
    )


def make_event(
    spec: EventSpec,
    timestamp: datetime,
    target: str = "person_001",
    severity: float = 1.0,
) -> Event:
    return Event.custom(spec, target, timestamp, severity)
