"""
Impact Splitter
===============

Turns one EventSpec at one severity into three disjoint delta buckets.

INVARIANT: split_impact(spec, s) is a PURE FUNCTION.
For every routed dimension: permanent + acute + chronic == impact * s.

Routing is strictly per dimension: the chronic flag of dimension d
decides where d's temporary portion goes. There is no category-level
routing.
"""

from __future__ import annotations
from typing import List

from ..contracts.dimensions import Dimension, DimensionVector
from ..contracts.events import AppliedDeltas, EventSpec, clamp_unit


def split_impact(spec: EventSpec, severity: float) -> AppliedDeltas:
    """
    Apply severity, permanence and chronic routing to a raw impact vector.

    Severity outside [0, 1] is clamped silently. acquired_capability is
    always fully permanent and floored at 0 for each event, so habituation
    never reverses.
    """
    s = clamp_unit(severity)

    permanent: List[float] = []
    acute: List[float] = []
    chronic: List[float] = []

    for dimension, impact in spec.impact:
        scaled = impact * s

        if dimension is Dimension.ACQUIRED_CAPABILITY:
            permanent.append(max(0.0, scaled))
            acute.append(0.0)
            chronic.append(0.0)
            continue

        fraction = clamp_unit(spec.permanence_of(dimension))
        temporary = scaled * (1.0 - fraction)
        permanent.append(scaled * fraction)

        if spec.is_chronic(dimension):
            chronic.append(temporary)
            acute.append(0.0)
        else:
            acute.append(temporary)
            chronic.append(0.0)

    return AppliedDeltas(
        permanent=DimensionVector(tuple(permanent)),
        acute=DimensionVector(tuple(acute)),
        chronic=DimensionVector(tuple(chronic)),
    )
