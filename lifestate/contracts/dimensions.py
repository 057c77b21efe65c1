"""
Dimension Contracts
===================

The closed set of psychological dimensions and personality traits.

INVARIANTS:
- Exactly 22 dimensions and 6 traits, fixed order, no dynamic members
- Every vector is TOTAL: missing entries default to 0.0
- acquired_capability lives in [0, 1]; every other dimension in [-1, 1]
- Traits live in [-1, 1]
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, Mapping, Tuple, Union

from .base import UnknownDimensionError


class Dimension(Enum):
    """Psychological dimensions tracked per entity, in canonical order."""
    # Mood (PAD)
    VALENCE = "valence"
    AROUSAL = "arousal"
    DOMINANCE = "dominance"

    # Needs
    FATIGUE = "fatigue"
    STRESS = "stress"
    PURPOSE = "purpose"

    # Social cognition
    LONELINESS = "loneliness"
    PRC = "prc"  # perceived reciprocal caring
    PERCEIVED_LIABILITY = "perceived_liability"
    SELF_HATE = "self_hate"
    PERCEIVED_COMPETENCE = "perceived_competence"

    # Mental health
    DEPRESSION = "depression"
    SELF_WORTH = "self_worth"
    HOPELESSNESS = "hopelessness"
    INTERPERSONAL_HOPELESSNESS = "interpersonal_hopelessness"
    ACQUIRED_CAPABILITY = "acquired_capability"

    # Disposition
    IMPULSE_CONTROL = "impulse_control"
    EMPATHY = "empathy"
    AGGRESSION = "aggression"
    GRIEVANCE = "grievance"
    REACTANCE = "reactance"
    TRUST_PROPENSITY = "trust_propensity"

    @property
    def bounds(self) -> Tuple[float, float]:
        if self is Dimension.ACQUIRED_CAPABILITY:
            return (0.0, 1.0)
        return (-1.0, 1.0)

    @staticmethod
    def parse(name: Union[str, 'Dimension']) -> 'Dimension':
        if isinstance(name, Dimension):
            return name
        try:
            return Dimension(name)
        except ValueError:
            raise UnknownDimensionError(
                f"Unknown dimension: {name!r}", name=str(name)
            ) from None


class Trait(Enum):
    """HEXACO personality traits."""
    HONESTY_HUMILITY = "honesty_humility"
    NEUROTICISM = "neuroticism"
    EXTRAVERSION = "extraversion"
    AGREEABLENESS = "agreeableness"
    CONSCIENTIOUSNESS = "conscientiousness"
    OPENNESS = "openness"

    @staticmethod
    def parse(name: Union[str, 'Trait']) -> 'Trait':
        if isinstance(name, Trait):
            return name
        try:
            return Trait(name)
        except ValueError:
            raise UnknownDimensionError(
                f"Unknown trait: {name!r}", name=str(name)
            ) from None


DIMENSIONS: Tuple[Dimension, ...] = tuple(Dimension)
TRAITS: Tuple[Trait, ...] = tuple(Trait)

# Dimensions that carry chronic flags and permanence fractions.
ROUTED_DIMENSIONS: Tuple[Dimension, ...] = tuple(
    d for d in DIMENSIONS if d is not Dimension.ACQUIRED_CAPABILITY
)

TRAIT_BOUNDS: Tuple[float, float] = (-1.0, 1.0)


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


# =============================================================================
# VECTORS
# =============================================================================

@dataclass(frozen=True)
class DimensionVector:
    """
    Immutable total mapping Dimension -> float.

    Stored as a tuple in canonical Dimension order so equality and
    hashing are exact and order-independent of construction.
    """
    values: Tuple[float, ...] = (0.0,) * len(DIMENSIONS)

    def __post_init__(self):
        if len(self.values) != len(DIMENSIONS):
            raise ValueError(
                f"DimensionVector needs {len(DIMENSIONS)} values, got {len(self.values)}"
            )
        object.__setattr__(self, 'values', tuple(float(v) for v in self.values))

    @staticmethod
    def zeros() -> 'DimensionVector':
        return DimensionVector()

    @staticmethod
    def from_mapping(
        mapping: Mapping[Union[str, Dimension], float]
    ) -> 'DimensionVector':
        """Build from a partial mapping; absent dimensions are 0.0."""
        resolved: Dict[Dimension, float] = {}
        for key, value in mapping.items():
            resolved[Dimension.parse(key)] = float(value)
        return DimensionVector(tuple(resolved.get(d, 0.0) for d in DIMENSIONS))

    def __getitem__(self, key: Union[str, Dimension]) -> float:
        return self.values[DIMENSIONS.index(Dimension.parse(key))]

    def __iter__(self) -> Iterator[Tuple[Dimension, float]]:
        return iter(zip(DIMENSIONS, self.values))

    def replace(self, **changes: float) -> 'DimensionVector':
        """Return a copy with the named dimensions replaced."""
        current = self.to_dict()
        for key, value in changes.items():
            current[Dimension.parse(key).value] = float(value)
        return DimensionVector.from_mapping(current)

    def to_dict(self) -> Dict[str, float]:
        return {d.value: v for d, v in zip(DIMENSIONS, self.values)}

    def clamped(self) -> 'DimensionVector':
        """Clamp every value into its dimension's declared range."""
        return DimensionVector(tuple(
            _clamp(v, *d.bounds) for d, v in zip(DIMENSIONS, self.values)
        ))


@dataclass(frozen=True)
class TraitVector:
    """Immutable total mapping Trait -> float."""
    values: Tuple[float, ...] = (0.0,) * len(TRAITS)

    def __post_init__(self):
        if len(self.values) != len(TRAITS):
            raise ValueError(
                f"TraitVector needs {len(TRAITS)} values, got {len(self.values)}"
            )
        object.__setattr__(self, 'values', tuple(float(v) for v in self.values))

    @staticmethod
    def from_mapping(mapping: Mapping[Union[str, Trait], float]) -> 'TraitVector':
        resolved = {Trait.parse(k): float(v) for k, v in mapping.items()}
        return TraitVector(tuple(resolved.get(t, 0.0) for t in TRAITS))

    def __getitem__(self, key: Union[str, Trait]) -> float:
        return self.values[TRAITS.index(Trait.parse(key))]

    def __iter__(self) -> Iterator[Tuple[Trait, float]]:
        return iter(zip(TRAITS, self.values))

    def to_dict(self) -> Dict[str, float]:
        return {t.value: v for t, v in zip(TRAITS, self.values)}

    def clamped(self) -> 'TraitVector':
        return TraitVector(tuple(_clamp(v, *TRAIT_BOUNDS) for v in self.values))


def routed_flags(mapping: Mapping[Union[str, Dimension], bool]) -> Tuple[bool, ...]:
    """Normalize a chronic-flag mapping to a tuple over ROUTED_DIMENSIONS."""
    resolved = _resolve_routed(mapping.items())
    return tuple(bool(resolved.get(d, False)) for d in ROUTED_DIMENSIONS)


def routed_fractions(mapping: Mapping[Union[str, Dimension], float]) -> Tuple[float, ...]:
    """Normalize a permanence mapping to a tuple over ROUTED_DIMENSIONS."""
    resolved = _resolve_routed(mapping.items())
    return tuple(float(resolved.get(d, 0.0)) for d in ROUTED_DIMENSIONS)


def _resolve_routed(items: Iterable) -> Dict[Dimension, object]:
    resolved: Dict[Dimension, object] = {}
    for key, value in items:
        dim = Dimension.parse(key)
        if dim is Dimension.ACQUIRED_CAPABILITY:
            # acquired_capability is always fully permanent; entries are ignored
            continue
        resolved[dim] = value
    return resolved
