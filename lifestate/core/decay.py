"""
Decay Engine
============

Residual magnitude of a temporary delta after some elapsed time.

LAW: exponential half-life
    residual(delta, t) = delta * 2 ** (-t / half_life)

GUARANTEES:
===========
1. residual(delta, 0) == delta
2. |residual| is non-increasing in t and approaches 0, sign never flips
3. Chronic half-life = CHRONIC_MULTIPLIER x acute half-life
4. No timers, counters or caches: same inputs -> same float

Half-lives are calibration parameters, not empirical constants.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Union

import numpy as np

from ..contracts.dimensions import Dimension, DimensionVector, DIMENSIONS

CHRONIC_MULTIPLIER = 4.0

Elapsed = Union[timedelta, float]


def _default_half_lives() -> Dict[Dimension, timedelta]:
    # Acute recovery, "hours to weeks". acquired_capability never decays.
    return {
        Dimension.VALENCE: timedelta(hours=6),
        Dimension.AROUSAL: timedelta(hours=6),
        Dimension.DOMINANCE: timedelta(hours=6),
        Dimension.FATIGUE: timedelta(hours=8),
        Dimension.STRESS: timedelta(hours=12),
        Dimension.PURPOSE: timedelta(days=3),
        Dimension.LONELINESS: timedelta(days=1),
        Dimension.PRC: timedelta(days=2),
        Dimension.PERCEIVED_LIABILITY: timedelta(days=3),
        Dimension.SELF_HATE: timedelta(days=3),
        Dimension.PERCEIVED_COMPETENCE: timedelta(days=3),
        Dimension.DEPRESSION: timedelta(weeks=2),
        Dimension.SELF_WORTH: timedelta(weeks=1),
        Dimension.HOPELESSNESS: timedelta(weeks=2),
        Dimension.INTERPERSONAL_HOPELESSNESS: timedelta(weeks=2),
        Dimension.IMPULSE_CONTROL: timedelta(days=1),
        Dimension.EMPATHY: timedelta(weeks=4),
        Dimension.AGGRESSION: timedelta(weeks=1),
        Dimension.GRIEVANCE: timedelta(weeks=1),
        Dimension.REACTANCE: timedelta(days=1),
        Dimension.TRUST_PROPENSITY: timedelta(weeks=2),
    }


@dataclass
class DecayConfig:
    """Configuration for the decay engine."""
    acute_half_lives: Dict[Dimension, timedelta] = field(default_factory=_default_half_lives)
    chronic_multiplier: float = CHRONIC_MULTIPLIER

    def half_life_seconds(self, dimension: Dimension, is_chronic: bool) -> float:
        """Half-life in seconds; inf for dimensions that never decay."""
        half_life = self.acute_half_lives.get(dimension)
        if half_life is None:
            return float('inf')
        seconds = half_life.total_seconds()
        return seconds * self.chronic_multiplier if is_chronic else seconds


def _seconds(elapsed: Elapsed) -> float:
    if isinstance(elapsed, timedelta):
        return elapsed.total_seconds()
    return float(elapsed)


class DecayEngine:
    """
    Stateless decay computation.

    Half-life arrays are precomputed once per config in canonical
    Dimension order so vector decay is a single numpy expression.
    """

    def __init__(self, config: DecayConfig = None):
        self._config = config or DecayConfig()
        self._acute = np.array(
            [self._config.half_life_seconds(d, False) for d in DIMENSIONS],
            dtype=np.float64,
        )
        self._chronic = np.array(
            [self._config.half_life_seconds(d, True) for d in DIMENSIONS],
            dtype=np.float64,
        )

    @property
    def config(self) -> DecayConfig:
        return self._config

    def residual(
        self,
        delta: float,
        elapsed: Elapsed,
        is_chronic: bool,
        dimension: Dimension = Dimension.VALENCE,
    ) -> float:
        """Residual of a single delta on `dimension` after `elapsed`."""
        half_life = self._config.half_life_seconds(dimension, is_chronic)
        return float(delta * self._factor(_seconds(elapsed), half_life))

    def factors(self, elapsed: Elapsed, is_chronic: bool) -> np.ndarray:
        """Per-dimension retention factors in canonical order."""
        half_lives = self._chronic if is_chronic else self._acute
        return self._factor(_seconds(elapsed), half_lives)

    def decay_vector(
        self,
        vector: DimensionVector,
        elapsed: Elapsed,
        is_chronic: bool,
    ) -> np.ndarray:
        """Decay every dimension of `vector`; returns a float64 array."""
        return np.asarray(vector.values, dtype=np.float64) * self.factors(elapsed, is_chronic)

    @staticmethod
    def _factor(elapsed_seconds: float, half_life):
        # Non-positive elapsed time means the delta was just applied.
        t = max(0.0, elapsed_seconds)
        return np.exp2(-t / half_life)
