"""
Base-Shift Modifier Pipeline
============================

Transforms a raw formative-event trait shift into the realized,
permanent personality change.

PIPELINE (order-sensitive):
1. Clamp raw magnitude to +/- MAX_RAW_SHIFT
2. Age plasticity multiplier (1.3 young -> 0.6 old, piecewise linear)
3. Divide by the trait's stability constant
4. Sensitive-period amplification inside the trait's age window
5. Diminishing returns toward the lifetime cap, then hard clip at the cap
6. Severe shifts are tagged and partially recover over RECOVERY_WINDOW

INVARIANT: cumulative lifetime magnitude per trait never exceeds the cap.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Tuple
import logging
import math

import numpy as np

from ..contracts.base import elapsed_seconds
from ..contracts.dimensions import Trait, TRAITS
from ..contracts.events import BaseShiftRecord, BaseShiftRequest

logger = logging.getLogger(__name__)

MAX_RAW_SHIFT = 0.30
LIFETIME_CAP = 1.0
SEVERE_THRESHOLD = 0.20
SEVERE_RETENTION = 0.70
RECOVERY_WINDOW = timedelta(days=180)


def _default_stability() -> Dict[Trait, float]:
    return {
        Trait.HONESTY_HUMILITY: 0.75,
        Trait.NEUROTICISM: 0.60,
        Trait.EXTRAVERSION: 0.80,
        Trait.AGREEABLENESS: 0.70,
        Trait.CONSCIENTIOUSNESS: 0.75,
        Trait.OPENNESS: 0.85,
    }


def _default_sensitive_periods() -> Dict[Trait, Tuple[float, float, float]]:
    # (start_age inclusive, end_age exclusive, multiplier)
    return {
        Trait.HONESTY_HUMILITY: (12.0, 25.0, 1.2),
        Trait.NEUROTICISM: (12.0, 25.0, 1.3),
        Trait.EXTRAVERSION: (13.0, 22.0, 1.2),
        Trait.AGREEABLENESS: (18.0, 30.0, 1.2),
        Trait.CONSCIENTIOUSNESS: (20.0, 35.0, 1.2),
        Trait.OPENNESS: (15.0, 25.0, 1.25),
    }


@dataclass
class BaseShiftConfig:
    """Calibration parameters for the base-shift pipeline."""
    max_raw_shift: float = MAX_RAW_SHIFT
    lifetime_cap: float = LIFETIME_CAP

    # Piecewise-linear plasticity; flat outside the first/last age.
    plasticity_ages: Tuple[float, ...] = (18.0, 25.0, 40.0, 55.0, 70.0)
    plasticity_factors: Tuple[float, ...] = (1.3, 1.1, 1.0, 0.8, 0.6)

    trait_stability: Dict[Trait, float] = field(default_factory=_default_stability)
    sensitive_periods: Dict[Trait, Tuple[float, float, float]] = field(
        default_factory=_default_sensitive_periods
    )

    severe_threshold: float = SEVERE_THRESHOLD
    severe_retention: float = SEVERE_RETENTION
    recovery_window: timedelta = RECOVERY_WINDOW

    def __post_init__(self):
        if len(self.plasticity_ages) != len(self.plasticity_factors):
            raise ValueError("plasticity_ages and plasticity_factors must align")


class BaseShiftPipeline:
    """
    Stateless modifier pipeline. Bookkeeping lives in TraitLedger.
    """

    def __init__(self, config: Optional[BaseShiftConfig] = None):
        self._config = config or BaseShiftConfig()

    @property
    def config(self) -> BaseShiftConfig:
        return self._config

    def plasticity(self, age: Optional[float]) -> float:
        if age is None:
            return 1.0
        return float(np.interp(
            age, self._config.plasticity_ages, self._config.plasticity_factors
        ))

    def sensitive_multiplier(self, trait: Trait, age: Optional[float]) -> float:
        window = self._config.sensitive_periods.get(trait)
        if age is None or window is None:
            return 1.0
        start, end, multiplier = window
        return multiplier if start <= age < end else 1.0

    def modify(
        self,
        raw_magnitude: float,
        trait: Trait,
        entity_age: Optional[float],
        cumulative_shift_so_far: float,
    ) -> float:
        """Realized magnitude for one request given prior lifetime usage."""
        cfg = self._config
        magnitude = max(-cfg.max_raw_shift, min(cfg.max_raw_shift, raw_magnitude))
        magnitude *= self.plasticity(entity_age)
        magnitude /= cfg.trait_stability[trait]
        magnitude *= self.sensitive_multiplier(trait, entity_age)

        used = min(cfg.lifetime_cap, abs(cumulative_shift_so_far))
        magnitude *= 1.0 - used / cfg.lifetime_cap

        room = cfg.lifetime_cap - used
        if abs(magnitude) > room:
            logger.debug(
                "Trait %s shift %.4f truncated to remaining room %.4f",
                trait.value, magnitude, room,
            )
            magnitude = math.copysign(room, magnitude)
        return magnitude

    def is_severe(self, realized: float) -> bool:
        return abs(realized) > self._config.severe_threshold

    def effective(self, record: BaseShiftRecord, when: datetime) -> float:
        """
        Magnitude of a record as observed at `when`.

        Severe records ramp linearly from full strength to
        severe_retention over the recovery window, then stay there.
        """
        if not record.severe:
            return record.realized
        elapsed = elapsed_seconds(when, record.event_timestamp)
        if elapsed <= 0.0:
            return record.realized
        progress = min(1.0, elapsed / self._config.recovery_window.total_seconds())
        retention = 1.0 - (1.0 - self._config.severe_retention) * progress
        return record.realized * retention


class TraitLedger:
    """
    Per-query accumulator of realized trait shifts.

    Built fresh for every query and discarded afterwards; requests must
    be applied in ascending event order since diminishing returns
    depend on prior usage.
    """

    def __init__(
        self,
        pipeline: BaseShiftPipeline,
        initial_used: Optional[Mapping[Trait, float]] = None,
    ):
        self._pipeline = pipeline
        self._used: Dict[Trait, float] = {t: 0.0 for t in TRAITS}
        for trait, used in (initial_used or {}).items():
            self._used[trait] = min(pipeline.config.lifetime_cap, abs(used))
        self._records: List[BaseShiftRecord] = []

    def apply(
        self,
        event_id: str,
        request: BaseShiftRequest,
        entity_age: Optional[float],
    ) -> BaseShiftRecord:
        trait = request.trait
        realized = self._pipeline.modify(
            raw_magnitude=request.raw_magnitude,
            trait=trait,
            entity_age=entity_age,
            cumulative_shift_so_far=self._used[trait],
        )
        cumulative = min(
            self._pipeline.config.lifetime_cap, self._used[trait] + abs(realized)
        )
        self._used[trait] = cumulative

        record = BaseShiftRecord(
            event_id=event_id,
            trait=trait,
            requested=request.raw_magnitude,
            realized=realized,
            cumulative_after=cumulative,
            event_timestamp=request.event_timestamp,
            severe=self._pipeline.is_severe(realized),
        )
        self._records.append(record)
        return record

    def used(self, trait: Trait) -> float:
        return self._used[trait]

    @property
    def records(self) -> Tuple[BaseShiftRecord, ...]:
        return tuple(self._records)

    def totals_at(self, when: datetime) -> Tuple[float, ...]:
        """Sum of effective shifts per trait (TRAITS order) observed at `when`."""
        totals = {t: 0.0 for t in TRAITS}
        for record in self._records:
            totals[record.trait] += self._pipeline.effective(record, when)
        return tuple(totals[t] for t in TRAITS)
