"""
State Query Integration Tests
=============================

End-to-end: anchor + timeline -> Simulation.state_at -> Snapshot.

INVARIANTS TESTED:
1. No events in scope -> the anchor baseline
2. Backward queries never reflect events at/after the anchor,
   forward queries never reflect events before it
3. Identical queries are idempotent
4. acquired_capability never negative, non-decreasing over time
5. Every output value within its declared range
"""

from datetime import timedelta

import pytest

from lifestate import Simulation
from lifestate.contracts import (
    Dimension, EntityAnchor, QueryDirection, Trait, TRAITS, years,
)
from lifestate.core import BaseShiftPipeline

from tests.fixtures import (
    CAPABILITY_EXPOSURE, CAPABILITY_NEGATIVE, CHRONIC_STRESS, DAY, FULLY_PERMANENT_UPLIFT,
    HOUR, REPEATED_SETBACK, T0, VALENCE_HIT, make_anchor, make_event,
)


def simulation_with(anchor, *events):
    sim = Simulation()
    sim.add_entity(anchor)
    sim.add_events(events)
    return sim


class TestBaseline:

    def test_no_events_returns_anchor(self):
        anchor = make_anchor(valence=0.3, depression=0.2)
        sim = simulation_with(anchor)

        for when in (T0 - years(3), T0, T0 + years(3)):
            snapshot = sim.state_at(anchor.entity_id, when)
            assert snapshot.state == anchor.state
            assert snapshot.traits == anchor.traits
            assert snapshot.applied_event_ids == ()


class TestForwardProjection:

    def test_event_at_query_time_is_undecayed(self):
        anchor = make_anchor()
        sim = simulation_with(anchor, make_event(VALENCE_HIT, T0 + HOUR))

        snapshot = sim.state_at(anchor.entity_id, T0 + HOUR)

        assert snapshot.direction is QueryDirection.FORWARD
        assert snapshot['valence'] == pytest.approx(-1.0)

    def test_acute_portion_decays(self):
        anchor = make_anchor()
        sim = simulation_with(anchor, make_event(VALENCE_HIT, T0 + HOUR))

        snapshot = sim.state_at(anchor.entity_id, T0 + 7 * HOUR)

        # permanent -0.10 plus half of the -0.90 acute portion
        assert snapshot['valence'] == pytest.approx(-0.55)

    def test_only_permanent_portion_remains(self):
        anchor = make_anchor()
        sim = simulation_with(anchor, make_event(VALENCE_HIT, T0 + HOUR))

        snapshot = sim.state_at(anchor.entity_id, T0 + years(1))

        assert snapshot['valence'] == pytest.approx(-0.10)

    def test_repeated_setbacks_accumulate(self):
        anchor = make_anchor()
        events = [make_event(REPEATED_SETBACK, T0 + i * DAY) for i in range(5)]
        sim = simulation_with(anchor, *events)

        snapshot = sim.state_at(anchor.entity_id, T0 + years(1))

        assert snapshot['valence'] == pytest.approx(-0.1375)
        assert -0.20 < snapshot['valence'] < -0.10

    def test_values_are_clamped(self):
        anchor = make_anchor(purpose=0.5)
        events = [make_event(FULLY_PERMANENT_UPLIFT, T0 + i * DAY) for i in range(10)]
        sim = simulation_with(anchor, *events)

        snapshot = sim.state_at(anchor.entity_id, T0 + years(1))

        assert snapshot['purpose'] == 1.0
        for dimension, value in snapshot.state:
            low, high = dimension.bounds
            assert low <= value <= high


class TestBackwardRegression:

    def test_temporary_residue_is_removed(self):
        anchor = make_anchor(valence=-0.55)
        sim = simulation_with(anchor, make_event(VALENCE_HIT, T0 - 6 * HOUR))

        snapshot = sim.state_at(anchor.entity_id, T0 - 7 * HOUR)

        # the -0.45 acute residue at the anchor is reversed, the -0.10
        # permanent portion is not
        assert snapshot.direction is QueryDirection.BACKWARD
        assert snapshot['valence'] == pytest.approx(-0.10)

    def test_chronic_residue_is_removed(self):
        anchor = make_anchor(stress=0.5)
        sim = simulation_with(anchor, make_event(CHRONIC_STRESS, T0 - 2 * DAY))

        snapshot = sim.state_at(anchor.entity_id, T0 - 3 * DAY)

        # stress: 0.06 permanent, 0.54 chronic with a 48h half-life
        assert snapshot['stress'] == pytest.approx(0.5 - 0.27)

    def test_lasting_changes_are_kept(self):
        anchor = make_anchor(acquired_capability=0.25, purpose=0.4)
        sim = simulation_with(
            anchor,
            make_event(CAPABILITY_EXPOSURE, T0 - DAY),
            make_event(FULLY_PERMANENT_UPLIFT, T0 - DAY),
        )

        snapshot = sim.state_at(anchor.entity_id, T0 - 2 * DAY)

        assert snapshot['acquired_capability'] == 0.25
        assert snapshot['purpose'] == 0.4
        assert snapshot['self_worth'] == 0.0

    def test_query_after_event_sees_anchor(self):
        anchor = make_anchor(valence=-0.55)
        sim = simulation_with(anchor, make_event(VALENCE_HIT, T0 - 6 * HOUR))

        snapshot = sim.state_at(anchor.entity_id, T0 - 2 * HOUR)

        assert snapshot['valence'] == pytest.approx(-0.55)


class TestAnchorSeparation:
    """A at T0-5y, B at T0+5y."""

    def _queries(self, *events):
        anchor = make_anchor(valence=-0.2, loneliness=0.3)
        sim = simulation_with(anchor, *events)
        return (
            sim.state_at(anchor.entity_id, T0 - years(2)),
            sim.state_at(anchor.entity_id, T0 + years(2)),
        )

    def test_backward_query_ignores_later_event(self):
        a = make_event(VALENCE_HIT, T0 - years(5))
        b = make_event(FULLY_PERMANENT_UPLIFT, T0 + years(5) - HOUR)

        with_b, _ = self._queries(a, b)
        without_b, _ = self._queries(a)

        assert with_b.state == without_b.state

    def test_forward_query_ignores_earlier_event(self):
        a = make_event(FULLY_PERMANENT_UPLIFT, T0 - years(5))
        b = make_event(VALENCE_HIT, T0 + years(1))

        _, with_a = self._queries(a, b)
        _, without_a = self._queries(b)

        assert with_a.state == without_a.state
        assert with_a['valence'] == pytest.approx(-0.2 - 0.10)


class TestIdempotence:

    def test_repeated_queries_are_identical(self):
        anchor = make_anchor(valence=0.1)
        events = [
            make_event(REPEATED_SETBACK, T0 + i * HOUR).with_base_shift('neuroticism', 0.05)
            for i in range(4)
        ]
        sim = simulation_with(anchor, *events)

        first = sim.state_at(anchor.entity_id, T0 + 3 * DAY)
        second = sim.state_at(anchor.entity_id, T0 + 3 * DAY)

        assert first == second
        assert first.state_hash == second.state_hash

    def test_append_order_does_not_matter_for_distinct_times(self):
        anchor = make_anchor()
        events = [make_event(REPEATED_SETBACK, T0 + i * HOUR) for i in range(4)]

        forward = simulation_with(anchor, *events)
        shuffled = simulation_with(anchor, *reversed(events))

        assert (
            forward.state_at(anchor.entity_id, T0 + DAY).state_hash
            == shuffled.state_at(anchor.entity_id, T0 + DAY).state_hash
        )


class TestAcquiredCapability:

    def test_monotone_and_non_negative(self):
        anchor = make_anchor()
        sim = simulation_with(
            anchor,
            make_event(CAPABILITY_EXPOSURE, T0 + DAY),
            make_event(CAPABILITY_NEGATIVE, T0 + 2 * DAY),
            make_event(CAPABILITY_EXPOSURE, T0 + 3 * DAY, severity=0.5),
            make_event(CAPABILITY_NEGATIVE, T0 + 4 * DAY),
        )

        values = [
            sim.state_at(anchor.entity_id, T0 + i * DAY)['acquired_capability']
            for i in range(0, 30)
        ]

        assert all(v >= 0.0 for v in values)
        assert values == sorted(values)
        assert values[-1] == pytest.approx(0.375)

    def test_never_decays(self):
        anchor = make_anchor()
        sim = simulation_with(anchor, make_event(CAPABILITY_EXPOSURE, T0 + DAY))

        soon = sim.state_at(anchor.entity_id, T0 + DAY)
        decades = sim.state_at(anchor.entity_id, T0 + years(40))

        assert soon['acquired_capability'] == decades['acquired_capability']


class TestTraitShifts:

    def test_formative_event_uses_birth_date_age(self):
        anchor = make_anchor()
        when = T0 + DAY
        sim = simulation_with(
            anchor, make_event(VALENCE_HIT, when).with_base_shift('neuroticism', 0.05)
        )

        snapshot = sim.state_at(anchor.entity_id, T0 + 2 * DAY)

        expected = 0.05 * BaseShiftPipeline().plasticity(anchor.age_at(when)) / 0.60
        record = snapshot.base_shifts[0]
        assert record.realized == pytest.approx(expected)
        assert not record.severe
        assert snapshot.traits['neuroticism'] == pytest.approx(0.1 + expected)

    def test_supplied_age_overrides_birth_date(self):
        anchor = make_anchor()
        sim = simulation_with(
            anchor,
            make_event(VALENCE_HIT, T0 + DAY).with_base_shift('openness', 0.1, entity_age=70.0),
        )

        snapshot = sim.state_at(anchor.entity_id, T0 + 2 * DAY)

        assert snapshot.base_shifts[0].realized == pytest.approx(0.1 * 0.6 / 0.85)

    def test_pre_anchor_usage_blocks_further_shift(self):
        used = tuple(1.0 if t is Trait.NEUROTICISM else 0.0 for t in TRAITS)
        anchor = EntityAnchor(entity_id="worn", timestamp=T0, trait_shift_used=used)
        event = make_event(VALENCE_HIT, T0 + DAY, target="worn").with_base_shift(
            'neuroticism', 0.3
        )
        sim = simulation_with(anchor, event)

        snapshot = sim.state_at("worn", T0 + 2 * DAY)

        assert snapshot.traits['neuroticism'] == anchor.traits['neuroticism']

    def test_backward_regression_keeps_shift(self):
        anchor = make_anchor()
        event = make_event(VALENCE_HIT, T0 - DAY).with_base_shift('openness', 0.1, entity_age=40.0)
        sim = simulation_with(anchor, event)

        snapshot = sim.state_at(anchor.entity_id, T0 - 2 * DAY)

        assert snapshot.traits == anchor.traits
        assert snapshot.base_shifts == ()

    def test_severe_shift_partially_recovers(self):
        anchor = make_anchor()
        event = make_event(VALENCE_HIT, T0 + DAY).with_base_shift(
            'neuroticism', 0.3, entity_age=40.0
        )
        sim = simulation_with(anchor, event)

        fresh = sim.state_at(anchor.entity_id, T0 + DAY)
        recovered = sim.state_at(anchor.entity_id, T0 + DAY + timedelta(days=400))

        assert fresh.traits['neuroticism'] == pytest.approx(0.1 + 0.5)
        assert recovered.traits['neuroticism'] == pytest.approx(0.1 + 0.35)


class TestEntityHandle:

    def test_handle_delegates(self):
        anchor = make_anchor()
        sim = Simulation()
        handle = sim.add_entity(anchor)
        sim.add_event(make_event(VALENCE_HIT, T0 + HOUR))

        assert handle.entity_id == anchor.entity_id
        assert handle.state_at(T0 + HOUR) == sim.state_at(anchor.entity_id, T0 + HOUR)
        assert handle.age_at(T0) == pytest.approx(30.0)
        assert len(handle.events()) == 1
        assert sim.entity(anchor.entity_id).anchor is anchor

    def test_unknown_birth_date_has_no_age(self):
        anchor = make_anchor(birth_date=None)
        sim = Simulation()
        assert sim.add_entity(anchor).age_at(T0) is None


def test_dimension_order_is_canonical():
    snapshot = simulation_with(make_anchor()).state_at("person_001", T0)
    assert [d for d, _ in snapshot.state] == list(Dimension)
