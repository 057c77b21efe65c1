"""
Hydration Replay Tests
======================

INVARIANTS TESTED:
1. Encode -> decode preserves floats bit-for-bit
2. Replaying a persisted log reproduces the persisted snapshot exactly
3. Divergence surfaces as HydrationError, never a silent difference
4. The event log must rebuild the timeline's recorded chain head
"""

import json
from dataclasses import replace

import pytest

from lifestate import Simulation
from lifestate.contracts import (
    DimensionVector, ErrorCode, Event, HydrationError, InvalidHydrationRecordError,
    TimelineCorruptionError,
)
from lifestate.serialization import (
    HydrationRecord, capture, decode_record, encode_record, verify_replay,
)

from tests.fixtures import (
    CHRONIC_STRESS, DAY, HOUR, REPEATED_SETBACK, T0, make_anchor, make_event,
)


def populated_simulation():
    sim = Simulation()
    sim.add_entity(make_anchor(valence=0.1 + 0.2, stress=1 / 3))
    sim.add_events([
        make_event(REPEATED_SETBACK, T0 + HOUR, severity=0.7),
        make_event(CHRONIC_STRESS, T0 + DAY).with_base_shift('neuroticism', 0.12),
        Event.from_catalog("lose_job_layoff", "person_001", T0 + 3 * DAY),
        make_event(REPEATED_SETBACK, T0 - DAY),
    ])
    return sim


class TestRoundTrip:

    def test_decode_restores_record(self):
        record = capture(populated_simulation(), "person_001", T0 + 10 * DAY)

        restored = decode_record(encode_record(record))

        assert restored.anchor == record.anchor
        assert restored.events == record.events
        assert restored.snapshot == record.snapshot
        assert restored.timeline_head == record.timeline_head != ""

    def test_floats_are_hex_encoded(self):
        record = capture(populated_simulation(), "person_001", T0)
        payload = json.loads(encode_record(record))

        assert payload['anchor']['state']['valence'] == (0.1 + 0.2).hex()
        assert payload['anchor']['timestamp'] == T0.isoformat()

    def test_record_without_snapshot(self):
        sim = populated_simulation()
        record = HydrationRecord(
            anchor=sim.anchor("person_001"),
            events=sim.timeline("person_001").events(),
        )
        assert decode_record(encode_record(record)).snapshot is None


class TestVerifyReplay:

    @pytest.mark.parametrize("offset", [-2 * DAY, T0 - T0, 5 * HOUR, 30 * DAY])
    def test_replay_matches(self, offset):
        record = capture(populated_simulation(), "person_001", T0 + offset)

        replayed = verify_replay(decode_record(encode_record(record)))

        assert replayed.state_hash == record.snapshot.state_hash

    def test_tampered_snapshot_is_rejected(self):
        record = capture(populated_simulation(), "person_001", T0 + DAY)
        state = record.snapshot.state
        nudged = DimensionVector(
            (state.values[0] + 1e-15,) + state.values[1:]
        )
        forged = replace(record, snapshot=replace(record.snapshot, state=nudged))

        with pytest.raises(HydrationError) as exc_info:
            verify_replay(forged)
        assert exc_info.value.error.code == ErrorCode.HYDRATION_MISMATCH

    def test_dropped_event_is_detected(self):
        record = capture(populated_simulation(), "person_001", T0 + 5 * DAY)
        truncated = replace(record, events=record.events[:1])

        with pytest.raises(HydrationError):
            verify_replay(truncated)

    def test_reordered_log_breaks_chain_head(self):
        record = capture(populated_simulation(), "person_001", T0 + 5 * DAY)
        shuffled = replace(record, events=record.events[::-1])

        with pytest.raises(HydrationError) as exc_info:
            verify_replay(decode_record(encode_record(shuffled)))
        assert dict(exc_info.value.error.context)["expected_head"] == record.timeline_head

    def test_log_without_head_skips_chain_check(self):
        record = capture(populated_simulation(), "person_001", T0 + 5 * DAY)
        headless = replace(record, events=record.events[::-1], timeline_head="")

        replayed = verify_replay(headless)

        assert replayed.state_hash == record.snapshot.state_hash

    def test_corrupted_timeline_is_not_captured(self):
        sim = populated_simulation()
        timeline = sim.timeline("person_001")
        entries = timeline.entries()
        forged = replace(entries[1], previous_hash="0" * 64)
        timeline._published = (entries[0], forged) + entries[2:]

        with pytest.raises(TimelineCorruptionError) as exc_info:
            capture(sim, "person_001", T0 + DAY)
        assert exc_info.value.error.code == ErrorCode.TIMELINE_CORRUPTION

    def test_missing_snapshot(self):
        sim = populated_simulation()
        record = HydrationRecord(anchor=sim.anchor("person_001"))

        with pytest.raises(InvalidHydrationRecordError):
            verify_replay(record)


class TestMalformedRecords:

    def test_not_json(self):
        with pytest.raises(InvalidHydrationRecordError):
            decode_record("{not json")

    def test_wrong_version(self):
        with pytest.raises(InvalidHydrationRecordError) as exc_info:
            decode_record('{"version": "0.1"}')
        assert exc_info.value.error.code == ErrorCode.INVALID_HYDRATION_RECORD

    def test_missing_anchor(self):
        with pytest.raises(InvalidHydrationRecordError):
            decode_record('{"version": "1.0", "events": []}')
