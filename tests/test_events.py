"""Tests for edge-triggered event recording."""

from unittest.mock import call

from conftest import make_snapshot

from core.heatlog.events import (
    CauseRecord,
    HeatState,
    HotWaterState,
    emit_heat_events,
    emit_heating_event,
    emit_hotwater_events,
    emit_target_event,
)
from core.heatlog.models import HeatingStatus


def test_first_observation_records_heating_and_target(store, snapshot):
    last = emit_heat_events(store, "hall", snapshot, 21, "comfortlevel", HeatState())

    assert store.insert_event.call_args_list == [
        call("hall", snapshot.time, "heating", 1),
        call("hall", snapshot.time, "target", "comfortlevel", temperature=21),
    ]
    assert last == HeatState(cause="comfortlevel", state=1, target=21)


def test_repeated_heat_observations_record_once(store, snapshot):
    last = HeatState()
    for _ in range(5):
        last = emit_heat_events(store, "hall", snapshot, 21, "comfortlevel", last)

    assert store.insert_event.call_count == 2


def test_target_change_only_records_target(store, snapshot):
    last = emit_heat_events(store, "hall", snapshot, 21, "comfortlevel", HeatState())
    store.reset_mock()

    emit_heat_events(store, "hall", snapshot, 23, "manual", last)

    store.insert_event.assert_called_once_with(
        "hall", snapshot.time, "target", "manual", temperature=23
    )


def test_heating_event_keeps_target_memory(store, snapshot):
    last = emit_heating_event(store, "hall", snapshot, HeatState(cause="manual", target=23))

    store.insert_event.assert_called_once_with("hall", snapshot.time, "heating", 1)
    assert last == HeatState(cause="manual", state=1, target=23)


def test_target_event_keeps_heating_memory(store, snapshot):
    last = emit_target_event(store, "hall", snapshot, 21, "comfortlevel", HeatState(state=0))

    store.insert_event.assert_called_once_with(
        "hall", snapshot.time, "target", "comfortlevel", temperature=21
    )
    assert last == HeatState(cause="comfortlevel", state=0, target=21)


def test_heating_switching_off_only_records_heating(store, snapshot):
    last = emit_heat_events(store, "hall", snapshot, 21, "comfortlevel", HeatState())
    store.reset_mock()

    off = make_snapshot(heating=HeatingStatus(on=False, target=21))
    last = emit_heat_events(store, "hall", off, 21, "comfortlevel", last)

    store.insert_event.assert_called_once_with("hall", off.time, "heating", 0)
    assert last.state == 0


def test_no_heating_control_records_baseline_once(store):
    snapshot = make_snapshot(heating=None)
    last = HeatState()
    for _ in range(3):
        last = emit_heat_events(store, "hall", snapshot, 0, "", last)

    assert store.insert_event.call_args_list == [
        call("hall", snapshot.time, "heating", 0),
        call("hall", snapshot.time, "target", "", temperature=0),
    ]


def test_hotwater_first_observation(store, snapshot):
    last = emit_hotwater_events(store, "hall", snapshot, True, "timer", HotWaterState())

    store.insert_event.assert_called_once_with(
        "hall", snapshot.time, "hotwater", "timer", temperature=1
    )
    assert last == HotWaterState(cause="timer", state=1)


def test_hotwater_cause_change_with_same_state(store, snapshot):
    last = emit_hotwater_events(store, "hall", snapshot, True, "timer", HotWaterState())
    store.reset_mock()

    last = emit_hotwater_events(store, "hall", snapshot, True, "boost", last)
    last = emit_hotwater_events(store, "hall", snapshot, True, "boost", last)

    store.insert_event.assert_called_once_with(
        "hall", snapshot.time, "hotwater", "boost", temperature=1
    )


def test_no_hotwater_control_never_records(store):
    snapshot = make_snapshot(hotwater=None)
    last = HotWaterState()
    for _ in range(3):
        last = emit_hotwater_events(store, "hall", snapshot, False, "", last)

    store.insert_event.assert_not_called()


def test_run_of_identical_tuples_records_one_group_per_change(store, snapshot):
    sequence = [(21, "comfortlevel")] * 3 + [(23, "manual")] * 3 + [(21, "comfortlevel")] * 2
    last = CauseRecord().heat
    for target, cause in sequence:
        last = emit_heat_events(store, "hall", snapshot, target, cause, last)

    targets = [c for c in store.insert_event.call_args_list if c.args[2] == "target"]
    assert [c.args[3] for c in targets] == ["comfortlevel", "manual", "comfortlevel"]


def test_state_objects_are_not_mutated(store, snapshot):
    original = HeatState()
    emit_heat_events(store, "hall", snapshot, 21, "comfortlevel", original)
    assert original == HeatState(cause="", state=-1, target=-1)
