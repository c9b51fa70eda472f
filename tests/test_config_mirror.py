"""Tests for the configuration mirror."""

from conftest import make_snapshot

from core.heatlog.config_mirror import mirror_config, settings_summary
from core.heatlog.models import HolidayStatus


def test_settings_summary(snapshot):
    assert settings_summary("hall", snapshot) == {
        "host": "hall",
        "vendor": "Heatmiser",
        "version": "1.8",
        "model": "PRT-TS",
        "heating": "normal",
        "hotwater": "hotwater",
        "units": "C",
        "holiday": "",
        "progmode": "5/2",
    }


def test_settings_summary_without_capabilities():
    summary = settings_summary("hall", make_snapshot(heating=None, hotwater=None))
    assert summary["heating"] == "n/a"
    assert summary["hotwater"] == "n/a"


def test_settings_summary_switched_off():
    summary = settings_summary("hall", make_snapshot(enabled=False))
    assert summary["heating"] == "off"
    assert summary["hotwater"] == "off"


def test_settings_summary_away_and_holiday():
    snapshot = make_snapshot(
        runmode="frost",
        awaymode="away",
        holiday=HolidayStatus(enabled=True, time="2026-10-25 12:00:00"),
    )
    summary = settings_summary("hall", snapshot)
    assert summary["heating"] == "frost"
    assert summary["hotwater"] == "off"
    assert summary["holiday"] == "2026-10-25 12:00:00"


def test_mirror_config_is_repeatable(store, snapshot):
    mirror_config(store, "hall", snapshot)
    mirror_config(store, "hall", snapshot)

    assert store.upsert_settings.call_args_list[0] == store.upsert_settings.call_args_list[1]
    store.upsert_comfort_schedule.assert_called_with("hall", snapshot.comfort)
    store.upsert_timer_schedule.assert_called_with("hall", snapshot.timer)
