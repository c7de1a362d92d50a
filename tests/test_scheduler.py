"""Crontab handling for the weekly refresh schedule. No real crontab is touched."""

from __future__ import annotations

import pytest

from careerpulse import scheduler


@pytest.fixture
def fake_crontab(monkeypatch):
    state = {"text": "15 3 * * * backup.sh\n"}
    monkeypatch.setattr(scheduler, "_current_platform", lambda: "linux")
    monkeypatch.setattr(scheduler, "_resolve_command", lambda: ["/usr/bin/careerpulse"])
    monkeypatch.setattr(scheduler, "_read_crontab", lambda: state["text"])

    def _write(text):
        state["text"] = text
        return True

    monkeypatch.setattr(scheduler, "_write_crontab", _write)
    return state


def test_default_cron_line_runs_sunday_midnight(monkeypatch) -> None:
    monkeypatch.setattr(scheduler, "_resolve_command", lambda: ["careerpulse"])
    line = scheduler.build_cron_line()
    assert line.startswith("0 0 * * 0 careerpulse refresh ")
    assert line.endswith(scheduler.CRONTAB_MARKER)


@pytest.mark.parametrize("kwargs", [{"weekday": 7}, {"hour": 24}, {"minute": -1}])
def test_invalid_schedule_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        scheduler.install_schedule(**kwargs)


def test_install_replaces_previous_entry(fake_crontab) -> None:
    assert scheduler.install_schedule()
    assert scheduler.install_schedule(weekday=1, hour=6, minute=30)

    lines = fake_crontab["text"].splitlines()
    assert lines[0] == "15 3 * * * backup.sh"
    ours = [ln for ln in lines if scheduler.CRONTAB_MARKER in ln]
    assert len(ours) == 1
    assert ours[0].startswith("30 6 * * 1 /usr/bin/careerpulse refresh")

    status = scheduler.get_schedule_status()
    assert status == {
        "installed": True,
        "schedule": "MON 06:30",
        "next_run": None,
        "platform": "linux",
    }


def test_uninstall_keeps_other_entries(fake_crontab) -> None:
    scheduler.install_schedule()
    assert scheduler.uninstall_schedule()
    assert fake_crontab["text"] == "15 3 * * * backup.sh\n"
    assert scheduler.get_schedule_status()["installed"] is False
