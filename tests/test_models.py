"""Tests for ossim data models."""

import dataclasses

import pytest

from ossim.models import AlertEvent, AlertKind, LoadTag, MemoryStats, ProcessInfo, RunState

from conftest import make_snapshot


def test_process_info_creation():
    """Test ProcessInfo dataclass creation."""
    proc = ProcessInfo(
        name="chrome.exe",
        pid=4321,
        cpu_percent=12.5,
        memory_mb=512.0,
        load_tag=LoadTag.MEDIUM,
        run_state=RunState.READY,
    )

    assert proc.name == "chrome.exe"
    assert proc.pid == 4321
    assert proc.cpu_percent == 12.5
    assert proc.memory_mb == 512.0
    assert proc.load_tag is LoadTag.MEDIUM
    assert proc.run_state is RunState.READY


def test_process_info_is_frozen():
    """Test that ProcessInfo is immutable (frozen)."""
    proc = ProcessInfo("system", 1000, 0.1, 10.0, LoadTag.LOW, RunState.SLEEPING)

    with pytest.raises(dataclasses.FrozenInstanceError):
        proc.pid = 999


def test_snapshot_uses_slots():
    """Slots-based dataclasses don't have __dict__."""
    snapshot = make_snapshot()
    assert not hasattr(snapshot, "__dict__")
    assert not hasattr(snapshot.cpu, "__dict__")


def test_snapshot_is_frozen():
    """Test snapshot fields cannot be reassigned."""
    snapshot = make_snapshot()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.cpu = None


def test_available_memory_is_derived():
    """Test available memory and usage percent are computed, not stored."""
    mem = MemoryStats(used_gb=8.5, total_gb=16.0)
    assert mem.available_gb == 7.5
    assert mem.usage_percent == pytest.approx(53.125)
    assert "available_gb" not in MemoryStats.__slots__


def test_rate_totals():
    """Test disk and network totals add their two directions."""
    snapshot = make_snapshot(read=10.0, write=5.5, sent=100.0, received=300.0)
    assert snapshot.disk.total_mbps == 15.5
    assert snapshot.network.total_kbps == 400.0


def test_alert_event_defaults_to_high_severity():
    """Test alerts default to high severity."""
    alert = AlertEvent(kind=AlertKind.CPU, message="hot")
    assert alert.severity == "high"
    assert alert.kind.value == "cpu"


def test_enum_values():
    """Test enum values match the labels shown in the table."""
    assert [s.value for s in RunState] == ["running", "ready", "waiting", "sleeping"]
    assert [t.value for t in LoadTag] == ["low", "medium", "high"]
