"""Shared fixtures for ossim tests."""

from datetime import datetime

import pytest

from ossim.models import (
    CpuStats,
    DiskStats,
    LoadTag,
    MemoryStats,
    MetricsSnapshot,
    NetworkStats,
    ProcessInfo,
    RunState,
)


class ScriptedRandom:
    """
    Deterministic RandomSource.

    Each uniform(a, b) call consumes the next scripted fraction f and returns
    a + (b - a) * f. Once the script runs out, `default` is used.
    """

    def __init__(self, fractions=(), default: float = 0.5) -> None:
        self._fractions = list(fractions)
        self._default = default
        self.calls: list[tuple[float, float]] = []

    def uniform(self, a: float, b: float) -> float:
        self.calls.append((a, b))
        f = self._fractions.pop(0) if self._fractions else self._default
        return a + (b - a) * f


def process_script(pid=0.5, cpu=0.5, mem=0.5, load=0.0, state=0.0) -> list[float]:
    """Fractions for one generated process, in draw order."""
    return [pid, cpu, mem, load, state]


def make_process(name="proc", pid=1234, cpu=10.0, mem=256.0) -> ProcessInfo:
    return ProcessInfo(
        name=name,
        pid=pid,
        cpu_percent=cpu,
        memory_mb=mem,
        load_tag=LoadTag.LOW,
        run_state=RunState.RUNNING,
    )


def make_snapshot(
    cpu=35.0,
    used_gb=8.5,
    total_gb=16.0,
    cores=8,
    ghz=3.5,
    read=75.0,
    write=50.0,
    disk_usage=45.0,
    sent=250.0,
    received=400.0,
    processes=(),
) -> MetricsSnapshot:
    return MetricsSnapshot(
        cpu=CpuStats(usage_percent=cpu, core_count=cores, frequency_ghz=ghz),
        memory=MemoryStats(used_gb=used_gb, total_gb=total_gb),
        disk=DiskStats(read_mbps=read, write_mbps=write, usage_percent=disk_usage),
        network=NetworkStats(sent_kbps=sent, received_kbps=received),
        processes=tuple(processes),
    )


@pytest.fixture
def fixed_now():
    moment = datetime(2024, 3, 1, 21, 5)
    return lambda: moment
