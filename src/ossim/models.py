"""Data models for ossim."""

from dataclasses import dataclass, field
from enum import Enum


class LoadTag(Enum):
    """Coarse load label shown next to each simulated process."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RunState(Enum):
    """Scheduler state of a simulated process."""

    RUNNING = "running"
    READY = "ready"
    WAITING = "waiting"
    SLEEPING = "sleeping"


class AlertKind(Enum):
    """Resource an alert was raised for."""

    CPU = "cpu"
    MEMORY = "memory"


@dataclass(slots=True, frozen=True)
class ProcessInfo:
    """Immutable entry of the simulated process table."""

    name: str
    pid: int  # 1000 - 9999
    cpu_percent: float  # 0.0 - 25.0
    memory_mb: float  # 0.0 - 1024.0
    load_tag: LoadTag
    run_state: RunState


@dataclass(slots=True, frozen=True)
class CpuStats:
    usage_percent: float
    core_count: int
    frequency_ghz: float


@dataclass(slots=True, frozen=True)
class MemoryStats:
    used_gb: float
    total_gb: float

    @property
    def available_gb(self) -> float:
        """Memory not in use; always derived from total and used."""
        return self.total_gb - self.used_gb

    @property
    def usage_percent(self) -> float:
        return (self.used_gb / self.total_gb) * 100


@dataclass(slots=True, frozen=True)
class DiskStats:
    read_mbps: float
    write_mbps: float
    usage_percent: float

    @property
    def total_mbps(self) -> float:
        return self.read_mbps + self.write_mbps


@dataclass(slots=True, frozen=True)
class NetworkStats:
    sent_kbps: float
    received_kbps: float

    @property
    def total_kbps(self) -> float:
        return self.sent_kbps + self.received_kbps


@dataclass(slots=True, frozen=True)
class MetricsSnapshot:
    """
    Complete simulated system state at one instant.

    Snapshots are never mutated: every tick builds a new one and swaps it in,
    so a reader holding a reference always sees a consistent set of values.
    """

    cpu: CpuStats
    memory: MemoryStats
    disk: DiskStats
    network: NetworkStats
    processes: tuple[ProcessInfo, ...] = field(default_factory=tuple)


@dataclass(slots=True, frozen=True)
class AlertEvent:
    """Threshold alert derived from a snapshot."""

    kind: AlertKind
    message: str
    severity: str = "high"
