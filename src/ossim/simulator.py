"""Metrics simulation engine for ossim."""

import logging
import math
import random
import threading
from queue import Queue
from typing import Protocol

from ossim.config import MonitorConfig
from ossim.exceptions import ProcessNotFoundError
from ossim.models import (
    AlertEvent,
    AlertKind,
    CpuStats,
    DiskStats,
    LoadTag,
    MemoryStats,
    MetricsSnapshot,
    NetworkStats,
    ProcessInfo,
    RunState,
)

log = logging.getLogger(__name__)

CPU_ALERT_MESSAGE = "⚠️ High CPU usage detected! Consider closing unnecessary applications."
MEMORY_ALERT_MESSAGE = "⚠️ Memory usage is critically high! System may slow down."

RUN_STATES = (RunState.RUNNING, RunState.READY, RunState.WAITING, RunState.SLEEPING)


class RandomSource(Protocol):
    """Anything that can draw a uniform float in [low, high]; random.Random qualifies."""

    def uniform(self, a: float, b: float) -> float: ...


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def context_switches_for(cpu_usage_percent: float) -> int:
    """Narrative context-switch rate for a given CPU load."""
    return math.floor(cpu_usage_percent * 100)


def alerts_for(snapshot: MetricsSnapshot, config: MonitorConfig) -> list[AlertEvent]:
    """Alerts raised by `snapshot`, cpu before memory."""
    alerts: list[AlertEvent] = []
    if snapshot.cpu.usage_percent > config.cpu_alert_threshold:
        alerts.append(AlertEvent(kind=AlertKind.CPU, message=CPU_ALERT_MESSAGE))
    if snapshot.memory.usage_percent > config.memory_alert_threshold:
        alerts.append(AlertEvent(kind=AlertKind.MEMORY, message=MEMORY_ALERT_MESSAGE))
    return alerts


class MetricsSimulator:
    """
    Owns the simulated metrics snapshot and advances it one tick at a time.

    tick() is the only writer. It builds a complete new snapshot and swaps it
    in under a lock, so get_snapshot() from any thread returns either the
    previous snapshot or the new one, never a mix of both.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        """
        Initialize the MetricsSimulator.

        Args:
            config: Simulation constants. Defaults to MonitorConfig().
            rng: Source of uniform draws. Defaults to a fresh random.Random().
        """
        self._config = config if config is not None else MonitorConfig()
        self._rng: RandomSource = rng if rng is not None else random.Random()
        self._lock = threading.Lock()
        self._snapshot = MetricsSnapshot(
            cpu=CpuStats(
                usage_percent=self._config.initial_cpu_percent,
                core_count=self._config.core_count,
                frequency_ghz=self._config.cpu_frequency_ghz,
            ),
            memory=MemoryStats(
                used_gb=self._config.initial_memory_used_gb,
                total_gb=self._config.total_memory_gb,
            ),
            disk=DiskStats(
                read_mbps=0.0,
                write_mbps=0.0,
                usage_percent=self._config.disk_usage_percent,
            ),
            network=NetworkStats(sent_kbps=0.0, received_kbps=0.0),
            processes=(),
        )

    @property
    def config(self) -> MonitorConfig:
        return self._config

    def tick(self) -> MetricsSnapshot:
        """Advance every metric by one bounded random step and return the new snapshot."""
        cfg = self._config
        current = self.get_snapshot()
        uniform = self._rng.uniform

        # Gradual drift for CPU and memory, clamped so long runs stay plausible
        cpu_usage = clamp(
            current.cpu.usage_percent + uniform(-5, 5),
            cfg.cpu_floor_percent,
            cfg.cpu_ceiling_percent,
        )
        memory_used = clamp(
            current.memory.used_gb + uniform(-0.25, 0.25),
            cfg.memory_floor_gb,
            cfg.memory_ceiling_gb,
        )

        # Disk and network are bursty: resampled from scratch every tick
        disk = DiskStats(
            read_mbps=uniform(0, 150),
            write_mbps=uniform(0, 100),
            usage_percent=current.disk.usage_percent,
        )
        network = NetworkStats(sent_kbps=uniform(0, 500), received_kbps=uniform(0, 800))

        snapshot = MetricsSnapshot(
            cpu=CpuStats(
                usage_percent=cpu_usage,
                core_count=current.cpu.core_count,
                frequency_ghz=current.cpu.frequency_ghz,
            ),
            memory=MemoryStats(used_gb=memory_used, total_gb=current.memory.total_gb),
            disk=disk,
            network=network,
            processes=self._generate_processes(),
        )

        with self._lock:
            self._snapshot = snapshot

        log.debug(
            "metrics advanced",
            extra={"event": "sim.tick", "extra_fields": {
                "cpu_percent": round(cpu_usage, 2),
                "memory_used_gb": round(memory_used, 2),
                "processes": len(snapshot.processes),
            }},
        )
        return snapshot

    def _generate_processes(self) -> tuple[ProcessInfo, ...]:
        """
        Draw a fresh process table, one entry per catalog name.

        Draw order per process is pid, cpu, memory, load, state.
        """
        uniform = self._rng.uniform
        processes: list[ProcessInfo] = []

        for name in self._config.process_names:
            pid = min(1000 + int(uniform(0, 9000)), 9999)
            cpu_percent = uniform(0, 25)
            memory_mb = uniform(0, 1024)

            # Load comes from its own draw, not from cpu_percent
            load_draw = uniform(0, 1)
            if load_draw > 0.8:
                load_tag = LoadTag.HIGH
            elif load_draw > 0.5:
                load_tag = LoadTag.MEDIUM
            else:
                load_tag = LoadTag.LOW

            state_index = min(int(uniform(0, len(RUN_STATES))), len(RUN_STATES) - 1)

            processes.append(
                ProcessInfo(
                    name=name,
                    pid=pid,
                    cpu_percent=cpu_percent,
                    memory_mb=memory_mb,
                    load_tag=load_tag,
                    run_state=RUN_STATES[state_index],
                )
            )

        processes.sort(key=lambda p: p.cpu_percent, reverse=True)
        return tuple(processes[: self._config.max_processes_display])

    def get_snapshot(self) -> MetricsSnapshot:
        """Return the current snapshot. Snapshots are immutable."""
        with self._lock:
            return self._snapshot

    def evaluate_alerts(self) -> list[AlertEvent]:
        """Return the alerts for the current snapshot and log each one."""
        alerts = alerts_for(self.get_snapshot(), self._config)
        for alert in alerts:
            log.warning(
                alert.message,
                extra={"event": "sim.alert", "extra_fields": {
                    "kind": alert.kind.value,
                    "severity": alert.severity,
                }},
            )
        return alerts

    def lookup_process(self, pid: int) -> ProcessInfo:
        """
        Find a process in the current table.

        Raises:
            ProcessNotFoundError: The pid is not in the table. Pids are redrawn
                every tick, so a pid seen before a tick usually misses after it.
        """
        for proc in self.get_snapshot().processes:
            if proc.pid == pid:
                return proc
        log.debug(
            "pid not in process table",
            extra={"event": "sim.lookup_miss", "extra_fields": {"pid": pid}},
        )
        raise ProcessNotFoundError(pid)

    def estimated_context_switches(self) -> int:
        """Context switches per second implied by the current CPU load."""
        return context_switches_for(self.get_snapshot().cpu.usage_percent)


class MetricsTicker:
    """
    Drives a MetricsSimulator from a background daemon thread.

    Every interval the ticker calls tick() and pushes the new snapshot to a
    thread-safe Queue for the UI to drain.
    """

    def __init__(
        self,
        simulator: MetricsSimulator,
        update_queue: Queue[MetricsSnapshot],
        interval: float | None = None,
    ) -> None:
        """
        Initialize the MetricsTicker.

        Args:
            simulator: The simulator to advance.
            update_queue: Thread-safe queue to push snapshots to.
            interval: Seconds between ticks. Defaults to the config's interval.
        """
        self._simulator = simulator
        self._queue = update_queue
        self._interval = interval if interval is not None else simulator.config.update_interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        """Get the current tick interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the tick interval."""
        self._interval = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the ticker thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the ticker thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._tick_loop,
            daemon=True,
            name="MetricsTicker",
        )
        self._thread.start()
        log.info(
            "ticker started",
            extra={"event": "ticker.start", "extra_fields": {"interval_s": self._interval}},
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the ticker thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            log.info("ticker stopped", extra={"event": "ticker.stop"})

    def _tick_loop(self) -> None:
        """Main loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self._queue.put(self._simulator.tick())
            except Exception:
                # Keep ticking; a single bad step must not stop the dashboard
                log.exception("tick failed", extra={"event": "ticker.error"})

            # Wait for the interval or until stop is requested
            self._stop_event.wait(timeout=self._interval)
