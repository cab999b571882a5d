"""ossim - Main Textual application."""

import argparse
import logging
import random
from functools import partial
from queue import Empty, Queue

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.widgets import DataTable, Footer, Input, Static

from ossim.chat import ChatMessage, ChatSession, format_time
from ossim.config import MonitorConfig
from ossim.exceptions import ProcessNotFoundError
from ossim.log import setup_logging
from ossim.models import AlertEvent, MetricsSnapshot, ProcessInfo
from ossim.responder import DEFAULT_RESPONSE, QueryResponder
from ossim.simulator import MetricsSimulator, MetricsTicker, RandomSource, alerts_for, context_switches_for

log = logging.getLogger(__name__)

DISK_FULL_SCALE_MBPS = 200
NETWORK_FULL_SCALE_KBPS = 1000
BAR_WIDTH = 20

LEVEL_COLORS = {"normal": "green", "warning": "yellow", "danger": "red"}

QUICK_MESSAGES = (
    "What is my CPU usage?",
    "Show memory usage",
    "Which processes are using most resources?",
    "Explain virtual memory",
    "How can I improve performance?",
)


def progress_level(value: float, config: MonitorConfig) -> str:
    """Colour level for a percentage bar: 'danger', 'warning' or 'normal'."""
    if value > config.danger_threshold:
        return "danger"
    if value > config.warning_threshold:
        return "warning"
    return "normal"


def scale_percent(value: float, full_scale: float) -> float:
    """Map a rate onto a 0-100 bar, saturating at `full_scale`."""
    return min(100.0, (value / full_scale) * 100)


def render_bar(percent: float, color: str) -> str:
    """Fixed-width bar with Rich markup; brackets escaped for Static."""
    bar_len = min(int(percent / (100 / BAR_WIDTH)), BAR_WIDTH)
    filled = f"[{color}]█[/{color}]" * bar_len
    return f"\\[{filled}{'[dim]░[/dim]' * (BAR_WIDTH - bar_len)}]"


class HeaderStats(Static):
    """Header widget showing CPU, memory, disk and network gauges."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, config: MonitorConfig, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._config = config
        self._snapshot: MetricsSnapshot | None = None
        self._context_switches: int = 0

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_cpu_mem_info(), id="cpu-info"),
            Static(self._get_io_info(), id="io-info"),
        )

    def update_stats(self, snapshot: MetricsSnapshot, context_switches: int) -> None:
        """Update the gauges from a metrics snapshot."""
        self._snapshot = snapshot
        self._context_switches = context_switches
        self._refresh_display()

    def _refresh_display(self) -> None:
        """Refresh the display with current data."""
        try:
            self.query_one("#cpu-info", Static).update(self._get_cpu_mem_info())
            self.query_one("#io-info", Static).update(self._get_io_info())
        except Exception:
            pass  # Widget not mounted yet

    def _gauge(self, percent: float) -> str:
        return render_bar(percent, LEVEL_COLORS[progress_level(percent, self._config)])

    def _get_cpu_mem_info(self) -> str:
        """Get CPU and memory display."""
        snap = self._snapshot
        if snap is None:
            return "Loading CPU info..."

        cpu = snap.cpu
        mem = snap.memory
        return (
            f"CPU  {self._gauge(cpu.usage_percent)} {cpu.usage_percent:5.1f}%\n"
            f"     {cpu.core_count} cores @ {cpu.frequency_ghz:g} GHz, "
            f"~{self._context_switches} ctx switches/s\n"
            f"Mem  {self._gauge(mem.usage_percent)} {mem.usage_percent:5.1f}%\n"
            f"     {mem.used_gb:.1f} GB used of {mem.total_gb:g} GB"
        )

    def _get_io_info(self) -> str:
        """Get disk and network display."""
        snap = self._snapshot
        if snap is None:
            return "Loading I/O info..."

        disk_total = snap.disk.total_mbps
        net_total = snap.network.total_kbps
        return (
            f"Disk {render_bar(scale_percent(disk_total, DISK_FULL_SCALE_MBPS), 'cyan')} "
            f"{disk_total:.1f} MB/s\n"
            f"     {snap.disk.usage_percent:g}% of {self._config.disk_size_gb:g} GB used\n"
            f"Net  {render_bar(scale_percent(net_total, NETWORK_FULL_SCALE_KBPS), 'magenta')} "
            f"{net_total:.0f} KB/s\n"
            f"     up {snap.network.sent_kbps:.0f} / down {snap.network.received_kbps:.0f} KB/s"
        )


class AlertBanner(Static):
    """Banner listing the alerts raised for the latest snapshot."""

    DEFAULT_CSS = """
    AlertBanner {
        height: auto;
        background: $error 30%;
        color: $text;
        padding: 0 1;
    }

    AlertBanner.-empty {
        display: none;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._alerts: list[AlertEvent] = []
        self.add_class("-empty")

    @property
    def alerts(self) -> list[AlertEvent]:
        return self._alerts

    def update_alerts(self, alerts: list[AlertEvent]) -> None:
        self._alerts = list(alerts)
        self.set_class(not self._alerts, "-empty")
        self.update(Text("\n".join(alert.message for alert in self._alerts)))


class ProcessTable(Container):
    """Container for the simulated process table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("Process", key="name", width=14)
        table.add_column("PID", key="pid", width=6)
        table.add_column("CPU%", key="cpu", width=7)
        table.add_column("Memory", key="mem", width=9)
        table.add_column("Load", key="load", width=7)
        table.add_column("State", key="state")

    def update_processes(self, processes: tuple[ProcessInfo, ...]) -> None:
        """
        Replace the table contents with a new process table.

        Pids are redrawn on every tick and may repeat within one table, so
        rows are rebuilt and keyed by position. Input order (highest CPU
        first) is kept.
        """
        table = self.query_one("#process-table", DataTable)
        table.clear()
        for index, proc in enumerate(processes):
            table.add_row(
                proc.name,
                str(proc.pid),
                f"{proc.cpu_percent:5.1f}",
                f"{proc.memory_mb:.0f} MB",
                proc.load_tag.value,
                proc.run_state.value,
                key=str(index),
            )


class ChatBubble(Static):
    """One message in the chat log."""

    DEFAULT_CSS = """
    ChatBubble {
        height: auto;
        margin: 0 0 1 0;
        padding: 0 1;
        background: $panel;
    }

    ChatBubble.user {
        background: $primary 30%;
    }
    """

    def __init__(self, message: ChatMessage, *args, **kwargs) -> None:
        header = Text(f"{message.author} · {message.timestamp}\n", style="bold")
        super().__init__(header + Text(message.content), *args, **kwargs)
        self.message = message
        if message.is_user:
            self.add_class("user")


class ChatPanel(Container):
    """Chat log, typing indicator and input box."""

    DEFAULT_CSS = """
    ChatPanel {
        width: 1fr;
        border: solid $accent;
    }

    #chat-log {
        height: 1fr;
    }

    #typing-indicator {
        height: 1;
        color: $text-muted;
    }

    #typing-indicator.-idle {
        display: none;
    }
    """

    def __init__(self, greeting: ChatMessage | None = None, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._greeting = greeting

    def compose(self) -> ComposeResult:
        """Compose the chat panel, seeded with the greeting if there is one."""
        greeting = [ChatBubble(self._greeting)] if self._greeting is not None else []
        yield VerticalScroll(*greeting, id="chat-log")
        yield Static("AI is typing...", id="typing-indicator", classes="-idle")
        yield Input(placeholder="Ask about CPU, memory, processes, OS theory...", id="chat-input")

    def add_message(self, message: ChatMessage) -> None:
        chat_log = self.query_one("#chat-log", VerticalScroll)
        chat_log.mount(ChatBubble(message))
        chat_log.scroll_end(animate=False)

    def set_typing(self, typing: bool) -> None:
        self.query_one("#typing-indicator", Static).set_class(not typing, "-idle")

    def clear(self) -> None:
        self.query_one("#chat-log", VerticalScroll).remove_children()


class OssimApp(App):
    """Main ossim application."""

    TITLE = "ossim"
    SUB_TITLE = "OS Theory System Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 6;
    }

    #body {
        height: 1fr;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #io-info {
        width: 1fr;
        padding-left: 2;
    }

    ProcessTable {
        width: 3fr;
    }

    ChatPanel {
        width: 2fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("ctrl+l", "clear_chat", "Clear chat", priority=True),
        Binding("f1", "quick_message(0)", "CPU", priority=True),
        Binding("f2", "quick_message(1)", "Memory", priority=True),
        Binding("f3", "quick_message(2)", "Processes", priority=True),
        Binding("f4", "quick_message(3)", "Virtual memory", priority=True),
        Binding("f5", "quick_message(4)", "Tips", priority=True),
    ]

    def __init__(
        self,
        config: MonitorConfig | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        """Initialize the OssimApp."""
        super().__init__()
        self._config = config if config is not None else MonitorConfig()
        self._simulator = MetricsSimulator(self._config, rng)
        self._update_queue: Queue[MetricsSnapshot] = Queue()
        self._ticker = MetricsTicker(self._simulator, self._update_queue)
        self._chat = ChatSession(self._simulator, QueryResponder(), rng=random.Random())

    @property
    def simulator(self) -> MetricsSimulator:
        return self._simulator

    @property
    def chat(self) -> ChatSession:
        return self._chat

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(self._config, id="header-stats")
        yield AlertBanner(id="alert-banner")
        greeting = ChatMessage(DEFAULT_RESPONSE, is_user=False, timestamp=format_time(self._chat.now()))
        yield Horizontal(ProcessTable(), ChatPanel(greeting, id="chat-panel"), id="body")
        yield Footer()

    def on_mount(self) -> None:
        """Start the ticker when the app is mounted."""
        self.call_after_refresh(self._show_initial_state)
        self._ticker.start()
        # Set up a timer to poll the queue for updates
        self.set_interval(0.5, self._check_for_updates)
        log.info(
            "ossim started",
            extra={"event": "app.start", "extra_fields": {
                "interval_ms": self._config.update_interval_ms,
            }},
        )

    def on_unmount(self) -> None:
        self._ticker.stop()

    def _show_initial_state(self) -> None:
        """Render the seeded snapshot unless the app is already shutting down."""
        if not self.is_running:
            return
        self._update_ui(self._simulator.get_snapshot())

    def _check_for_updates(self) -> None:
        """Check the queue for new snapshots and refresh the UI."""
        try:
            # Drain the queue; only the latest snapshot matters
            snapshot = None
            while True:
                try:
                    snapshot = self._update_queue.get_nowait()
                except Empty:
                    break

            if snapshot is not None:
                self._update_ui(snapshot)
        except Exception:
            log.exception("ui refresh failed", extra={"event": "app.refresh_error"})

    def _update_ui(self, snapshot: MetricsSnapshot) -> None:
        """Update the dashboard with a new snapshot."""
        try:
            header = self.query_one("#header-stats", HeaderStats)
            header.update_stats(snapshot, context_switches_for(snapshot.cpu.usage_percent))
            self.query_one(AlertBanner).update_alerts(alerts_for(snapshot, self._config))
            self.query_one(ProcessTable).update_processes(snapshot.processes)
        except Exception:
            log.exception("dashboard update failed", extra={"event": "app.refresh_error"})

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Send a chat message and schedule the delayed reply."""
        event.input.value = ""
        self._send(event.value)

    def action_quick_message(self, index: int) -> None:
        """Send one of the canned quick-action questions."""
        self._send(QUICK_MESSAGES[index])

    def _send(self, text: str) -> None:
        pending = self._chat.submit(text)
        if pending is None:
            return

        panel = self.query_one(ChatPanel)
        panel.add_message(pending.user_message)
        panel.set_typing(True)
        self.set_timer(pending.delay, partial(self._deliver_reply, pending.seq))

    def _deliver_reply(self, seq: int) -> None:
        panel = self.query_one(ChatPanel)
        for message in self._chat.complete(seq):
            panel.add_message(message)
        panel.set_typing(self._chat.pending_count > 0)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Show details for the selected process, if it still exists."""
        pid = int(event.data_table.get_row(event.row_key)[1])
        try:
            proc = self._simulator.lookup_process(pid)
        except ProcessNotFoundError:
            self.notify(f"Process {pid} is no longer present", severity="warning")
            return
        self.notify(
            f"{proc.name} (PID {proc.pid}): {proc.cpu_percent:.1f}% CPU, "
            f"{proc.memory_mb:.0f} MB, {proc.run_state.value}"
        )

    def action_clear_chat(self) -> None:
        """Clear the chat log."""
        self._chat.clear()
        self.query_one(ChatPanel).clear()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._ticker.stop()
        self.exit()

    def system_info(self) -> dict:
        """Report which components are active plus the current metrics."""
        mounted = self.is_running
        return {
            "monitor": "Active" if self._ticker.is_running else "Inactive",
            "dashboard": "Active" if mounted else "Inactive",
            "chat": "Active" if mounted else "Inactive",
            "metrics": self._simulator.get_snapshot(),
        }


def run_headless(config: MonitorConfig, ticks: int, rng: RandomSource | None = None) -> MetricsSimulator:
    """Advance the simulator `ticks` times, logging each snapshot and its alerts."""
    simulator = MetricsSimulator(config, rng)
    for tick in range(1, ticks + 1):
        simulator.tick()
        snap = simulator.get_snapshot()
        log.info(
            "snapshot",
            extra={"event": "sim.snapshot", "extra_fields": {
                "tick": tick,
                "cpu_percent": round(snap.cpu.usage_percent, 1),
                "memory_used_gb": round(snap.memory.used_gb, 2),
                "memory_available_gb": round(snap.memory.available_gb, 2),
                "disk_mbps": round(snap.disk.total_mbps, 1),
                "network_kbps": round(snap.network.total_kbps),
                "top_process": snap.processes[0].name if snap.processes else None,
            }},
        )
        simulator.evaluate_alerts()
    return simulator


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ossim", description="OS theory system monitor simulator")
    parser.add_argument("--headless", action="store_true", help="log snapshots instead of running the TUI")
    parser.add_argument("--ticks", type=int, default=5, help="ticks to run in headless mode")
    parser.add_argument("--seed", type=int, default=None, help="seed for reproducible runs")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ossim application."""
    args = parse_args(argv)
    config = MonitorConfig()
    rng = random.Random(args.seed) if args.seed is not None else None

    if args.headless:
        setup_logging(args.log_level)
        run_headless(config, args.ticks, rng)
        return

    setup_logging(args.log_level, textual=True)
    app = OssimApp(config, rng)
    app.run()


if __name__ == "__main__":
    main()
