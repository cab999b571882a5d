"""Keyword-routed OS theory responder for ossim."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ossim.models import MetricsSnapshot
from ossim.simulator import context_switches_for

log = logging.getLogger(__name__)

Template = Callable[[MetricsSnapshot], str]

TOP_PROCESS_COUNT = 5

DEFAULT_RESPONSE = (
    "I can help you with:\n"
    "\n"
    '• Current Status: "What is my CPU usage?", "Show memory usage"\n'
    '• Process Info: "Which processes are using most resources?"\n'
    '• OS Concepts: "Explain virtual memory", "What is process scheduling?"\n'
    '• Optimization: "How can I improve performance?"\n'
    "\n"
    "Try asking about CPU, memory, processes, disk I/O, networking, or OS theory concepts!"
)


def _num(value: float) -> str:
    """Render a fixed config number without a trailing .0 (16.0 -> 16, 3.5 -> 3.5)."""
    return f"{value:g}"


def cpu_status(s: MetricsSnapshot) -> str:
    usage = s.cpu.usage_percent
    verdict = "⚠️ CPU usage is high." if usage > 70 else "✅ CPU usage is normal."
    return (
        "🔍 Current CPU Status:\n"
        "\n"
        f"• Usage: {usage:.1f}%\n"
        f"• Cores: {s.cpu.core_count} logical processors\n"
        f"• Frequency: {_num(s.cpu.frequency_ghz)} GHz\n"
        "\n"
        f"{verdict}\n"
        "\n"
        "OS Theory: The CPU scheduler uses algorithms like Round-Robin and Priority "
        "Scheduling to allocate processor time to processes. Context switches occur "
        f"approximately {context_switches_for(usage)} times per second at this load level."
    )


def cpu_theory(s: MetricsSnapshot) -> str:
    cores = s.cpu.core_count
    return (
        "📚 CPU & Process Management:\n"
        "\n"
        "The CPU is managed by the OS kernel's scheduler, which:\n"
        "• Allocates time slices to processes (time-sharing)\n"
        "• Handles context switching between processes\n"
        "• Manages process states (Ready, Running, Waiting, Terminated)\n"
        "• Uses scheduling algorithms (FCFS, SJF, Round-Robin, Priority)\n"
        "\n"
        f"Your System: With {cores} cores, the OS can run {cores} processes truly "
        "simultaneously using parallel processing."
    )


def memory_status(s: MetricsSnapshot) -> str:
    mem = s.memory
    percent = mem.usage_percent
    # Compare the one-decimal figure shown in the reply
    shown = float(f"{percent:.1f}")
    verdict = "⚠️ Memory pressure detected!" if shown > 80 else "✅ Memory levels are healthy."
    return (
        "💾 Memory Status:\n"
        "\n"
        f"• Used: {mem.used_gb:.2f} GB ({percent:.1f}%)\n"
        f"• Available: {mem.available_gb:.2f} GB\n"
        f"• Total: {_num(mem.total_gb)} GB\n"
        "\n"
        f"{verdict}\n"
        "\n"
        "OS Theory: The OS uses virtual memory management with paging. Your system likely "
        "uses a page size of 4KB, and the Memory Management Unit (MMU) handles address "
        "translation from virtual to physical addresses."
    )


def memory_theory(s: MetricsSnapshot) -> str:
    return (
        "📚 Virtual Memory Management:\n"
        "\n"
        "Virtual memory is a memory management technique where:\n"
        "• Each process has its own virtual address space\n"
        "• The OS maps virtual addresses to physical RAM\n"
        "• Pages can be swapped to disk when RAM is full\n"
        "• Provides memory isolation between processes\n"
        "\n"
        "Benefits:\n"
        "• Programs can use more memory than physically available\n"
        "• Security through process isolation\n"
        "• Efficient memory utilization through demand paging"
    )


def process_top(s: MetricsSnapshot) -> str:
    lines = ["🔝 Top Resource-Consuming Processes:", ""]
    for i, proc in enumerate(s.processes[:TOP_PROCESS_COUNT], start=1):
        lines.append(f"{i}. {proc.name}")
        lines.append(
            f"   PID: {proc.pid} | CPU: {proc.cpu_percent:.1f}% | Memory: {proc.memory_mb:.0f} MB"
        )
    lines.append("")
    lines.append(
        "OS Theory: Each process has a Process Control Block (PCB) containing its state, "
        "program counter, CPU registers, memory allocation, and I/O status. The OS maintains "
        "these in a process table."
    )
    return "\n".join(lines)


def process_theory(s: MetricsSnapshot) -> str:
    return (
        "📚 Process Management:\n"
        "\n"
        "A process is a program in execution. The OS manages processes through:\n"
        "• Process Creation: fork() and exec() system calls\n"
        "• Process Scheduling: Deciding which process runs when\n"
        "• Inter-Process Communication (IPC): Pipes, message queues, shared memory\n"
        "• Process Synchronization: Semaphores, mutexes, monitors\n"
        "\n"
        f"Currently, your system is managing {len(s.processes)}+ active processes."
    )


def disk_status(s: MetricsSnapshot) -> str:
    disk = s.disk
    return (
        "💿 Disk I/O Status:\n"
        "\n"
        f"• Read Speed: {disk.read_mbps:.1f} MB/s\n"
        f"• Write Speed: {disk.write_mbps:.1f} MB/s\n"
        f"• Total Activity: {disk.total_mbps:.1f} MB/s\n"
        f"• Disk Usage: {_num(disk.usage_percent)}%\n"
        "\n"
        "OS Theory: The I/O subsystem uses buffering, caching, and scheduling algorithms "
        "(like SCAN or C-LOOK) to optimize disk operations. Device drivers abstract hardware "
        "details, and the file system manages data organization on disk."
    )


def network_status(s: MetricsSnapshot) -> str:
    net = s.network
    return (
        "🌐 Network Activity:\n"
        "\n"
        f"• Upload: {net.sent_kbps:.0f} KB/s\n"
        f"• Download: {net.received_kbps:.0f} KB/s\n"
        f"• Total: {net.total_kbps:.0f} KB/s\n"
        "\n"
        "OS Theory: The OS network stack implements the TCP/IP protocol suite, handling "
        "packet routing, socket management, and network device drivers. System calls like "
        "socket(), bind(), listen(), and accept() enable network communication."
    )


def optimization_advice(s: MetricsSnapshot) -> str:
    lines = ["💡 Optimization Recommendations:", ""]
    if s.cpu.usage_percent > 70:
        lines.append(
            "• CPU: High usage detected. Close unnecessary applications or consider "
            "upgrading to a faster processor."
        )
    if s.memory.used_gb / s.memory.total_gb > 0.7:
        lines.append(
            "• Memory: Consider closing browser tabs or adding more RAM. Enable virtual "
            "memory if not already active."
        )
    lines.append(
        "• General: Keep only essential startup programs, update drivers regularly, "
        "and run disk cleanup."
    )
    lines.append("")
    lines.append(
        "OS Theory: Modern operating systems use dynamic priority adjustment and load "
        "balancing to optimize performance automatically."
    )
    return "\n".join(lines)


def scheduling_theory(s: MetricsSnapshot) -> str:
    return (
        "📚 CPU Scheduling Algorithms:\n"
        "\n"
        "• FCFS (First-Come-First-Serve): Simple but can cause convoy effect\n"
        "• SJF (Shortest Job First): Optimal average waiting time\n"
        "• Round-Robin: Fair time-sharing with time quantum\n"
        "• Priority Scheduling: Based on process priority\n"
        "• Multilevel Queue: Different queues for different process types\n"
        "\n"
        "Most modern OS use a combination of these algorithms for optimal performance."
    )


def deadlock_theory(s: MetricsSnapshot) -> str:
    return (
        "📚 Deadlock in OS:\n"
        "\n"
        "Deadlock occurs when processes wait indefinitely. Four conditions must hold:\n"
        "• Mutual Exclusion: Resources cannot be shared\n"
        "• Hold and Wait: Process holding resources requests more\n"
        "• No Preemption: Resources cannot be forcibly taken\n"
        "• Circular Wait: Circular chain of processes waiting\n"
        "\n"
        "Prevention: Break any one of these conditions\n"
        "Detection: Use resource allocation graphs\n"
        "Recovery: Process termination or resource preemption"
    )


def filesystem_theory(s: MetricsSnapshot) -> str:
    return (
        "📚 File System Management:\n"
        "\n"
        "File systems organize data on storage devices:\n"
        "• Structure: Directories (folders) and files\n"
        "• Allocation Methods: Contiguous, Linked, Indexed\n"
        "• Common Types: NTFS (Windows), ext4 (Linux), APFS (macOS)\n"
        "• Operations: Create, Read, Write, Delete, Seek\n"
        "\n"
        "The file system maintains metadata (permissions, timestamps, size) and uses "
        "caching to improve performance."
    )


@dataclass(slots=True, frozen=True)
class Branch:
    """Secondary keyword test inside a category; no keywords means always."""

    name: str
    keywords: tuple[str, ...]
    template: Template

    def matches(self, text: str) -> bool:
        return not self.keywords or any(k in text for k in self.keywords)


@dataclass(slots=True, frozen=True)
class Category:
    """
    A query class selected by its keywords.

    Branches are tried in order. If the category keywords match but no branch
    does, the category yields nothing and the next category is tried.
    """

    name: str
    keywords: tuple[str, ...]
    branches: tuple[Branch, ...]

    def matches(self, text: str) -> bool:
        return any(k in text for k in self.keywords)

    def select(self, text: str) -> Branch | None:
        if not self.matches(text):
            return None
        for branch in self.branches:
            if branch.matches(text):
                return branch
        return None


def _always(name: str, template: Template) -> tuple[Branch, ...]:
    return (Branch(name, (), template),)


# Priority order matters: the first category with a matching branch answers.
CATEGORIES: tuple[Category, ...] = (
    Category(
        "cpu",
        ("cpu", "processor"),
        (
            Branch("status", ("usage", "current"), cpu_status),
            Branch("theory", ("explain", "what is"), cpu_theory),
        ),
    ),
    Category(
        "memory",
        ("memory", "ram"),
        (
            Branch("status", ("usage", "current", "show"), memory_status),
            Branch("theory", ("virtual", "explain"), memory_theory),
        ),
    ),
    Category(
        "process",
        ("process", "application", "top"),
        (
            Branch("top", ("using", "consuming", "most"), process_top),
            Branch("theory", ("explain", "what is"), process_theory),
        ),
    ),
    Category("disk", ("disk", "i/o", "storage"), _always("status", disk_status)),
    Category("network", ("network", "internet"), _always("status", network_status)),
    Category(
        "optimization",
        ("optimize", "improve", "recommend"),
        _always("advice", optimization_advice),
    ),
    Category("scheduling", ("schedul", "algorithm"), _always("theory", scheduling_theory)),
    Category("deadlock", ("deadlock",), _always("theory", deadlock_theory)),
    Category(
        "filesystem",
        ("file system", "filesystem"),
        _always("theory", filesystem_theory),
    ),
)


class QueryResponder:
    """Answers OS questions from an ordered keyword table and a live snapshot."""

    def __init__(self, categories: tuple[Category, ...] = CATEGORIES) -> None:
        self._categories = categories

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    def classify(self, query_text: str) -> tuple[str, str] | None:
        """Return (category, branch) names for the query, or None for the help text."""
        text = query_text.lower()
        for category in self._categories:
            branch = category.select(text)
            if branch is not None:
                return category.name, branch.name
        return None

    def respond(self, query_text: str, snapshot: MetricsSnapshot) -> str:
        """Build the reply for a query. Never raises for any string input."""
        text = query_text.lower()
        for category in self._categories:
            branch = category.select(text)
            if branch is not None:
                log.debug(
                    "query matched",
                    extra={"event": "chat.query", "extra_fields": {
                        "category": category.name,
                        "branch": branch.name,
                    }},
                )
                return branch.template(snapshot)

        log.debug("query unmatched", extra={"event": "chat.query", "extra_fields": {
            "category": "default",
        }})
        return DEFAULT_RESPONSE
