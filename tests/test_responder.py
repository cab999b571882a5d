"""Tests for the keyword-routed QueryResponder."""

import pytest

from ossim.responder import CATEGORIES, DEFAULT_RESPONSE, QueryResponder

from conftest import make_process, make_snapshot


@pytest.fixture
def responder() -> QueryResponder:
    return QueryResponder()


class TestCategoryTable:
    """Tests for the shape of the dispatch table."""

    def test_priority_order(self):
        """Test categories are tried in their fixed priority order."""
        assert [c.name for c in CATEGORIES] == [
            "cpu",
            "memory",
            "process",
            "disk",
            "network",
            "optimization",
            "scheduling",
            "deadlock",
            "filesystem",
        ]

    def test_only_first_three_categories_branch(self):
        """Test only cpu, memory and process split into status and theory."""
        branching = [c.name for c in CATEGORIES if any(b.keywords for b in c.branches)]
        assert branching == ["cpu", "memory", "process"]


class TestCpu:
    def test_current_usage_golden(self, responder):
        """Test a high-load cpu status reply carries usage, cores and clock."""
        snapshot = make_snapshot(cpu=72.3, cores=8, ghz=3.5)

        reply = responder.respond("What is my current CPU usage?", snapshot)

        assert "72.3%" in reply
        assert "8 logical processors" in reply
        assert "3.5 GHz" in reply
        assert "CPU usage is high" in reply

    def test_normal_usage_wording(self, responder):
        """Test 70% is still reported as normal."""
        reply = responder.respond("cpu usage", make_snapshot(cpu=70.0))
        assert "CPU usage is normal" in reply
        assert "70.0%" in reply

    def test_context_switches_in_status(self, responder):
        """Test the status reply quotes the context-switch estimate."""
        reply = responder.respond("current processor load", make_snapshot(cpu=50.0))
        assert "approximately 5000 times per second" in reply

    def test_theory(self, responder):
        """Test the theory reply uses the core count."""
        reply = responder.respond("Explain the CPU", make_snapshot(cores=4))
        assert "CPU & Process Management" in reply
        assert "With 4 cores, the OS can run 4 processes" in reply

    def test_usage_wins_over_theory(self, responder):
        """Test status keywords are checked before theory keywords."""
        assert responder.classify("explain current cpu usage") == ("cpu", "status")


class TestMemory:
    def test_status(self, responder):
        """Test the memory status reply lists used, available and total."""
        reply = responder.respond("Show memory usage", make_snapshot(used_gb=8.5, total_gb=16.0))

        assert "Used: 8.50 GB (53.1%)" in reply
        assert "Available: 7.50 GB" in reply
        assert "Total: 16 GB" in reply
        assert "Memory levels are healthy" in reply

    def test_pressure_wording(self, responder):
        """Test high memory use is reported as pressure."""
        reply = responder.respond("current ram", make_snapshot(used_gb=13.5))
        assert "Memory pressure detected" in reply

    def test_verdict_follows_displayed_percentage(self, responder):
        """Test 80.04% shows as 80.0% and is still reported healthy."""
        reply = responder.respond("memory usage", make_snapshot(used_gb=12.8064, total_gb=16.0))

        assert "(80.0%)" in reply
        assert "Memory levels are healthy" in reply

    def test_verdict_just_over_the_line(self, responder):
        """Test 80.06% shows as 80.1% and reports pressure."""
        reply = responder.respond("memory usage", make_snapshot(used_gb=12.8096, total_gb=16.0))

        assert "(80.1%)" in reply
        assert "Memory pressure detected" in reply

    def test_virtual_memory_theory(self, responder):
        """Test the virtual memory answer carries no live figures."""
        snapshot = make_snapshot(used_gb=9.25)

        reply = responder.respond("explain virtual memory", snapshot)

        assert "Virtual memory is a memory management technique" in reply
        assert "9.25" not in reply
        assert "GB" not in reply


class TestProcess:
    def test_top_processes(self, responder):
        """Test the top five processes are listed with pid, cpu and memory."""
        processes = [make_process(f"p{i}", pid=2000 + i, cpu=20.0 - i, mem=100.0 + i) for i in range(6)]
        snapshot = make_snapshot(processes=processes)

        reply = responder.respond("Which processes are using most resources?", snapshot)

        assert "Top Resource-Consuming Processes" in reply
        assert "1. p0" in reply
        assert "5. p4" in reply
        assert "p5" not in reply
        assert "PID: 2000 | CPU: 20.0% | Memory: 100 MB" in reply

    def test_theory_counts_processes(self, responder):
        """Test the process theory reply counts the current table."""
        snapshot = make_snapshot(processes=[make_process(pid=1000 + i) for i in range(8)])
        reply = responder.respond("what is a process?", snapshot)
        assert "managing 8+ active processes" in reply


class TestSingleTemplateCategories:
    def test_disk(self, responder):
        """Test the disk reply shows read, write and usage."""
        reply = responder.respond("How is my disk doing?", make_snapshot(read=75.25, write=50.0))

        assert "Read Speed: 75.2 MB/s" in reply or "Read Speed: 75.3 MB/s" in reply
        assert "Write Speed: 50.0 MB/s" in reply
        assert "Disk Usage: 45%" in reply

    def test_disk_total(self, responder):
        """Test total disk activity is read plus write."""
        reply = responder.respond("storage", make_snapshot(read=10.0, write=2.5))
        assert "Total Activity: 12.5 MB/s" in reply

    def test_network_uses_integers(self, responder):
        """Test network rates are rounded to whole KB/s."""
        reply = responder.respond("internet speed", make_snapshot(sent=123.4, received=400.2))

        assert "Upload: 123 KB/s" in reply
        assert "Download: 400 KB/s" in reply
        assert "Total: 524 KB/s" in reply

    def test_optimization_under_load(self, responder):
        """Test cpu and memory tips appear when both are busy."""
        reply = responder.respond("how can I improve performance", make_snapshot(cpu=75.0, used_gb=12.0))

        assert "• CPU:" in reply
        assert "• Memory:" in reply
        assert "• General:" in reply

    def test_optimization_when_idle(self, responder):
        """Test only the general tip appears on an idle machine."""
        reply = responder.respond("recommend something", make_snapshot(cpu=30.0, used_gb=8.0))

        assert "• CPU:" not in reply
        assert "• Memory:" not in reply
        assert "• General:" in reply

    def test_scheduling(self, responder):
        """Test the scheduling answer names the algorithms."""
        reply = responder.respond("scheduling algorithms", make_snapshot())
        assert "Round-Robin" in reply
        assert "Multilevel Queue" in reply

    def test_deadlock_lists_four_conditions(self, responder):
        """Test all four Coffman conditions are listed."""
        reply = responder.respond("tell me about deadlock", make_snapshot())

        for condition in ("Mutual Exclusion", "Hold and Wait", "No Preemption", "Circular Wait"):
            assert condition in reply

    def test_deadlock_ignores_snapshot(self, responder):
        """Test the deadlock answer is the same under any load."""
        busy = make_snapshot(cpu=90.0, used_gb=13.0)
        idle = make_snapshot(cpu=10.0, used_gb=3.0)
        assert responder.respond("deadlock", busy) == responder.respond("deadlock", idle)

    @pytest.mark.parametrize("query", ["what does a file system do", "filesystem basics"])
    def test_filesystem(self, responder, query):
        """Test both spellings reach the file system answer."""
        reply = responder.respond(query, make_snapshot())
        assert "File System Management" in reply


class TestFallThrough:
    """A category keyword without a branch keyword keeps looking."""

    def test_cpu_network_reaches_network(self, responder):
        """Test a cpu keyword without a branch falls through to network."""
        assert responder.classify("cpu network") == ("network", "status")
        assert "Network Activity" in responder.respond("cpu network", make_snapshot())

    def test_bare_cpu_reaches_default(self, responder):
        """Test a bare cpu keyword ends at the help text."""
        assert responder.classify("cpu") is None
        assert responder.respond("cpu", make_snapshot()) == DEFAULT_RESPONSE

    def test_processor_scheduling_reaches_scheduling(self, responder):
        """Test processor falls through cpu and process to scheduling."""
        # "processor" matches both cpu and process without a branch keyword
        assert responder.classify("processor scheduling") == ("scheduling", "theory")

    def test_memory_deadlock_reaches_deadlock(self, responder):
        """Test memory without a branch keyword falls through to deadlock."""
        assert responder.classify("memory deadlock") == ("deadlock", "theory")

    def test_keywords_match_inside_words(self, responder):
        """Test keywords match as substrings."""
        # "program" contains "ram"
        assert responder.classify("explain my program") == ("memory", "theory")


class TestDefault:
    def test_empty_string(self, responder):
        """Test empty input gets the help text."""
        assert responder.respond("", make_snapshot()) == DEFAULT_RESPONSE

    def test_empty_string_ignores_snapshot(self, responder):
        """Test the help text does not depend on load."""
        assert responder.respond("", make_snapshot(cpu=94.0)) == DEFAULT_RESPONSE

    def test_unrelated_query(self, responder):
        """Test text with no keyword gets the help text."""
        assert responder.respond("hello there", make_snapshot()) == DEFAULT_RESPONSE

    def test_default_lists_intents(self):
        """Test the help text suggests example questions."""
        assert "What is my CPU usage?" in DEFAULT_RESPONSE
        assert "Explain virtual memory" in DEFAULT_RESPONSE


def test_matching_is_case_insensitive(responder):
    """Test upper-case queries classify like lower-case ones."""
    assert responder.classify("CPU USAGE") == ("cpu", "status")


def test_respond_reports_live_values(responder):
    """Test replies use the snapshot they are given."""
    first = responder.respond("cpu usage", make_snapshot(cpu=20.0))
    second = responder.respond("cpu usage", make_snapshot(cpu=80.0))

    assert "20.0%" in first
    assert "80.0%" in second
