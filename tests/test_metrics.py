"""Tests for metrics collection."""

import json
from contextlib import nullcontext
from pathlib import Path

import pytest

from metrics import (
    MetricsCollector,
    OperationStats,
    finalize_metrics,
    get_metrics_collector,
    initialize_metrics,
    record_git_command,
    record_git_operation,
    record_startup_time,
    time_operation,
)


@pytest.fixture
def collector(tmp_path: Path) -> MetricsCollector:
    return MetricsCollector(tmp_path, enable_telemetry=False)


def read_jsonl(path: Path) -> list:
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestOperationStats:
    """Test cases for OperationStats."""

    def test_add(self):
        stats = OperationStats()
        stats.add(10.0, True)
        stats.add(30.0, False)

        assert stats.calls == 2
        assert stats.failures == 1
        assert stats.mean_ms == 20.0
        assert stats.max_ms == 30.0

    def test_mean_without_calls(self):
        assert OperationStats().mean_ms == 0.0


class TestCollector:
    """Test cases for MetricsCollector."""

    def test_counts(self, collector):
        """Operations, commands and errors are counted separately."""
        collector.record_git_operation("commit", True, 12.0)
        collector.record_git_command(["status", "--porcelain"], True, 3.0)
        collector.record_git_command(["add", "x"], False, 4.0)
        collector.record_error("git_command.GitCommandError", "boom")

        session = collector.current_session
        assert session.git_operations == 1
        assert session.git_commands == 2
        assert session.errors_count == 1
        assert collector.operations["commit"].calls == 1

    def test_no_events_without_telemetry(self, collector):
        collector.record_git_operation("merge", False, 5.0, "conflict")
        assert not collector.events_file.exists()

    def test_events_with_telemetry(self, tmp_path: Path):
        """Only the subcommand of a git process is logged, never its arguments."""
        collector = MetricsCollector(tmp_path, enable_telemetry=True)
        collector.record_git_command(["clone", "https://user@example.com/r.git"], True, 1.5)

        event = read_jsonl(collector.events_file)[-1]
        assert event["kind"] == "command"
        assert event["subcommand"] == "clone"
        assert "example.com" not in collector.events_file.read_text()

    def test_time_operation_records_failure(self, collector):
        """Exceptions propagate and are counted as failures."""
        with pytest.raises(RuntimeError):
            with collector.time_operation("list_directory"):
                raise RuntimeError("disk gone")

        stats = collector.operations["list_directory"]
        assert stats.calls == 1
        assert stats.failures == 1

    def test_finalize_session(self, collector):
        """The summary is appended even with telemetry off."""
        collector.record_startup(120.0)
        collector.record_git_operation("commit", True, 1.0)
        collector.finalize_session()
        collector.finalize_session()

        sessions = read_jsonl(collector.sessions_file)
        assert len(sessions) == 2
        assert sessions[-1]["git_operations"] == 1
        assert sessions[-1]["startup_ms"] == 120.0
        assert sessions[-1]["operations"]["commit"]["calls"] == 1
        assert collector.current_session.ended_at is not None


class TestGlobalHelpers:
    """Module-level helpers route to the global collector."""

    def test_helpers_without_collector(self):
        """Nothing is recorded before initialization."""
        assert get_metrics_collector() is None
        record_git_operation("commit", True, 1.0)
        record_git_command(["status"], True, 1.0)
        record_startup_time(1.0)
        finalize_metrics()
        assert isinstance(time_operation("noop"), nullcontext)

    def test_helpers_with_collector(self, tmp_path: Path):
        collector = initialize_metrics(tmp_path)

        record_git_operation("commit", True, 1.0)
        record_git_command(["status"], True, 1.0)
        with time_operation("list_directory"):
            pass

        assert collector.current_session.git_operations == 1
        assert collector.current_session.git_commands == 1
        assert collector.operations["list_directory"].failures == 0
