"""Per-session counters for git activity.

Counters always live in memory. The JSONL event log under
`<config dir>/metrics/` is only written when telemetry is enabled in the
settings; the session summary is appended when the window closes.
"""

import json
import threading
import time
import uuid
from contextlib import contextmanager, nullcontext
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class OperationStats:
    """Call count and timings of one named operation."""
    calls: int = 0
    failures: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    def add(self, duration_ms: float, success: bool):
        self.calls += 1
        if not success:
            self.failures += 1
        self.total_ms += duration_ms
        self.max_ms = max(self.max_ms, duration_ms)

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.calls if self.calls else 0.0


@dataclass
class SessionMetrics:
    session_id: str
    started_at: str
    ended_at: Optional[str] = None
    startup_ms: Optional[float] = None
    git_operations: int = 0
    git_commands: int = 0
    errors_count: int = 0
    operations: Dict[str, OperationStats] = field(default_factory=dict)


class MetricsCollector:
    """Counts git operations, git processes and handled errors."""

    def __init__(self, config_dir: Path, enable_telemetry: bool = False):
        self.metrics_dir = Path(config_dir) / "metrics"
        self.metrics_dir.mkdir(parents=True, exist_ok=True)
        self.events_file = self.metrics_dir / "events.jsonl"
        self.sessions_file = self.metrics_dir / "sessions.jsonl"

        self.enable_telemetry = enable_telemetry
        self.current_session = SessionMetrics(
            session_id=uuid.uuid4().hex,
            started_at=datetime.now().isoformat(timespec="seconds"),
        )
        self._lock = threading.Lock()
        logger.debug(f"Metrics session {self.current_session.session_id[:8]} started "
                     f"(telemetry {'on' if enable_telemetry else 'off'})")

    @property
    def operations(self) -> Dict[str, OperationStats]:
        return self.current_session.operations

    def _append(self, path: Path, record: Dict[str, Any]):
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, default=str) + "\n")
        except OSError as e:
            logger.warning(f"Could not write {path.name}: {e}")

    def _emit(self, kind: str, **data):
        if self.enable_telemetry:
            self._append(self.events_file, {
                "at": datetime.now().isoformat(timespec="milliseconds"),
                "session": self.current_session.session_id,
                "kind": kind,
                **data,
            })

    def _track(self, name: str, duration_ms: float, success: bool):
        with self._lock:
            self.operations.setdefault(name, OperationStats()).add(duration_ms, success)

    def record_startup(self, startup_ms: float):
        self.current_session.startup_ms = round(startup_ms, 1)
        self._emit("startup", duration_ms=startup_ms)

    def record_git_operation(self, operation: str, success: bool, duration_ms: float, error: Optional[str] = None):
        """One caller-facing operation such as commit, merge or clone."""
        self.current_session.git_operations += 1
        self._track(operation, duration_ms, success)
        self._emit("operation", operation=operation, success=success, duration_ms=duration_ms, error=error)

    def record_git_command(self, command: Sequence[str], success: bool, duration_ms: float):
        """One git process; only the subcommand is kept, never its arguments."""
        self.current_session.git_commands += 1
        self._emit("command", subcommand=command[0] if command else "", success=success, duration_ms=duration_ms)

    def record_error(self, error_type: str, message: str, context: Optional[Dict[str, Any]] = None):
        self.current_session.errors_count += 1
        self._emit("error", error_type=error_type, message=message, context=context or {})

    @contextmanager
    def time_operation(self, name: str):
        """Track the duration of the block under `name`; exceptions count as failures."""
        start = time.perf_counter()
        success = False
        try:
            yield
            success = True
        finally:
            self._track(name, (time.perf_counter() - start) * 1000, success)

    def summary(self) -> Dict[str, Any]:
        return asdict(self.current_session)

    def finalize_session(self):
        """Close the session and append its summary to sessions.jsonl."""
        session = self.current_session
        session.ended_at = datetime.now().isoformat(timespec="seconds")
        self._append(self.sessions_file, self.summary())
        logger.info(f"Session {session.session_id[:8]}: {session.git_operations} git operations, "
                    f"{session.git_commands} git commands, {session.errors_count} errors")


_metrics_collector: Optional[MetricsCollector] = None


def initialize_metrics(config_dir: Path, enable_telemetry: bool = False) -> MetricsCollector:
    global _metrics_collector
    _metrics_collector = MetricsCollector(config_dir, enable_telemetry)
    return _metrics_collector


def get_metrics_collector() -> Optional[MetricsCollector]:
    return _metrics_collector


def reset_metrics():
    global _metrics_collector
    _metrics_collector = None


def finalize_metrics():
    if _metrics_collector:
        _metrics_collector.finalize_session()


def record_startup_time(startup_ms: float):
    if _metrics_collector:
        _metrics_collector.record_startup(startup_ms)


def record_git_operation(operation: str, success: bool, duration_ms: float, error: Optional[str] = None):
    if _metrics_collector:
        _metrics_collector.record_git_operation(operation, success, duration_ms, error)


def record_git_command(command: Sequence[str], success: bool, duration_ms: float):
    if _metrics_collector:
        _metrics_collector.record_git_command(command, success, duration_ms)


def record_error(error_type: str, message: str, context: Optional[Dict[str, Any]] = None):
    if _metrics_collector:
        _metrics_collector.record_error(error_type, message, context)


def time_operation(name: str):
    if _metrics_collector:
        return _metrics_collector.time_operation(name)
    return nullcontext()
