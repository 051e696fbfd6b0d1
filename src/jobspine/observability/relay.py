"""Runtime output relay with quiet-mode filtering.

The external executor runtime writes its own chatter (registration,
heartbeats, transport warnings) as plain text. Instead of hijacking the
process's standard output, the executor hands the runtime one
``RuntimeOutputRelay`` at construction time. The relay splits what it is
given into lines, drops heartbeat acknowledgements in quiet mode, and
re-emits everything else through structlog so the runtime's output joins
the application's structured log stream.

    ┌──────────────┐  write(text)  ┌──────────────────┐  log.<level>(...)
    │   runtime    │ ─────────────►│ RuntimeOutputRelay│ ─────────────────► structlog
    └──────────────┘               └──────────────────┘
                                       │ quiet + heartbeat
                                       ▼
                                     dropped
"""

from __future__ import annotations

import threading

from jobspine.observability.logging import get_logger

logger = get_logger(__name__)

# Registration acknowledgement printed by the XXL-JOB runtime
REGISTRATION_OK_MARKER = "执行器注册成功"


def should_filter_heartbeat_log(line: str) -> bool:
    """True for heartbeat/registration acknowledgements."""
    if REGISTRATION_OK_MARKER in line:
        return True
    # Successful heartbeat response: {"code":200,"msg":null,...}
    if '"code":200' in line and '"msg":null' in line:
        return True
    return False


def infer_level(line: str) -> str:
    """Map a free-text runtime line to a log level."""
    lowered = line.lower()
    if "error" in lowered or "fatal" in lowered:
        return "error"
    if "warn" in lowered:
        return "warning"
    return "info"


class RuntimeOutputRelay:
    """File-like sink that relays runtime output into structured logs.

    Thread-safe: the runtime may write from several threads.
    """

    def __init__(self, quiet: bool = False, source: str = "runtime"):
        self.quiet = quiet
        self.source = source
        self._buffer = ""
        self._lock = threading.Lock()
        self._closed = False

    def write(self, text: str) -> int:
        """Accept raw runtime output; complete lines are relayed immediately."""
        with self._lock:
            if self._closed:
                return 0
            self._buffer += text
            *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._relay(line)
        return len(text)

    def flush(self) -> None:
        """Relay any buffered partial line."""
        with self._lock:
            pending, self._buffer = self._buffer, ""
        if pending:
            self._relay(pending)

    def close(self) -> None:
        self.flush()
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _relay(self, line: str) -> None:
        line = line.rstrip("\r")
        if not line.strip():
            return
        if self.quiet and should_filter_heartbeat_log(line):
            return
        getattr(logger, infer_level(line))("runtime.output", source=self.source, message=line)
