"""
Request and update meters with an optional Prometheus textfile export
"""

import os
import re
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .logging_config import get_logger

logger = get_logger(__name__)

# Meters marked by the daemon
AUTH_FAILED = "requests.auth_failed"
REQUESTS_VALID = "requests.valid"
REQUESTS_GOOD = "requests.good"
REQUESTS_NOCHG = "requests.nochg"
UPDATES_COMMITTED = "updates.committed"
UPDATES_PERSISTENCE_FAILED = "updates.persistence_failed"
UPDATES_PROPAGATION_FAILED = "updates.propagation_failed"


@dataclass
class Meter:
    """Counts events and reports their mean rate since creation"""
    name: str
    count: int = 0
    started_at: float = field(default_factory=time.monotonic)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self.count += n

    @property
    def mean_rate(self) -> float:
        """Events per second since the meter was created"""
        elapsed = time.monotonic() - self.started_at
        if elapsed <= 0:
            return 0.0
        return self.count / elapsed


class MetricsRegistry:
    """Named meters, created on first use"""

    def __init__(self):
        self._meters: Dict[str, Meter] = {}
        self._lock = threading.Lock()

    def meter(self, name: str) -> Meter:
        with self._lock:
            if name not in self._meters:
                self._meters[name] = Meter(name=name)
            return self._meters[name]

    def snapshot(self) -> Dict[str, int]:
        """Current counts keyed by meter name"""
        with self._lock:
            return {name: m.count for name, m in sorted(self._meters.items())}

    def meters(self) -> List[Meter]:
        with self._lock:
            return [self._meters[name] for name in sorted(self._meters)]


def _metric_name(prefix: str, name: str) -> str:
    full = f"{prefix}_{name}" if prefix else name
    return re.sub(r"[^a-zA-Z0-9_:]", "_", full)


class TextfileReporter:
    """Periodically writes all meters to a file in Prometheus text format"""

    def __init__(self, registry: MetricsRegistry, file: str, prefix: str = "", interval: int = 60):
        self.registry = registry
        self.file = Path(file)
        self.prefix = prefix
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def render(self) -> str:
        lines = []
        for meter in self.registry.meters():
            name = _metric_name(self.prefix, meter.name)
            lines.append(f"# TYPE {name}_total counter")
            lines.append(f"{name}_total {meter.count}")
            lines.append(f"# TYPE {name}_mean_rate gauge")
            lines.append(f"{name}_mean_rate {meter.mean_rate:.6f}")
        return "\n".join(lines) + "\n"

    def write(self) -> None:
        """Atomically replace the textfile with the current meter values"""
        self.file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.file.parent), prefix=".metrics-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self.render())
            os.replace(tmp_path, self.file)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.write()
            except OSError as e:
                logger.error(f"Failed to write metrics textfile {self.file}: {e}")

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="metrics-textfile", daemon=True)
        self._thread.start()
        logger.info(f"Writing metrics to {self.file} every {self.interval}s")

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout=5)
        self._thread = None
