"""
Explicit application context shared by the daemon and its collaborators
"""

import logging
from dataclasses import dataclass, field

from .metrics import MetricsRegistry


@dataclass
class AppContext:
    """Logger and meters, constructed once at startup and passed down"""
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("dyndnsd"))
    metrics: MetricsRegistry = field(default_factory=MetricsRegistry)

    def get_logger(self, component: str) -> logging.Logger:
        """Child logger for a component, e.g. 'daemon' -> dyndnsd.daemon"""
        return self.logger.getChild(component)

    def mark(self, meter: str, n: int = 1) -> None:
        self.metrics.meter(meter).mark(n)
