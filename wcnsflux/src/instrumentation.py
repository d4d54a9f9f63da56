"""
Timing and event-count hooks passed into the reconstructor.

The reconstructor never keeps timers of its own; callers that want the
numbers hand in a TimerInstrumentation:

    timers = TimerInstrumentation()
    reconstructor = ConvectiveFluxReconstructor(model, instrumentation=timers)
    ...
    timers.log_summary()
"""

import logging
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict

logger = logging.getLogger(__name__)

# Timer names used by the reconstructor
TIMERS = (
    'characteristic_decomposition',
    'weno_interpolation',
    'riemann_solver',
    'reconstruct_flux',
    'compute_source',
)


class Instrumentation:
    """No-op hook; subclass to collect timings or counts."""

    @contextmanager
    def timer(self, name: str):
        yield

    def count(self, event: str, n: int = 1):
        pass


class TimerInstrumentation(Instrumentation):
    """Accumulates wall-clock time per timer and totals per event."""

    def __init__(self):
        self.totals: Dict[str, float] = defaultdict(float)
        self.calls: Dict[str, int] = defaultdict(int)
        self.counts: Dict[str, int] = defaultdict(int)

    @contextmanager
    def timer(self, name: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            self.totals[name] += time.perf_counter() - start
            self.calls[name] += 1

    def count(self, event: str, n: int = 1):
        self.counts[event] += int(n)

    def reset(self):
        self.totals.clear()
        self.calls.clear()
        self.counts.clear()

    def report(self) -> str:
        lines = ["Timer                              calls     total [s]"]
        for name, total in sorted(self.totals.items(), key=lambda item: -item[1]):
            lines.append(f"{name:<32} {self.calls[name]:>7d} {total:>13.6f}")
        if self.counts:
            lines.append("Event                              count")
            for event, n in sorted(self.counts.items()):
                lines.append(f"{event:<32} {n:>7d}")
        return "\n".join(lines)

    def log_summary(self, level: int = logging.INFO):
        logger.log(level, "Flux reconstruction timers:\n%s", self.report())
