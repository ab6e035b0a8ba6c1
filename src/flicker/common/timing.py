"""Tick timing bookkeeping for the flicker loop."""

import time
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class TickTiming:
    """Tracks tick spacing and how long each tick's I/O took"""

    start_time: float = field(default_factory=time.perf_counter)
    last_tick: float = 0.0
    tick_count: int = 0
    overruns: int = 0

    # Last N tick intervals and tick durations, in milliseconds
    intervals_ms: List[float] = field(default_factory=list)
    durations_ms: List[float] = field(default_factory=list)
    max_samples: int = 60

    def reset(self) -> None:
        """Reset timing state"""
        self.start_time = time.perf_counter()
        self.last_tick = 0.0
        self.tick_count = 0
        self.overruns = 0
        self.intervals_ms.clear()
        self.durations_ms.clear()

    def begin_tick(self) -> float:
        """Mark the start of a tick and return its perf counter timestamp"""
        now = time.perf_counter()
        if self.last_tick > 0:
            self._push(self.intervals_ms, (now - self.last_tick) * 1000)
        self.last_tick = now
        self.tick_count += 1
        return now

    def end_tick(self, started: float, budget_ms: float) -> None:
        """Record how long a tick took; ticks longer than the interval count as overruns"""
        duration_ms = (time.perf_counter() - started) * 1000
        self._push(self.durations_ms, duration_ms)
        if budget_ms > 0 and duration_ms > budget_ms:
            self.overruns += 1

    def _push(self, samples: List[float], value: float) -> None:
        samples.append(value)
        if len(samples) > self.max_samples:
            samples.pop(0)

    def get_metrics(self) -> Dict[str, float]:
        """Get timing metrics"""
        if not self.intervals_ms:
            avg_interval = 0.0
        else:
            avg_interval = sum(self.intervals_ms) / len(self.intervals_ms)
        avg_duration = (
            sum(self.durations_ms) / len(self.durations_ms) if self.durations_ms else 0.0
        )
        return {
            "tick_count": self.tick_count,
            "avg_interval_ms": avg_interval,
            "avg_tick_duration_ms": avg_duration,
            "max_tick_duration_ms": max(self.durations_ms) if self.durations_ms else 0.0,
            "ticks_per_second": 1000 / avg_interval if avg_interval > 0 else 0,
            "overruns": self.overruns,
            "uptime_s": time.perf_counter() - self.start_time,
        }
