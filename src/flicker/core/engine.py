import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..common.defaults import FlickerDefaults
from ..common.exceptions import FlickerStateError
from ..common.timing import TickTiming
from ..hardware.pins import PinRef, PinSet
from ..patterns.base import FlickerPolicy

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """Flicker loop states; a loop only ever moves forward through them"""

    IDLE = auto()
    RUNNING = auto()
    DRAINING = auto()
    STOPPED = auto()


@dataclass
class LoopMetrics:
    """Flicker loop counters"""

    ticks: int = 0
    toggles: int = 0
    sparkle_bursts: int = 0
    io_errors: int = 0
    policy_errors: int = 0
    last_error: str = ""
    last_error_time: float = 0.0
    error_history: List[Dict[str, Any]] = field(default_factory=list)

    def record_error(self, error: str, error_type: str = "io") -> None:
        """Record an error occurrence, keeping the last 10"""
        if error_type == "io":
            self.io_errors += 1
        else:
            self.policy_errors += 1
        self.last_error = error
        self.last_error_time = time.time()

        self.error_history.append(
            {"timestamp": self.last_error_time, "message": error, "type": error_type}
        )
        if len(self.error_history) > 10:
            self.error_history.pop(0)

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "ticks": self.ticks,
            "toggles": self.toggles,
            "sparkle_bursts": self.sparkle_bursts,
            "io_errors": self.io_errors,
            "policy_errors": self.policy_errors,
            "last_error": self.last_error,
        }


@dataclass
class RunState:
    """Everything one flicker loop owns: pins, tick period, phases, RNG and cancel event"""

    pins: PinSet
    interval_s: float
    phases: np.ndarray
    rng: np.random.Generator
    cancelled: asyncio.Event = field(default_factory=asyncio.Event)
    task: Optional["asyncio.Task[None]"] = None


def tick_period(interval_ms: int) -> float:
    """Tick period in seconds, floored at FlickerDefaults.MIN_INTERVAL_MS"""
    if interval_ms < FlickerDefaults.MIN_INTERVAL_MS:
        logger.warning(
            f"Interval {interval_ms} ms would busy-loop, "
            f"using {FlickerDefaults.MIN_INTERVAL_MS} ms instead"
        )
        interval_ms = FlickerDefaults.MIN_INTERVAL_MS
    return interval_ms / 1000.0


def _describe(error: Exception) -> str:
    if isinstance(error, asyncio.TimeoutError):
        return "timed out"
    return str(error)


class FlickerLoop:
    """Background task that flickers one set of pins until cancelled.

    Each tick the policy picks pins and the loop toggles them one at a time
    (read, then write the negation). A failed read skips that pin's write;
    any I/O failure is logged and counted, never raised. Every pin call is
    bounded by ``pin_timeout`` and a call that overruns counts as failed.
    Cancellation is only noticed between ticks, after which every pin is
    driven low once. A loop runs once: after STOPPED a new loop must be built.
    """

    def __init__(
        self,
        pins: PinSet,
        interval_ms: int,
        policy: FlickerPolicy,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        name: str = "flicker",
        pin_timeout: float = FlickerDefaults.PIN_IO_TIMEOUT_S,
    ):
        self.name = name
        self.policy = policy
        self.interval_ms = interval_ms
        self.pin_timeout = pin_timeout
        self._clock = clock

        rng = np.random.default_rng(seed)
        self.run_state = RunState(
            pins=pins,
            interval_s=tick_period(interval_ms),
            phases=rng.random(len(pins)) * 2 * np.pi,
            rng=rng,
        )

        self.state = LoopState.IDLE
        self.metrics = LoopMetrics()
        self.timing = TickTiming()

    @property
    def pins(self) -> PinSet:
        return self.run_state.pins

    @property
    def phases(self) -> np.ndarray:
        return self.run_state.phases

    @property
    def is_running(self) -> bool:
        return self.state == LoopState.RUNNING

    def start(self) -> "asyncio.Task[None]":
        """Start the loop task; must be called from a running event loop"""
        if self.state != LoopState.IDLE:
            raise FlickerStateError(f"Flicker loop {self.name} already started")

        self.timing.reset()
        self.state = LoopState.RUNNING
        self.run_state.task = asyncio.create_task(
            self._run(), name=f"{self.name}_flicker_loop"
        )
        return self.run_state.task

    def cancel(self) -> None:
        """Ask the loop to drain and stop; safe to call any number of times"""
        self.run_state.cancelled.set()
        if self.state == LoopState.IDLE:
            self.state = LoopState.STOPPED

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the loop task to finish; False if it is still running after timeout"""
        task = self.run_state.task
        if task is None:
            return True
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if task not in done:
            return False
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Flicker loop {self.name} failed: {task.exception()}")
        return True

    async def stop(self, timeout: Optional[float] = FlickerDefaults.SHUTDOWN_TIMEOUT_S) -> bool:
        """Cancel and wait for the drain, spending at most about twice ``timeout``.

        A loop still stuck in a tick after the first wait has its task
        cancelled, which sends it straight to the drain. A loop already
        draining is left alone; its pin calls are bounded by ``pin_timeout``.
        Returns False if the loop had not stopped when the time ran out;
        the task then finishes in the background.
        """
        self.cancel()
        if await self.wait(timeout):
            return True

        task = self.run_state.task
        if self.state == LoopState.RUNNING:
            logger.warning(
                f"Flicker loop {self.name} did not stop within {timeout}s, cancelling task"
            )
            task.cancel()

        if await self.wait(timeout):
            return True

        logger.error(
            f"Flicker loop {self.name} still {self.state.name.lower()} "
            f"after {timeout}s, leaving it to finish"
        )
        return False

    async def _run(self) -> None:
        """Tick until cancelled, then drain"""
        rs = self.run_state
        loop = asyncio.get_running_loop()
        logger.info(
            f"Starting {self.policy.name} flicker on {len(rs.pins)} pins "
            f"every {rs.interval_s * 1000:.0f} ms"
        )

        next_tick = loop.time() + rs.interval_s
        try:
            while True:
                if await self._wait_for_cancel(next_tick - loop.time()):
                    break

                await self._tick(self._clock())

                next_tick += rs.interval_s
                # Fell behind: fire the next tick right away and drop the rest
                next_tick = max(next_tick, loop.time())
        finally:
            self.state = LoopState.DRAINING
            await self._drain()
            self.state = LoopState.STOPPED
            logger.info(f"Flicker loop {self.name} stopped after {self.metrics.ticks} ticks")

    async def _wait_for_cancel(self, delay: float) -> bool:
        """Block until the next tick is due or cancellation arrives; True means cancelled"""
        cancelled = self.run_state.cancelled
        if cancelled.is_set():
            return True
        try:
            await asyncio.wait_for(cancelled.wait(), timeout=max(0.0, delay))
            return True
        except asyncio.TimeoutError:
            return False

    async def _tick(self, t: float) -> None:
        """Apply the policy for tick time ``t`` and perform its toggles"""
        rs = self.run_state
        started = self.timing.begin_tick()

        try:
            decision = self.policy.decide(t, rs.phases, rs.rng)
        except Exception as e:
            logger.error(f"{self.policy.name} policy failed: {e}", exc_info=True)
            self.metrics.record_error(f"Policy failed: {e}", error_type="policy")
            return

        if decision.sparkle:
            self.metrics.sparkle_bursts += 1
            logger.info(f"Sparkle burst on {len(decision.sparkle)} pins")

        for index in decision.ordered:
            await self._toggle(rs.pins[index])

        self.metrics.ticks += 1
        self.timing.end_tick(started, rs.interval_s * 1000)

    async def _toggle(self, pin: PinRef) -> bool:
        """Flip one pin; False if the read or the write failed"""
        try:
            current = await asyncio.wait_for(pin.get(), timeout=self.pin_timeout)
        except Exception as e:
            logger.error(f"Failed to get state of {pin}: {_describe(e)}")
            self.metrics.record_error(f"get {pin}: {_describe(e)}")
            return False

        try:
            await asyncio.wait_for(pin.set(not current), timeout=self.pin_timeout)
        except Exception as e:
            logger.error(f"Failed to set state of {pin}: {_describe(e)}")
            self.metrics.record_error(f"set {pin}: {_describe(e)}")
            return False

        self.metrics.toggles += 1
        logger.debug(f"Toggled {pin} -> {not current}")
        return True

    async def _turn_off(self, pin: PinRef) -> bool:
        try:
            await asyncio.wait_for(pin.set(False), timeout=self.pin_timeout)
            return True
        except Exception as e:
            logger.error(f"Failed to turn off {pin}: {_describe(e)}")
            self.metrics.record_error(f"off {pin}: {_describe(e)}")
            return False

    async def _drain(self) -> None:
        """Drive every owned pin low once, carrying on past failures.

        All pins are switched off concurrently in declared order, so a pin
        that hangs costs at most ``pin_timeout`` and never holds up the rest.
        """
        pins = self.run_state.pins
        results = await asyncio.gather(*(self._turn_off(pin) for pin in pins))
        failed = results.count(False)
        if failed:
            logger.warning(f"{failed} of {len(pins)} pins could not be turned off")

    def get_state(self) -> Dict[str, Any]:
        """Get loop state"""
        return {
            "state": self.state.name,
            "policy": self.policy.get_state(),
            "interval_ms": self.interval_ms,
            "tick_period_ms": self.run_state.interval_s * 1000,
            "pins": self.run_state.pins.labels,
            "metrics": self.metrics.get_metrics(),
            "timing": self.timing.get_metrics(),
        }
