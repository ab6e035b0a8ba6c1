"""Tests for the flicker control loop."""

import asyncio
import time

import numpy as np
import pytest

from flicker.common.defaults import FlickerDefaults
from flicker.common.exceptions import FlickerStateError
from flicker.core.config import FlickerConfig
from flicker.core.engine import FlickerLoop, LoopState, tick_period
from flicker.hardware.pins import resolve_pins
from flicker.patterns import RandomPinPolicy, UniformPolicy, WavePolicy
from flicker.patterns.base import FlickerPolicy, ToggleDecision


class ScriptedPolicy(FlickerPolicy):
    """Returns a fixed decision every tick"""

    name = "scripted"

    def __init__(self, decision: ToggleDecision):
        super().__init__()
        self.decision = decision

    def decide(self, t, phases, rng):
        return self.decision


class BrokenPolicy(FlickerPolicy):
    name = "broken"

    def decide(self, t, phases, rng):
        raise RuntimeError("boom")


@pytest.fixture
def pins(flicker_attributes, dependencies):
    return resolve_pins(FlickerConfig.from_dict(flicker_attributes), dependencies)


def mock_pins(boards):
    return [pin for board in boards.values() for pin in board.pins.values()]


async def run_for(loop: FlickerLoop, seconds: float) -> None:
    loop.start()
    await asyncio.sleep(seconds)
    await loop.stop(timeout=1.0)


class TestLifecycle:
    """Loop state machine"""

    async def test_state_transitions(self, pins):
        loop = FlickerLoop(pins, 5, WavePolicy(), seed=1)
        assert loop.state == LoopState.IDLE

        loop.start()
        assert loop.state == LoopState.RUNNING
        await asyncio.sleep(0.03)
        assert loop.is_running

        await loop.stop(timeout=1.0)
        assert loop.state == LoopState.STOPPED
        assert loop.run_state.task.done()

    async def test_cannot_restart(self, pins):
        loop = FlickerLoop(pins, 5, WavePolicy())
        await run_for(loop, 0.01)
        with pytest.raises(FlickerStateError):
            loop.start()

    async def test_cancel_is_idempotent(self, pins):
        loop = FlickerLoop(pins, 5, WavePolicy())
        loop.start()
        loop.cancel()
        loop.cancel()
        assert await loop.wait(timeout=1.0)
        loop.cancel()
        await loop.stop()
        assert loop.state == LoopState.STOPPED

    async def test_cancel_before_start(self, pins, boards):
        loop = FlickerLoop(pins, 5, WavePolicy())
        loop.cancel()
        assert loop.state == LoopState.STOPPED
        assert await loop.wait()
        assert all(pin.set_calls == [] for pin in mock_pins(boards))

    async def test_phase_table(self, pins):
        loop = FlickerLoop(pins, 5, WavePolicy(), seed=42)
        assert loop.phases.shape == (len(pins),)
        assert np.all((loop.phases >= 0) & (loop.phases < 2 * np.pi))

        again = FlickerLoop(pins, 5, WavePolicy(), seed=42)
        assert np.array_equal(loop.phases, again.phases)


class TestTicking:
    """Per-tick toggling"""

    async def test_random_pin_toggles(self, pins, boards):
        loop = FlickerLoop(pins, 5, RandomPinPolicy(), seed=3)
        await run_for(loop, 0.1)

        assert loop.metrics.ticks > 0
        assert loop.metrics.toggles == loop.metrics.ticks
        owned = [p.pin for p in pins]
        assert sum(pin.toggle_count for pin in owned) == loop.metrics.toggles + len(owned)

    async def test_tick_toggles_in_order(self, pins):
        loop = FlickerLoop(pins, 1000, ScriptedPolicy(ToggleDecision(toggles=[0, 2])))
        await loop._tick(0.0)

        assert pins[0].pin.set_calls == [True]
        assert pins[1].pin.set_calls == []
        assert pins[2].pin.set_calls == [True]
        assert loop.metrics.ticks == 1

    async def test_repeated_sparkle_toggles_back(self, pins):
        loop = FlickerLoop(pins, 1000, ScriptedPolicy(ToggleDecision(sparkle=[1, 1])))
        await loop._tick(0.0)

        assert pins[1].pin.set_calls == [True, False]
        assert pins[1].pin.high is False
        assert loop.metrics.sparkle_bursts == 1

    async def test_read_failure_skips_write(self, pins):
        pins[0].pin.fail_get = True
        loop = FlickerLoop(pins, 1000, UniformPolicy({"probability": 1.0}))
        await loop._tick(0.0)

        assert pins[0].pin.set_calls == []
        assert pins[1].pin.set_calls == [True]
        assert pins[2].pin.set_calls == [True]
        assert loop.metrics.io_errors == 1

    async def test_write_failure_does_not_stop_loop(self, pins):
        pins[1].pin.fail_set = True
        loop = FlickerLoop(pins, 5, UniformPolicy({"probability": 1.0}))
        await run_for(loop, 0.05)

        assert loop.metrics.ticks > 1
        assert loop.metrics.io_errors >= loop.metrics.ticks
        assert pins[0].pin.toggle_count > 1
        assert pins[2].pin.toggle_count > 1

    async def test_policy_failure_is_recorded(self, pins):
        loop = FlickerLoop(pins, 5, BrokenPolicy())
        await run_for(loop, 0.03)

        assert loop.state == LoopState.STOPPED
        assert loop.metrics.policy_errors > 0
        assert loop.metrics.last_error == "Policy failed: boom"

    async def test_tick_time_comes_from_clock(self, pins):
        seen = []

        class RecordingPolicy(FlickerPolicy):
            name = "recording"

            def decide(self, t, phases, rng):
                seen.append(t)
                return ToggleDecision()

        loop = FlickerLoop(pins, 5, RecordingPolicy(), clock=lambda: 123.5)
        await run_for(loop, 0.03)
        assert seen and set(seen) == {123.5}


class TestDrain:
    """Turning pins off on cancellation"""

    async def test_every_pin_turned_off_once(self, pins):
        loop = FlickerLoop(pins, 60_000, WavePolicy())
        await run_for(loop, 0.01)

        for pin in pins:
            assert pin.pin.set_calls == [False]

    async def test_failing_pin_does_not_block_others(self, pins):
        pins[0].pin.fail_set = True
        pins[1].pin.fail_get = True
        loop = FlickerLoop(pins, 60_000, WavePolicy())
        await run_for(loop, 0.01)

        for pin in pins:
            assert pin.pin.set_calls == [False]
        assert loop.metrics.io_errors == 1

    async def test_pins_end_low(self, pins):
        loop = FlickerLoop(pins, 2, UniformPolicy({"probability": 0.5}), seed=9)
        await run_for(loop, 0.05)

        assert all(pin.pin.high is False for pin in pins)
        assert all(pin.pin.set_calls[-1] is False for pin in pins)

    async def test_hard_cancel_still_drains(self, pins):
        release = asyncio.Event()

        async def stuck_get():
            await release.wait()
            return False

        pins[0].pin.get = stuck_get
        loop = FlickerLoop(pins, 1, UniformPolicy({"probability": 1.0}))
        loop.start()
        await asyncio.sleep(0.02)

        await loop.stop(timeout=0.05)
        assert loop.state == LoopState.STOPPED
        assert pins[2].pin.set_calls[-1] is False

    async def test_hung_pin_does_not_block_drain(self, pins):
        async def hung_set(high):
            await asyncio.Event().wait()

        pins[0].pin.set = hung_set
        loop = FlickerLoop(pins, 60_000, WavePolicy(), pin_timeout=0.05)
        loop.start()
        await asyncio.sleep(0.01)

        started = time.monotonic()
        stopped = await asyncio.wait_for(loop.stop(timeout=0.5), 2.0)

        assert stopped
        assert time.monotonic() - started < 0.5
        assert loop.state == LoopState.STOPPED
        assert pins[1].pin.set_calls == [False]
        assert pins[2].pin.set_calls == [False]
        assert loop.metrics.io_errors == 1
        assert loop.metrics.last_error == "off b1.p1: timed out"

    async def test_stop_is_bounded_while_draining(self, pins):
        async def hung_set(high):
            await asyncio.Event().wait()

        pins[0].pin.set = hung_set
        loop = FlickerLoop(pins, 60_000, WavePolicy(), pin_timeout=10.0)
        loop.start()
        await asyncio.sleep(0.01)

        started = time.monotonic()
        stopped = await asyncio.wait_for(loop.stop(timeout=0.05), 2.0)

        assert not stopped
        assert time.monotonic() - started < 1.0
        assert loop.state == LoopState.DRAINING
        assert pins[1].pin.set_calls == [False]
        assert pins[2].pin.set_calls == [False]

        loop.run_state.task.cancel()
        await asyncio.wait({loop.run_state.task})

    async def test_stop_does_not_swallow_caller_cancel(self, pins):
        async def hung_set(high):
            await asyncio.Event().wait()

        pins[0].pin.set = hung_set
        loop = FlickerLoop(pins, 60_000, WavePolicy(), pin_timeout=10.0)
        loop.start()
        await asyncio.sleep(0.01)

        stopper = asyncio.create_task(loop.stop(timeout=5.0))
        await asyncio.sleep(0.02)
        stopper.cancel()
        with pytest.raises(asyncio.CancelledError):
            await stopper

        loop.run_state.task.cancel()
        await asyncio.wait({loop.run_state.task})


class TestInterval:
    """Tick period handling"""

    def test_positive_interval(self):
        assert tick_period(250) == pytest.approx(0.25)

    @pytest.mark.parametrize("interval_ms", [0, -100])
    def test_degenerate_interval_is_floored(self, interval_ms):
        assert tick_period(interval_ms) == FlickerDefaults.MIN_INTERVAL_MS / 1000

    async def test_state_report(self, pins):
        loop = FlickerLoop(pins, 0, WavePolicy())
        state = loop.get_state()
        assert state["state"] == "IDLE"
        assert state["interval_ms"] == 0
        assert state["tick_period_ms"] == pytest.approx(1.0)
        assert state["pins"] == ["b1.p1", "b1.p2", "b2.p3"]
        assert state["policy"]["name"] == "wave"
