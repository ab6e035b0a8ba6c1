import numpy as np

from ...common.defaults import FlickerDefaults
from ..base import FlickerPolicy, Parameter, ToggleDecision


class WavePolicy(FlickerPolicy):
    """Vegas-style flicker: a slow sine wave per pin plus rare sparkle bursts.

    Each pin's toggle chance oscillates between ``base_chance`` and
    ``base_chance + amplitude``; the pin's phase offset keeps the pins from
    pulsing in lockstep. Independently, with probability ``sparkle_chance``
    per tick, 1 to ``sparkle_max`` random pins are toggled on top.
    """

    name = "wave"
    description = "Sine-modulated per-pin flicker with occasional sparkle bursts"

    parameters = [
        Parameter(
            name="base_chance",
            type=float,
            default=FlickerDefaults.WAVE_BASE_CHANCE,
            min_value=0.0,
            max_value=1.0,
            description="Toggle chance at the bottom of the wave",
        ),
        Parameter(
            name="amplitude",
            type=float,
            default=FlickerDefaults.WAVE_AMPLITUDE,
            min_value=0.0,
            max_value=1.0,
            description="Extra toggle chance at the top of the wave",
        ),
        Parameter(
            name="frequency",
            type=float,
            default=FlickerDefaults.WAVE_FREQUENCY,
            min_value=0.0,
            max_value=100.0,
            description="Angular speed of the wave",
            units="rad/s",
        ),
        Parameter(
            name="sparkle_chance",
            type=float,
            default=FlickerDefaults.SPARKLE_CHANCE,
            min_value=0.0,
            max_value=1.0,
            description="Chance of a sparkle burst on a given tick",
        ),
        Parameter(
            name="sparkle_max",
            type=int,
            default=FlickerDefaults.SPARKLE_MAX_PINS,
            min_value=1,
            max_value=64,
            description="Most pins toggled by one sparkle burst",
        ),
    ]

    def chances(self, t: float, phases: np.ndarray) -> np.ndarray:
        """Per-pin toggle chance at time ``t``"""
        wave = 0.5 * (1 + np.sin(self.params["frequency"] * (t + phases)))
        return self.params["base_chance"] + wave * self.params["amplitude"]

    def decide(
        self, t: float, phases: np.ndarray, rng: np.random.Generator
    ) -> ToggleDecision:
        pin_count = len(phases)
        if pin_count == 0:
            return ToggleDecision()

        mask = rng.random(pin_count) < self.chances(t, phases)
        decision = ToggleDecision(toggles=np.flatnonzero(mask).tolist())

        if rng.random() < self.params["sparkle_chance"]:
            burst = int(rng.integers(1, self.params["sparkle_max"] + 1))
            decision.sparkle = rng.integers(pin_count, size=burst).tolist()

        return decision
