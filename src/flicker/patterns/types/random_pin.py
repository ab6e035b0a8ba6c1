import numpy as np

from ..base import FlickerPolicy, ToggleDecision


class RandomPinPolicy(FlickerPolicy):
    """Toggle exactly one randomly chosen pin every tick"""

    name = "random_pin"
    description = "Toggle one uniformly random pin per tick"
    parameters = []

    def decide(
        self, t: float, phases: np.ndarray, rng: np.random.Generator
    ) -> ToggleDecision:
        if len(phases) == 0:
            return ToggleDecision()
        return ToggleDecision(toggles=[int(rng.integers(len(phases)))])
