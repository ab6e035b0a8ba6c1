import numpy as np

from ...common.defaults import FlickerDefaults
from ..base import FlickerPolicy, Parameter, ToggleDecision


class UniformPolicy(FlickerPolicy):
    """Every pin toggles independently with a fixed probability"""

    name = "uniform"
    description = "Independent per-pin toggles at a fixed probability"

    parameters = [
        Parameter(
            name="probability",
            type=float,
            default=FlickerDefaults.UNIFORM_PROBABILITY,
            min_value=0.0,
            max_value=1.0,
            description="Chance that a pin toggles on a given tick",
        ),
    ]

    def decide(
        self, t: float, phases: np.ndarray, rng: np.random.Generator
    ) -> ToggleDecision:
        draws = rng.random(len(phases))
        mask = draws < self.params["probability"]
        return ToggleDecision(toggles=np.flatnonzero(mask).tolist())
