from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional
import logging

import numpy as np

from ..common.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class Parameter:
    """Policy parameter definition with validation"""

    name: str
    type: type
    default: Any
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    description: str = ""
    units: str = ""

    def validate(self, value: Any) -> Any:
        """Validate and normalize parameter value"""
        try:
            # Type conversion
            value = self.type(value)

            # Range validation
            if self.min_value is not None and value < self.min_value:
                logger.warning(
                    f"Clamping {self.name} to minimum value {self.min_value}"
                )
                value = self.min_value
            if self.max_value is not None and value > self.max_value:
                logger.warning(
                    f"Clamping {self.name} to maximum value {self.max_value}"
                )
                value = self.max_value

            return value
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid value for {self.name}: {value} ({str(e)})")

    def describe(self) -> Dict[str, Any]:
        return {
            "type": self.type.__name__,
            "default": self.default,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "description": self.description,
            "units": self.units,
        }


@dataclass
class ToggleDecision:
    """Pins to toggle on one tick, in the order they should be toggled.

    Indices may repeat; each toggle re-reads the pin, so a pin listed twice
    ends up where it started.
    """

    toggles: List[int] = field(default_factory=list)
    sparkle: List[int] = field(default_factory=list)

    @property
    def ordered(self) -> List[int]:
        return self.toggles + self.sparkle

    def __bool__(self) -> bool:
        return bool(self.toggles or self.sparkle)


class FlickerPolicy(ABC):
    """Base class for all flicker policies.

    A policy is a pure function of the tick time, the per-pin phase table
    and the random generator it is handed; it never touches pins itself.
    """

    name: str = "base"
    description: str = "Base flicker policy"
    parameters: ClassVar[List[Parameter]] = []

    def __init__(self, params: Optional[Dict[str, Any]] = None):
        self.params: Dict[str, Any] = {p.name: p.default for p in self.parameters}
        if params:
            self.update_parameters(params)

    def update_parameters(self, params: Dict[str, Any]) -> None:
        """Validate and apply parameter overrides; unknown names are rejected"""
        specs = {p.name: p for p in self.parameters}
        for key, value in params.items():
            spec = specs.get(key)
            if spec is None:
                raise ValidationError(f"Unknown parameter for {self.name} policy: {key}")
            self.params[key] = spec.validate(value)

    @abstractmethod
    def decide(
        self, t: float, phases: np.ndarray, rng: np.random.Generator
    ) -> ToggleDecision:
        """Decide which pins to toggle at tick time ``t`` (seconds)"""
        pass

    def get_state(self) -> Dict[str, Any]:
        return {"name": self.name, "parameters": dict(self.params)}
