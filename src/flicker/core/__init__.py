"""Flicker configuration, control loop and service lifecycle"""

from ..common.exceptions import ConfigurationError, FlickerStateError, ResolutionError
from .config import BoardConfig, FlickerConfig

# Engine and service last; both pull in hardware and patterns
from .engine import FlickerLoop, LoopMetrics, LoopState, RunState, tick_period
from .service import MODEL, GpioFlicker

__all__ = [
    "BoardConfig",
    "ConfigurationError",
    "FlickerConfig",
    "FlickerLoop",
    "FlickerStateError",
    "GpioFlicker",
    "LoopMetrics",
    "LoopState",
    "MODEL",
    "ResolutionError",
    "RunState",
    "tick_period",
]
