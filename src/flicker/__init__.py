"""Randomized flicker effects on digital output pins."""

from .common.defaults import FlickerDefaults
from .common.exceptions import (
    ConfigurationError,
    FlickerError,
    FlickerStateError,
    NotSupportedError,
    PinIOError,
    ResolutionError,
    ValidationError,
)
from .core import MODEL, BoardConfig, FlickerConfig, FlickerLoop, GpioFlicker, LoopState
from .hardware import Board, GPIOPin, MockBoard, PinRef, PinSet, resolve_pins
from .patterns import create_policy

__version__ = "0.1.0"

__all__ = [
    "Board",
    "BoardConfig",
    "ConfigurationError",
    "FlickerConfig",
    "FlickerDefaults",
    "FlickerError",
    "FlickerLoop",
    "FlickerStateError",
    "GPIOPin",
    "GpioFlicker",
    "LoopState",
    "MODEL",
    "MockBoard",
    "NotSupportedError",
    "PinIOError",
    "PinRef",
    "PinSet",
    "ResolutionError",
    "ValidationError",
    "create_policy",
    "resolve_pins",
]
