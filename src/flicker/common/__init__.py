"""Shared exceptions and timing helpers."""

from .exceptions import (
    ConfigurationError,
    FlickerError,
    FlickerStateError,
    NotSupportedError,
    PinIOError,
    ResolutionError,
    ValidationError,
)
from .timing import TickTiming

__all__ = [
    "ConfigurationError",
    "FlickerError",
    "FlickerStateError",
    "NotSupportedError",
    "PinIOError",
    "ResolutionError",
    "TickTiming",
    "ValidationError",
]
