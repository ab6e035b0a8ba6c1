"""Default constants for the flicker loop and its policies."""

from typing import ClassVar


class FlickerDefaults:
    """Default constants for the flicker loop and its policies"""

    DEFAULT_INTERVAL_MS: ClassVar[int] = 100
    # Ticks faster than this are floored; a zero interval would busy-loop
    MIN_INTERVAL_MS: ClassVar[int] = 1

    DEFAULT_POLICY: ClassVar[str] = "wave"

    # Wave-modulated policy
    WAVE_BASE_CHANCE: ClassVar[float] = 0.05
    WAVE_AMPLITUDE: ClassVar[float] = 0.20
    WAVE_FREQUENCY: ClassVar[float] = 2.0  # radians per second
    SPARKLE_CHANCE: ClassVar[float] = 0.01
    SPARKLE_MAX_PINS: ClassVar[int] = 3

    # Independent-uniform policy
    UNIFORM_PROBABILITY: ClassVar[float] = 0.1

    # Seconds to wait for a cancelled loop to finish draining
    SHUTDOWN_TIMEOUT_S: ClassVar[float] = 5.0

    # Seconds one pin read or write may take before it counts as failed
    PIN_IO_TIMEOUT_S: ClassVar[float] = 1.0
