"""Board and pin access.

The gpiozero backend lives in ``flicker.hardware.gpiozero_board`` and is
imported on demand since gpiozero is only installed on the Pi.
"""

from .mock import MockBoard, MockPin
from .pins import (
    Board,
    Dependencies,
    GPIOPin,
    PinRef,
    PinSet,
    board_from_dependencies,
    resolve_pins,
)

__all__ = [
    "Board",
    "Dependencies",
    "GPIOPin",
    "MockBoard",
    "MockPin",
    "PinRef",
    "PinSet",
    "board_from_dependencies",
    "resolve_pins",
]
