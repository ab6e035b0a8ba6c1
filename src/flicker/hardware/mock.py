import logging
from typing import Dict, Iterable, List, Optional

from ..common.exceptions import PinIOError, ResolutionError
from .pins import Board, GPIOPin

logger = logging.getLogger(__name__)


class MockPin(GPIOPin):
    """In-memory pin for development without hardware"""

    def __init__(self, name: str, high: bool = False):
        self.name = name
        self.high = high
        self.fail_get = False
        self.fail_set = False
        self.get_calls = 0
        # Every value passed to set(), including failed attempts
        self.set_calls: List[bool] = []

    async def get(self) -> bool:
        self.get_calls += 1
        if self.fail_get:
            raise PinIOError(f"mock read failure on {self.name}")
        return self.high

    async def set(self, high: bool) -> None:
        self.set_calls.append(high)
        if self.fail_set:
            raise PinIOError(f"mock write failure on {self.name}")
        self.high = high

    @property
    def toggle_count(self) -> int:
        return len(self.set_calls)

    def __repr__(self) -> str:
        return f"MockPin({self.name!r}, high={self.high})"


class MockBoard(Board):
    """Mock board exposing a fixed set of named pins"""

    def __init__(self, name: str, pin_names: Optional[Iterable[str]] = None):
        self.name = name
        self.pins: Dict[str, MockPin] = {
            pin_name: MockPin(pin_name) for pin_name in (pin_names or [])
        }
        self.released: List[str] = []
        logger.info(f"Initialized mock board {name} with {len(self.pins)} pins")

    def gpio_pin_by_name(self, name: str) -> MockPin:
        try:
            return self.pins[name]
        except KeyError:
            raise ResolutionError(f"Board {self.name!r} has no pin {name!r}") from None

    def release_pins(self, names: Iterable[str]) -> None:
        self.released.extend(names)

    def get_state(self) -> Dict[str, bool]:
        """Current level of every pin"""
        return {name: pin.high for name, pin in self.pins.items()}
