"""Raspberry Pi GPIO board backed by gpiozero."""

import logging
from typing import Dict, Iterable, Optional

from gpiozero import DigitalOutputDevice
from gpiozero.exc import GPIOZeroError

from ..common.exceptions import PinIOError, ResolutionError
from .pins import Board, GPIOPin

logger = logging.getLogger(__name__)


class GPIOZeroPin(GPIOPin):
    """Digital output on a gpiozero device"""

    def __init__(self, name: str, device: DigitalOutputDevice):
        self.name = name
        self.device = device

    async def get(self) -> bool:
        try:
            return bool(self.device.value)
        except GPIOZeroError as e:
            raise PinIOError(f"Failed to read {self.name}: {e}") from e

    async def set(self, high: bool) -> None:
        try:
            if high:
                self.device.on()
            else:
                self.device.off()
        except GPIOZeroError as e:
            raise PinIOError(f"Failed to write {self.name}: {e}") from e


class GPIOZeroBoard(Board):
    """Board whose pins are gpiozero output devices.

    Pin names are anything gpiozero accepts ("GPIO17", "BCM17", "BOARD11",
    "17"). Devices are created on first lookup and reused afterwards, so a
    reconfiguration that names the same pins does not trip gpiozero's
    pin-in-use check. Pins a reconfiguration drops are handed back through
    ``release_pins``.
    """

    def __init__(self, name: str, pin_factory=None, active_high: bool = True):
        self.name = name
        self.pin_factory = pin_factory
        self.active_high = active_high
        self._pins: Dict[str, GPIOZeroPin] = {}

    def gpio_pin_by_name(self, name: str) -> GPIOZeroPin:
        pin = self._pins.get(name)
        if pin is not None:
            return pin
        try:
            device = DigitalOutputDevice(
                name,
                active_high=self.active_high,
                initial_value=False,
                pin_factory=self.pin_factory,
            )
        except (GPIOZeroError, ValueError) as e:
            raise ResolutionError(f"Board {self.name!r} has no pin {name!r}: {e}") from e

        pin = GPIOZeroPin(name, device)
        self._pins[name] = pin
        logger.info(f"Claimed output {name} on board {self.name}")
        return pin

    def release_pins(self, names: Iterable[str]) -> None:
        """Close the devices behind the named pins so gpiozero frees the lines"""
        released = 0
        for name in names:
            pin = self._pins.pop(name, None)
            if pin is not None:
                pin.device.close()
                released += 1
        if released:
            logger.info(f"Released {released} outputs on board {self.name}")

    def close(self, name: Optional[str] = None) -> None:
        """Release one pin, or every pin when no name is given"""
        self.release_pins([name] if name is not None else list(self._pins))
