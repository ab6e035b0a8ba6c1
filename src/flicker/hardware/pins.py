"""Board and pin interfaces, and resolution of the configured pin set."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from ..common.exceptions import ResolutionError

if TYPE_CHECKING:
    from ..core.config import FlickerConfig

logger = logging.getLogger(__name__)


class GPIOPin(ABC):
    """A single digital output line"""

    @abstractmethod
    async def get(self) -> bool:
        """Read the current output level"""
        pass

    @abstractmethod
    async def set(self, high: bool) -> None:
        """Drive the output high or low"""
        pass


class Board(ABC):
    """A board that hands out GPIO pins by name"""

    name: str = "board"

    @abstractmethod
    def gpio_pin_by_name(self, name: str) -> GPIOPin:
        """Look up a pin, raising ResolutionError if the board has no such pin"""
        pass

    def release_pins(self, names: Iterable[str]) -> None:
        """Give back pins this board handed out; boards without claims do nothing"""
        pass


# Boards available to a service, keyed by board name
Dependencies = Mapping[str, Board]


def board_from_dependencies(dependencies: Dependencies, name: str) -> Board:
    """Find a board among the service's dependencies"""
    try:
        return dependencies[name]
    except KeyError:
        raise ResolutionError(f"Board {name!r} missing from dependencies") from None


@dataclass(frozen=True)
class PinRef:
    """Resolved handle to one pin on one board"""

    board: str
    name: str
    pin: GPIOPin

    @property
    def label(self) -> str:
        return f"{self.board}.{self.name}"

    async def get(self) -> bool:
        return bool(await self.pin.get())

    async def set(self, high: bool) -> None:
        await self.pin.set(high)

    def __str__(self) -> str:
        return self.label


class PinSet(Sequence[PinRef]):
    """Ordered, flattened pins across all configured boards"""

    def __init__(self, pins: List[PinRef], board_handles: Optional[Dict[str, Board]] = None):
        self._pins = list(pins)
        # Board objects the pins were resolved through, keyed by board name
        self.board_handles: Dict[str, Board] = dict(board_handles or {})

    def __getitem__(self, index):
        return self._pins[index]

    def __len__(self) -> int:
        return len(self._pins)

    def __iter__(self) -> Iterator[PinRef]:
        return iter(self._pins)

    @property
    def labels(self) -> List[str]:
        return [pin.label for pin in self._pins]

    @property
    def boards(self) -> List[str]:
        """Distinct board names, in first-seen order"""
        return list(dict.fromkeys(pin.board for pin in self._pins))

    def dropped_by(self, other: Optional["PinSet"]) -> Dict[str, List[str]]:
        """Pin names per board held here but not by ``other``.

        A pin only counts as kept when ``other`` holds the same name on the
        same board object; a board swapped out under the same name drops
        everything it handed out.
        """
        kept = set()
        if other is not None:
            kept = {(id(other.board_handles.get(pin.board)), pin.name) for pin in other}

        dropped: Dict[str, List[str]] = {}
        for pin in self._pins:
            if (id(self.board_handles.get(pin.board)), pin.name) in kept:
                continue
            names = dropped.setdefault(pin.board, [])
            if pin.name not in names:
                names.append(pin.name)
        return dropped

    def __repr__(self) -> str:
        return f"PinSet({self.labels})"


def resolve_pins(config: "FlickerConfig", dependencies: Dependencies) -> PinSet:
    """Resolve every configured board and pin, failing on the first miss.

    Nothing is kept from a failed resolution; the caller's current pin set
    stays in charge.
    """
    pins: List[PinRef] = []
    handles: Dict[str, Board] = {}
    for i, board_conf in enumerate(config.boards):
        try:
            board = board_from_dependencies(dependencies, board_conf.board)
        except ResolutionError as e:
            raise ResolutionError(f"board number {i}: {e}") from e
        handles[board_conf.board] = board

        for pin_name in board_conf.pins:
            try:
                pin = board.gpio_pin_by_name(pin_name)
            except ResolutionError:
                raise
            except Exception as e:
                raise ResolutionError(
                    f"Pin {pin_name!r} on board {board_conf.board!r}: {e}"
                ) from e
            pins.append(PinRef(board=board_conf.board, name=pin_name, pin=pin))

    logger.debug(f"Resolved {len(pins)} pins across {len(config.boards)} boards")
    return PinSet(pins, handles)
