import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..common.defaults import FlickerDefaults
from ..common.exceptions import (
    ConfigurationError,
    FlickerStateError,
    NotSupportedError,
    ValidationError,
)
from ..hardware.pins import Dependencies, PinSet, resolve_pins
from ..patterns import create_policy
from .config import FlickerConfig
from .engine import FlickerLoop, LoopState

logger = logging.getLogger(__name__)

# Model triplet the host registers this service under
MODEL = "michaellee1019:gpio-flicker:gpio-flicker"

ConfigLike = Union[FlickerConfig, Mapping[str, Any]]


def _as_config(config: ConfigLike) -> FlickerConfig:
    if isinstance(config, FlickerConfig):
        return config
    return FlickerConfig.from_dict(dict(config))


class GpioFlicker:
    """Flicker service: owns the current flicker loop and swaps it on reconfigure.

    At most one loop runs per service. Every swap happens under one lock and
    the old loop is cancelled and drained before the new one starts, so two
    loops never write the same pins at once.
    """

    def __init__(
        self,
        name: str,
        config: FlickerConfig,
        shutdown_timeout: float = FlickerDefaults.SHUTDOWN_TIMEOUT_S,
        clock: Callable[[], float] = time.time,
        pin_timeout: Optional[float] = None,
    ):
        self.name = name
        self.config = config
        self.shutdown_timeout = shutdown_timeout
        # A single pin call never outlasts the shutdown budget
        if pin_timeout is None:
            pin_timeout = min(FlickerDefaults.PIN_IO_TIMEOUT_S, shutdown_timeout)
        self.pin_timeout = pin_timeout
        self._clock = clock

        self._loop: Optional[FlickerLoop] = None
        self._lock = asyncio.Lock()
        self._closed = False
        self.reconfigure_count = 0

    @classmethod
    async def create(
        cls,
        name: str,
        config: ConfigLike,
        dependencies: Dependencies,
        **kwargs,
    ) -> "GpioFlicker":
        """Validate the config, build the service and start flickering"""
        config = _as_config(config)
        config.validate_config(name)
        service = cls(name, config, **kwargs)
        await service.reconfigure(config, dependencies)
        return service

    @staticmethod
    def validate(config: ConfigLike, path: str = "") -> List[str]:
        """Validate raw attributes and return the implicit board dependencies"""
        return _as_config(config).validate_config(path)

    @property
    def loop(self) -> Optional[FlickerLoop]:
        return self._loop

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def reconfigure(self, config: ConfigLike, dependencies: Dependencies) -> None:
        """Resolve new pins and restart the loop on them.

        Any failure (bad config, unknown policy, missing board or pin) is
        raised before the running loop is touched, so it keeps flickering
        the old pins.
        """
        if self._closed:
            raise FlickerStateError(f"Flicker service {self.name} is closed")

        config = _as_config(config)
        logger.info(f"Reconfiguring {self.name} with {config.model_dump()}")
        config.validate_config(self.name)
        try:
            policy = create_policy(config.policy, config.parameters)
        except ValidationError as e:
            raise ConfigurationError(f"{self.name}: {e}") from e
        pins = resolve_pins(config, dependencies)

        async with self._lock:
            if self._closed:
                raise FlickerStateError(f"Flicker service {self.name} is closed")

            if self._loop is not None:
                await self._retire(self._loop, pins)

            self.config = config
            self._loop = FlickerLoop(
                pins,
                config.interval_ms,
                policy,
                seed=config.seed,
                clock=self._clock,
                name=self.name,
                pin_timeout=self.pin_timeout,
            )
            self._loop.start()
            self.reconfigure_count += 1

        logger.info(f"Reconfigured {self.name}: {len(pins)} pins {pins.labels}")

    async def close(self) -> None:
        """Stop flickering and turn every pin off; later calls do nothing"""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._loop is not None:
                await self._retire(self._loop, None)
        logger.info(f"Flicker service {self.name} closed")

    async def _retire(self, loop: FlickerLoop, successor: Optional[PinSet]) -> None:
        """Stop a loop, then hand back the pins its successor does not keep"""
        if not await loop.stop(self.shutdown_timeout):
            logger.warning(f"Keeping pins of {self.name} claimed until its old loop stops")
            return

        for board_name, names in loop.pins.dropped_by(successor).items():
            board = loop.pins.board_handles.get(board_name)
            if board is None:
                continue
            try:
                board.release_pins(names)
            except Exception as e:
                logger.error(f"Failed to release {names} on board {board_name}: {e}")

    async def do_command(self, command: Dict[str, Any]) -> Dict[str, Any]:
        """Generic command surface; this service accepts no commands"""
        raise NotSupportedError(f"{self.name} does not support commands")

    def get_state(self) -> Dict[str, Any]:
        """Get service state"""
        loop_state = self._loop.get_state() if self._loop else None
        return {
            "name": self.name,
            "model": MODEL,
            "closed": self._closed,
            "state": self._loop.state.name if self._loop else LoopState.IDLE.name,
            "boards": [b.board for b in self.config.boards],
            "reconfigure_count": self.reconfigure_count,
            "loop": loop_state,
        }

    async def __aenter__(self) -> "GpioFlicker":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
