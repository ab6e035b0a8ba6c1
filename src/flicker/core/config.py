"""Flicker service configuration."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from ..common.defaults import FlickerDefaults
from ..common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class BoardConfig(BaseModel):
    """One board and the ordered pin names to flicker on it"""

    board: str = ""
    pins: List[str] = Field(default_factory=list)

    @field_validator("board", mode="before")
    @classmethod
    def none_board_is_empty(cls, v):
        return "" if v is None else v

    @field_validator("pins", mode="before")
    @classmethod
    def none_pins_is_empty(cls, v):
        return [] if v is None else v


class FlickerConfig(BaseModel):
    """Flicker service attributes.

    Accepts both the multi-board shape::

        {"boards": [{"board": "b1", "pins": ["p1", "p2"]}], "interval_ms": 100}

    and the single-board shape::

        {"board": "b1", "pins": ["p1", "p2"], "interval_ms": 100}

    The single-board form is folded into ``boards`` on load. ``interval_ms``
    is passed through as-is.
    """

    boards: List[BoardConfig] = Field(default_factory=list)
    interval_ms: int = FlickerDefaults.DEFAULT_INTERVAL_MS
    policy: str = FlickerDefaults.DEFAULT_POLICY
    parameters: Dict[str, Any] = Field(default_factory=dict)
    seed: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def fold_single_board(cls, data: Any) -> Any:
        """Normalize the single-board shape into the multi-board one"""
        if not isinstance(data, dict) or "board" not in data:
            return data
        data = dict(data)
        board = {"board": data.pop("board"), "pins": data.pop("pins", [])}
        data["boards"] = [board] + list(data.get("boards") or [])
        return data

    @field_validator("policy")
    @classmethod
    def normalize_policy(cls, v: str) -> str:
        return v.strip().lower()

    def validate_config(self, path: str = "") -> List[str]:
        """Check required fields and return the implicit dependencies.

        The dependencies are the board names in declared order; the host
        uses them to make sure those boards exist before this service is
        built. ``path`` is the location of this service in the host config
        and is only used in error messages.
        """
        board_names = []
        for i, board in enumerate(self.boards):
            if not board.board:
                prefix = f"{path}: " if path else ""
                raise ConfigurationError(f"{prefix}board is required on board number {i}")
            board_names.append(board.board)
        return board_names

    @property
    def pin_count(self) -> int:
        return sum(len(board.pins) for board in self.boards)

    @classmethod
    def from_dict(cls, attributes: Dict[str, Any]) -> "FlickerConfig":
        """Build a config from raw attributes, mapping parse errors to ConfigurationError"""
        try:
            return cls.model_validate(attributes)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid flicker config: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "FlickerConfig":
        """Load a config from a YAML or JSON file"""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    raw = json.load(f)
                else:
                    raw = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config from {path}: {e}")
            raise ConfigurationError(f"Could not read config file {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_dict(raw)
