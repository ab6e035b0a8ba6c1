"""Flicker policy implementations."""

from .random_pin import RandomPinPolicy
from .uniform import UniformPolicy
from .wave import WavePolicy

__all__ = [
    "RandomPinPolicy",
    "UniformPolicy",
    "WavePolicy",
]
