"""Flicker policies and the registry used to pick one by name."""

from typing import Any, Dict, List, Optional, Type

from ..common.exceptions import ValidationError
from .base import FlickerPolicy, Parameter, ToggleDecision
from .types import RandomPinPolicy, UniformPolicy, WavePolicy

POLICIES: Dict[str, Type[FlickerPolicy]] = {
    policy.name: policy for policy in (RandomPinPolicy, UniformPolicy, WavePolicy)
}


def create_policy(
    name: str, params: Optional[Dict[str, Any]] = None
) -> FlickerPolicy:
    """Instantiate a registered policy by name"""
    policy_class = POLICIES.get(name.lower())
    if policy_class is None:
        raise ValidationError(
            f"Unknown flicker policy: {name} (available: {', '.join(sorted(POLICIES))})"
        )
    return policy_class(params)


def get_available_policies() -> List[Dict[str, Any]]:
    """Describe every registered policy and its parameters"""
    return [
        {
            "name": name,
            "description": policy_class.description,
            "parameters": {p.name: p.describe() for p in policy_class.parameters},
        }
        for name, policy_class in POLICIES.items()
    ]


__all__ = [
    "FlickerPolicy",
    "Parameter",
    "POLICIES",
    "RandomPinPolicy",
    "ToggleDecision",
    "UniformPolicy",
    "WavePolicy",
    "create_policy",
    "get_available_policies",
]
