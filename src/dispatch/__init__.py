from __future__ import annotations

from typing import Dict, Type

from .directional import DirectionalSweepPolicy
from .interface import DispatchPolicy
from .opportunistic import OpportunisticFifoPolicy

__all__ = [
    "DirectionalSweepPolicy",
    "DispatchPolicy",
    "OpportunisticFifoPolicy",
    "POLICY_REGISTRY",
    "get_policy",
]


POLICY_REGISTRY: Dict[str, Type[DispatchPolicy]] = {
    "opportunistic": OpportunisticFifoPolicy,
    "directional": DirectionalSweepPolicy,
}


def get_policy(name: str, **kwargs) -> DispatchPolicy:
    cls = POLICY_REGISTRY.get(name.lower())
    if cls is None:
        raise ValueError(f"Unknown policy '{name}'. Available: {', '.join(POLICY_REGISTRY)}")
    return cls(**kwargs)
