# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Board target package."""

from __future__ import annotations

from typing import Dict, List, Type

from .nano33_ble_rev2_target import Nano33BLERev2Target
from .nano33_ble_target import Nano33BLETarget
from .target_base import BoardCapabilities, TargetBase, assign_output_pins

DEFAULT_TARGET = Nano33BLETarget.name

TARGET_REGISTRY: Dict[str, Type[TargetBase]] = {
    Nano33BLETarget.name: Nano33BLETarget,
    Nano33BLERev2Target.name: Nano33BLERev2Target,
}


def create_target(name: str) -> TargetBase:
    """Create a target by canonical name."""
    canonical = (name or "").strip().lower()
    target_cls = TARGET_REGISTRY.get(canonical)
    if target_cls is None:
        available = ", ".join(sorted(TARGET_REGISTRY))
        raise ValueError(f"Unknown target '{name}'. Available targets: {available}")
    return target_cls()


def available_targets() -> List[str]:
    """Return sorted list of available target names."""
    return sorted(TARGET_REGISTRY.keys())


__all__ = [
    "Nano33BLETarget",
    "Nano33BLERev2Target",
    "BoardCapabilities",
    "TargetBase",
    "assign_output_pins",
    "DEFAULT_TARGET",
    "TARGET_REGISTRY",
    "create_target",
    "available_targets",
]
