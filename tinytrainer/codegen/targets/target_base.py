# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Board target abstraction primitives for sketch generation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class BoardCapabilities:
    """Board features the emitted sketch relies on."""

    flash_qualifier: Optional[str]
    flash_read_macro: Optional[str]
    first_pwm_pin: Optional[int]
    pwm_pin_count: Optional[int]
    flash_bytes: Optional[int]
    ram_bytes: Optional[int]
    # Sensor family -> (header, Arduino library name)
    sensor_libraries: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    transport_header: str = "ArduinoBLE.h"
    transport_library: str = "ArduinoBLE"


def assign_output_pins(num_outputs: int, first_pin: int = 2) -> List[int]:
    """PWM pins for regression outputs: first_pin, first_pin + 1, ..."""
    if num_outputs < 0:
        raise ValueError(f"num_outputs must be non-negative, got {num_outputs}")
    return [first_pin + i for i in range(num_outputs)]


class TargetBase(ABC):
    """Minimal target contract used by sketch generation."""

    name = "target_base"
    display_name = "Generic Board"
    fqbn = ""

    @property
    @abstractmethod
    def capabilities(self) -> BoardCapabilities:
        """Return board capabilities."""

    def validate_required_capabilities(self) -> None:
        """
        Validate that required capabilities are present.

        These must be explicit so a new board never silently inherits the
        Nano 33 BLE flash macros or pin numbering.
        """
        caps = self.capabilities
        missing = []
        if caps.flash_read_macro is None:
            missing.append("capabilities.flash_read_macro")
        if caps.first_pwm_pin is None:
            missing.append("capabilities.first_pwm_pin")
        if caps.pwm_pin_count is None:
            missing.append("capabilities.pwm_pin_count")

        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"Target '{self.name}' is missing required capabilities: {missing_list}"
            )

    @property
    def flash_qualifier(self) -> str:
        return self.capabilities.flash_qualifier or ""

    @property
    def flash_read_macro(self) -> str:
        return self.capabilities.flash_read_macro

    def sensor_library(self, family: str) -> Tuple[str, str]:
        """Return (header, library) for a sensor family or raise ValueError."""
        libraries = self.capabilities.sensor_libraries
        if family not in libraries:
            available = ", ".join(sorted(libraries))
            raise ValueError(
                f"Target '{self.name}' has no '{family}' sensor. Available: {available}"
            )
        return libraries[family]

    def supports_sensor(self, family: str) -> bool:
        return family in self.capabilities.sensor_libraries

    def pwm_pins(self, count: int) -> List[int]:
        """Consecutive PWM pins starting at the first PWM pin."""
        caps = self.capabilities
        if count > caps.pwm_pin_count:
            raise ValueError(
                f"Target '{self.name}' offers {caps.pwm_pin_count} PWM pins, {count} requested"
            )
        return assign_output_pins(count, caps.first_pwm_pin)

    @abstractmethod
    def required_libraries(self, sensor_family: str) -> List[str]:
        """Arduino libraries to install for a sketch using the given sensor."""
