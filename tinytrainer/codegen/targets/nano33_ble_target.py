# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Arduino Nano 33 BLE Sense (rev1) target."""

from __future__ import annotations

from typing import List

from .target_base import BoardCapabilities, TargetBase

NANO33_FLASH_BYTES = 1024 * 1024
NANO33_RAM_BYTES = 256 * 1024


class Nano33BLETarget(TargetBase):
    """Nano 33 BLE Sense with the LSM9DS1 IMU and APDS9960 color sensor."""

    name = "nano33ble"
    display_name = "Arduino Nano 33 BLE Sense"
    fqbn = "arduino:mbed_nano:nano33ble"

    def __init__(self) -> None:
        self._capabilities = BoardCapabilities(
            flash_qualifier="PROGMEM",
            flash_read_macro="pgm_read_float_near",
            first_pwm_pin=2,
            pwm_pin_count=12,  # D2..D13
            flash_bytes=NANO33_FLASH_BYTES,
            ram_bytes=NANO33_RAM_BYTES,
            sensor_libraries={
                "imu": ("Arduino_LSM9DS1.h", "Arduino_LSM9DS1"),
                "color": ("Arduino_APDS9960.h", "Arduino_APDS9960"),
            },
        )

    @property
    def capabilities(self) -> BoardCapabilities:
        return self._capabilities

    def required_libraries(self, sensor_family: str) -> List[str]:
        _, sensor_lib = self.sensor_library(sensor_family)
        return [sensor_lib, self._capabilities.transport_library]
