# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Arduino Nano 33 BLE Sense Rev2 target."""

from __future__ import annotations

from .nano33_ble_target import NANO33_FLASH_BYTES, NANO33_RAM_BYTES, Nano33BLETarget
from .target_base import BoardCapabilities


class Nano33BLERev2Target(Nano33BLETarget):
    """Rev2 board: same MCU and pinout, BMI270/BMM150 in place of the LSM9DS1."""

    name = "nano33ble_rev2"
    display_name = "Arduino Nano 33 BLE Sense Rev2"

    def __init__(self) -> None:
        self._capabilities = BoardCapabilities(
            flash_qualifier="PROGMEM",
            flash_read_macro="pgm_read_float_near",
            first_pwm_pin=2,
            pwm_pin_count=12,
            flash_bytes=NANO33_FLASH_BYTES,
            ram_bytes=NANO33_RAM_BYTES,
            sensor_libraries={
                # Arduino_BMI270_BMM150 exposes the same IMU object API
                "imu": ("Arduino_BMI270_BMM150.h", "Arduino_BMI270_BMM150"),
                "color": ("Arduino_APDS9960.h", "Arduino_APDS9960"),
            },
        )
