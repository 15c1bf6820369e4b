# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Sensor profiles: how the emitted sketch reads and normalizes one input frame.

A frame is one reading of every channel of a sensor. The sliding input
buffer holds `sample_window_size / frame_size` frames. Each profile carries
the C statements that read raw values, one normalizing C expression per
channel, and the numpy equivalent of that normalization so host-side
reference inference sees the same numbers as the board.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import numpy as np

IMU_RANGE = 4.0
COLOR_FULL_SCALE = 4097.0
PROXIMITY_FULL_SCALE = 255.0


@dataclass(frozen=True)
class SensorProfile:
    name: str
    display_name: str
    family: str
    channels: Tuple[str, ...]
    begin_call: str
    ready_condition: str
    raw_declaration: str
    read_statements: Tuple[str, ...]
    channel_expressions: Tuple[str, ...]
    normalization_summary: str
    normalize: Callable[[np.ndarray], np.ndarray]

    @property
    def frame_size(self) -> int:
        return len(self.channels)

    def frames_in_window(self, sample_window_size: int) -> int:
        return sample_window_size // self.frame_size


def _normalize_imu(frame: np.ndarray) -> np.ndarray:
    return (np.clip(np.asarray(frame, dtype=np.float32), -IMU_RANGE, IMU_RANGE) / IMU_RANGE).astype(np.float32)


def _normalize_color(frame: np.ndarray) -> np.ndarray:
    raw = np.asarray(frame, dtype=np.float32)
    out = np.empty(5, dtype=np.float32)
    out[:4] = np.clip(raw[:4], 0.0, COLOR_FULL_SCALE) / COLOR_FULL_SCALE
    out[4] = 1.0 - np.clip(raw[4], 0.0, PROXIMITY_FULL_SCALE) / PROXIMITY_FULL_SCALE
    return out


_IMU_CHANNELS = ("ax", "ay", "az", "gx", "gy", "gz", "mx", "my", "mz")

IMU_PROFILE = SensorProfile(
    name="imu",
    display_name="9-axis IMU (accelerometer, gyroscope, magnetometer)",
    family="imu",
    channels=_IMU_CHANNELS,
    begin_call="IMU.begin()",
    ready_condition=(
        "IMU.accelerationAvailable() && "
        "IMU.gyroscopeAvailable() && "
        "IMU.magneticFieldAvailable()"
    ),
    raw_declaration="float " + ", ".join(_IMU_CHANNELS) + ";",
    read_statements=(
        "IMU.readAcceleration(ax, ay, az);",
        "IMU.readGyroscope(gx, gy, gz);",
        "IMU.readMagneticField(mx, my, mz);",
    ),
    channel_expressions=tuple(
        f"constrain({ch}, -{IMU_RANGE:.1f}f, {IMU_RANGE:.1f}f) / {IMU_RANGE:.1f}f" for ch in _IMU_CHANNELS
    ),
    normalization_summary="each axis clipped to [-4, 4] and divided by 4, giving [-1, 1]",
    normalize=_normalize_imu,
)

COLOR_PROFILE = SensorProfile(
    name="color",
    display_name="APDS9960 color and proximity sensor",
    family="color",
    channels=("r", "g", "b", "c", "p"),
    begin_call="APDS.begin()",
    ready_condition="APDS.colorAvailable() && APDS.proximityAvailable()",
    raw_declaration="int r, g, b, c, p;",
    read_statements=(
        "APDS.readColor(r, g, b, c);",
        "p = APDS.readProximity();",
    ),
    channel_expressions=tuple(
        [f"constrain({ch}, 0, {int(COLOR_FULL_SCALE)}) / {COLOR_FULL_SCALE:.1f}f" for ch in ("r", "g", "b", "c")]
        + [f"1.0f - constrain(p, 0, {int(PROXIMITY_FULL_SCALE)}) / {PROXIMITY_FULL_SCALE:.1f}f"]
    ),
    normalization_summary=(
        "red, green, blue and clear scaled from [0, 4097] to [0, 1]; "
        "proximity inverted so that 1 means touching"
    ),
    normalize=_normalize_color,
)

DEFAULT_SENSOR = IMU_PROFILE.name

SENSOR_REGISTRY: Dict[str, SensorProfile] = {
    IMU_PROFILE.name: IMU_PROFILE,
    COLOR_PROFILE.name: COLOR_PROFILE,
}


def create_sensor(name: str) -> SensorProfile:
    """Look up a sensor profile by canonical name."""
    canonical = (name or "").strip().lower()
    profile = SENSOR_REGISTRY.get(canonical)
    if profile is None:
        available = ", ".join(sorted(SENSOR_REGISTRY))
        raise ValueError(f"Unknown sensor '{name}'. Available sensors: {available}")
    return profile


def available_sensors() -> List[str]:
    """Return sorted list of available sensor names."""
    return sorted(SENSOR_REGISTRY.keys())
