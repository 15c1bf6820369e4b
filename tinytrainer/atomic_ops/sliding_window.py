# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Atomic Sliding Window Update - FP32

The sketch keeps the most recent `window_size / frame_size` sensor frames
in one flat buffer. Each new frame shifts the buffer left by one frame and
is written into the freed tail.
"""

from typing import Optional

import numpy as np


def slide_window(buffer: np.ndarray, frame: np.ndarray) -> np.ndarray:
    """Return a new buffer: left shift by len(frame), then append frame."""
    buffer = np.asarray(buffer, dtype=np.float32).reshape(-1)
    frame = np.asarray(frame, dtype=np.float32).reshape(-1)
    f = frame.size
    if f == 0 or f > buffer.size:
        raise ValueError(f"Frame of {f} values does not fit a window of {buffer.size}")
    out = np.empty_like(buffer)
    out[:-f] = buffer[f:]
    out[-f:] = frame
    return out


class SlidingWindowBuffer:
    """Host-side model of the sketch's input buffer."""

    def __init__(self, window_size: int, frame_size: int, initial: Optional[np.ndarray] = None):
        if frame_size <= 0 or window_size <= 0 or window_size % frame_size != 0:
            raise ValueError(
                f"window_size ({window_size}) must be a positive multiple of frame_size ({frame_size})"
            )
        self.window_size = window_size
        self.frame_size = frame_size
        self.frames_collected = 0
        if initial is None:
            self._buffer = np.zeros(window_size, dtype=np.float32)
        else:
            self._buffer = np.asarray(initial, dtype=np.float32).reshape(window_size).copy()

    @property
    def frames_per_window(self) -> int:
        return self.window_size // self.frame_size

    @property
    def filled(self) -> bool:
        """True once a full window of frames has been pushed."""
        return self.frames_collected >= self.frames_per_window

    def push(self, frame: np.ndarray) -> None:
        frame = np.asarray(frame, dtype=np.float32).reshape(-1)
        if frame.size != self.frame_size:
            raise ValueError(f"Expected a frame of {self.frame_size} values, got {frame.size}")
        self._buffer = slide_window(self._buffer, frame)
        self.frames_collected += 1

    def values(self) -> np.ndarray:
        """Read-only copy of the current window, oldest frame first."""
        out = self._buffer.copy()
        out.setflags(write=False)
        return out

    def __len__(self) -> int:
        return self.window_size
