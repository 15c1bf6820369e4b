# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
FP32 Reference Inference Engine

Runs a Model IR on the host with the same semantics as the emitted sketch,
by chaining the atomic operations:

1. dense + ReLU for hidden layers
2. dense + softmax (max subtraction) or dense + sigmoid for the output layer
3. argmax with first-max tie-break, PWM duty mapping and message framing

Used to derive golden prediction messages for a compiled model.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from ..atomic_ops import (
    SlidingWindowBuffer,
    argmax_first,
    dense_fp32_reference,
    relu_fp32_reference,
    sigmoid_fp32_reference,
    softmax_fp32_reference,
)
from ..codegen.constants import PWM_MAX
from ..codegen.errors import WindowSizeMismatch
from ..codegen.ir import ModelIR, ModelMetadata
from ..codegen.protocol import frame_classification, frame_regression
from ..codegen.sensors import SensorProfile


def pwm_duty(value: float) -> int:
    """round(clamp(value, 0, 1) * 255), halves rounded up like lroundf."""
    clamped = min(1.0, max(0.0, float(value)))
    return int(math.floor(clamped * PWM_MAX + 0.5))


@dataclass(frozen=True)
class InferenceResult:
    outputs: np.ndarray
    message: str
    predicted_index: Optional[int] = None
    label: Optional[str] = None
    pwm: Tuple[int, ...] = ()


class ReferenceInference:
    """Host-side twin of the emitted forward pass."""

    def __init__(self, ir: ModelIR, metadata: ModelMetadata):
        self.ir = ir
        self.metadata = metadata

    def forward(self, x: np.ndarray) -> np.ndarray:
        """Run all layers on one input window and return the activated outputs."""
        h = np.asarray(x, dtype=np.float32).reshape(-1)
        if h.size != self.ir.input_units:
            raise WindowSizeMismatch(
                f"Input has {h.size} values, model expects {self.ir.input_units}"
            )
        last = len(self.ir) - 1
        for idx, layer in enumerate(self.ir):
            h = dense_fp32_reference(h, layer.weight_matrix(), layer.bias)
            if idx < last:
                h = relu_fp32_reference(h)
        if self.metadata.is_classification:
            return softmax_fp32_reference(h)
        return sigmoid_fp32_reference(h)

    def predict(self, x: np.ndarray) -> InferenceResult:
        """Forward pass plus the message the board would send."""
        outputs = self.forward(x)
        if self.metadata.is_classification:
            index = argmax_first(outputs)
            label = self.metadata.output_labels[index]
            return InferenceResult(
                outputs=outputs,
                message=frame_classification(label, float(outputs[index])),
                predicted_index=index,
                label=label,
            )
        return InferenceResult(
            outputs=outputs,
            message=frame_regression([float(v) for v in outputs]),
            pwm=tuple(pwm_duty(v) for v in outputs),
        )

    def predict_stream(
        self,
        frames: Iterable[np.ndarray],
        sensor: SensorProfile,
        every: int = 1,
    ) -> List[InferenceResult]:
        """
        Feed raw sensor frames through the sliding window.

        Frames are normalized with the sensor profile before buffering. A
        prediction is made after every `every` frames once the window has
        been filled.
        """
        window = SlidingWindowBuffer(self.metadata.sample_window_size, sensor.frame_size)
        results: List[InferenceResult] = []
        for count, frame in enumerate(frames, start=1):
            window.push(sensor.normalize(np.asarray(frame, dtype=np.float32)))
            if window.filled and count % every == 0:
                results.append(self.predict(window.values()))
        return results
