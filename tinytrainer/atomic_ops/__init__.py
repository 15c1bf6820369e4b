# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Atomic FP32 reference operations matching the emitted sketch.

Available operations:
- Dense: dense_fp32_reference (row-major inputs x outputs weights)
- ReLU: relu_fp32_reference (hidden layers)
- Softmax: softmax_fp32_reference (max subtraction), argmax_first
- Sigmoid: sigmoid_fp32_reference (regression outputs)
- Sliding window: slide_window, SlidingWindowBuffer
"""

from .dense import dense_fp32_reference
from .relu import relu_fp32_reference
from .sigmoid import sigmoid_fp32_reference
from .sliding_window import SlidingWindowBuffer, slide_window
from .softmax import argmax_first, softmax_fp32_reference

__all__ = [
    'dense_fp32_reference',
    'relu_fp32_reference',
    'sigmoid_fp32_reference',
    'softmax_fp32_reference',
    'argmax_first',
    'slide_window',
    'SlidingWindowBuffer',
]
