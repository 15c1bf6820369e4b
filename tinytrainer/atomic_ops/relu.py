# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Atomic ReLU Operation - FP32 (hidden layers: max(0, x))."""

import numpy as np


def relu_fp32_reference(x: np.ndarray) -> np.ndarray:
    """FP32 ReLU reference implementation."""
    return np.maximum(np.float32(0.0), np.asarray(x, dtype=np.float32))
