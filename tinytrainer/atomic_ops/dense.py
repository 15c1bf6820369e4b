# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Atomic Dense (Fully Connected) Operation - FP32

Mirrors the emitted sketch loop:

    out[i] = bias[i] + sum_j in[j] * w[j * OUT + i]

with weights stored row-major as (inputs x outputs).
"""

from typing import Optional

import numpy as np


def dense_fp32_reference(
    x: np.ndarray,
    weights: np.ndarray,
    bias: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    FP32 dense layer.

    Args:
        x: Input vector [in_units]
        weights: Weight matrix [in_units, out_units] (or flattened row-major
            with out_units = weights.size // in_units)
        bias: Bias vector [out_units] (optional)

    Returns:
        Output vector [out_units] in float32
    """
    x = np.asarray(x, dtype=np.float32).reshape(-1)
    w = np.asarray(weights, dtype=np.float32)
    if w.ndim == 1:
        w = w.reshape(x.size, -1)
    if w.shape[0] != x.size:
        raise ValueError(f"Input has {x.size} values, weights expect {w.shape[0]}")
    y = x @ w
    if bias is not None:
        y = y + np.asarray(bias, dtype=np.float32).reshape(-1)
    return y.astype(np.float32)
