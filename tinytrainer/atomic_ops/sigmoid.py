# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Atomic Sigmoid Operation - FP32: 1 / (1 + exp(-x)) per element."""

import numpy as np


def sigmoid_fp32_reference(x: np.ndarray) -> np.ndarray:
    """
    FP32 logistic sigmoid.

    Large negative inputs overflow exp(-x) to +inf and yield exactly 0, the
    same as expf() on the board, so the result always lies in [0, 1].
    """
    x = np.asarray(x, dtype=np.float32)
    with np.errstate(over="ignore"):
        return (np.float32(1.0) / (np.float32(1.0) + np.exp(-x))).astype(np.float32)
