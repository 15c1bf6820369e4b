# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Atomic Softmax Operation - FP32

Numerically stable softmax as emitted for classifiers: subtract the
maximum logit, exponentiate, normalize by the sum. Subtracting the maximum
keeps every exponent <= 0, so no term overflows and the largest term is 1.
"""

import numpy as np


def softmax_fp32_reference(logits: np.ndarray) -> np.ndarray:
    """FP32 softmax with max subtraction over a 1-D logit vector."""
    z = np.asarray(logits, dtype=np.float32).reshape(-1)
    if z.size == 0:
        raise ValueError("softmax of an empty vector")
    e = np.exp(z - z.max())
    return (e / e.sum()).astype(np.float32)


def argmax_first(values: np.ndarray) -> int:
    """Index of the maximum; ties resolve to the lowest index (strict > scan)."""
    values = np.asarray(values).reshape(-1)
    if values.size == 0:
        raise ValueError("argmax of an empty vector")
    best = 0
    for i in range(1, values.size):
        if values[i] > values[best]:
            best = i
    return best
