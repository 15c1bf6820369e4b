# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Layer handler modules for forward-pass spec building."""

from .activation_handlers import (
    handle_activation,
    handle_relu,
    handle_sigmoid,
    handle_softmax,
)
from .dense_handlers import (
    OUTPUT_BUFFER,
    OUTPUT_UNITS_SYMBOL,
    handle_dense,
    hidden_units_symbol,
)

__all__ = [
    "OUTPUT_BUFFER",
    "OUTPUT_UNITS_SYMBOL",
    "hidden_units_symbol",
    "handle_dense",
    "handle_activation",
    "handle_relu",
    "handle_sigmoid",
    "handle_softmax",
]
