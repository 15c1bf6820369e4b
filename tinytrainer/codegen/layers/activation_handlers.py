# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Activation handlers: ReLU on hidden layers, softmax or sigmoid on the output layer."""

from __future__ import annotations

from typing import Any, Dict

from ..ir import Variant

RELU_EXPR = "max(0.0f, sum)"
SIGMOID_EXPR = "1.0f / (1.0f + expf(-sum))"


def handle_relu(
    generator: Any,
    ctx: Any,
    layer_name: str,
    layer_data: Any,
    spec: Dict[str, Any],
) -> bool:
    """Fuse ReLU into the dense spec of a hidden layer."""
    spec['activation'] = 'relu'
    spec['activation_expr'] = RELU_EXPR
    return True


def handle_sigmoid(
    generator: Any,
    ctx: Any,
    layer_name: str,
    layer_data: Any,
    spec: Dict[str, Any],
) -> bool:
    """Fuse an element-wise logistic sigmoid into the output layer."""
    spec['activation'] = 'sigmoid'
    spec['activation_expr'] = SIGMOID_EXPR
    return True


def handle_softmax(
    generator: Any,
    ctx: Any,
    layer_name: str,
    layer_data: Any,
    spec: Dict[str, Any],
) -> bool:
    """Append a softmax stage over the output logits.

    The dense spec keeps raw logits; the softmax spec subtracts the maximum
    before exponentiating and normalizes by the sum.
    """
    spec['activation'] = 'linear'
    spec['activation_expr'] = 'sum'
    ctx.specs.append({
        'op': 'softmax',
        'name': f"{layer_name}_softmax",
        'buffer': spec['output_buffer'],
        'size_symbol': spec['out_symbol'],
    })
    return True


def handle_activation(
    generator: Any,
    ctx: Any,
    layer_name: str,
    layer_data: Any,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Select the activation for layer idx from its position and the model variant."""
    if idx != ctx.final_index:
        return handle_relu(generator, ctx, layer_name, layer_data, spec)
    if ctx.variant is Variant.CLASSIFICATION:
        return handle_softmax(generator, ctx, layer_name, layer_data, spec)
    return handle_sigmoid(generator, ctx, layer_name, layer_data, spec)
