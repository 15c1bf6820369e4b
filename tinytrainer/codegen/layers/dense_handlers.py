# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Dense layer handlers used while building the forward-pass emit specs."""

from __future__ import annotations

from typing import Any, Dict

from ..errors import LayerChainMismatch
from ..weight_tables import table_name

OUTPUT_UNITS_SYMBOL = "NUM_OUTPUTS"
OUTPUT_BUFFER = "outputs"


def hidden_units_symbol(idx: int) -> str:
    """`#define` name carrying the output width of hidden layer idx."""
    return f"HIDDEN_UNITS_{idx + 1}"


def handle_dense(
    generator: Any,
    ctx: Any,
    layer_name: str,
    layer_data: Any,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle one dense layer.

    Reads `ctx.current_buffer` (input of this layer), names the output
    buffer and appends a 'dense' spec. Activation is decided afterwards by
    the activation handlers, which may fuse into this spec.
    """
    if layer_data.input_units != ctx.current_units:
        raise LayerChainMismatch(
            f"Layer '{layer_name}' expects {layer_data.input_units} inputs, "
            f"previous stage produces {ctx.current_units}"
        )

    is_final = idx == ctx.final_index
    out_symbol = OUTPUT_UNITS_SYMBOL if is_final else hidden_units_symbol(idx)
    out_buffer = OUTPUT_BUFFER if is_final else f"h{idx + 1}"

    spec.update({
        'op': 'dense',
        'input_buffer': ctx.current_buffer,
        'output_buffer': out_buffer,
        'in_units': layer_data.input_units,
        'out_units': layer_data.output_units,
        'in_symbol': ctx.current_units_symbol,
        'out_symbol': out_symbol,
        'weight_table': table_name(idx, "weights"),
        'bias_table': table_name(idx, "bias") if layer_data.has_bias else None,
        'flash_read': generator.target.flash_read_macro,
        'is_final': is_final,
        'activation': 'linear',
        'activation_expr': 'sum',
    })

    if not is_final:
        ctx.unit_defines.append((out_symbol, layer_data.output_units))
    ctx.specs.append(spec)

    ctx.current_buffer = out_buffer
    ctx.current_units = layer_data.output_units
    ctx.current_units_symbol = out_symbol
    return True
