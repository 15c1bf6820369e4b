# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Weight serializer: renders Model IR tensors as flash-resident C float tables.

Every formatting rule lives in a small named function so that a change in
literal precision, line grouping or table naming is caught by unit tests
without diffing whole generated headers.

Layout of one table (values_per_line=4, 6 values):

    // Layer 0: dense_1 (3 -> 2)
    const float weights_dense_0[] PROGMEM = {
      0.100000f, -0.200000f, 0.300000f, 0.400000f,
      0.500000f, 0.600000f
    };
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Iterable, List, Optional, Sequence, Union

from .constants import (
    BIAS_TABLE_PREFIX,
    FLOAT_LITERAL_DECIMALS,
    FLOAT_LITERAL_SUFFIX,
    VALUES_PER_LINE_CLASSIFICATION,
    VALUES_PER_LINE_REGRESSION,
    WEIGHT_TABLE_PREFIX,
)
from .errors import NonFiniteWeight
from .ir import Layer, ModelIR, Variant

_QUANTUM = Decimal(1).scaleb(-FLOAT_LITERAL_DECIMALS)
# Wide enough for any finite float64 printed with fixed decimals
_LITERAL_CONTEXT = Context(prec=330)

TABLE_INDENT = "  "
VALUE_SEPARATOR = ", "


def format_float_literal(value: float) -> str:
    """
    Format one value as a C single-precision literal with fixed decimals.

    The exact binary value is rounded half away from zero, so 0.0078125
    prints as 0.007813f. Results that round to zero never carry a sign.
    """
    value = float(value)
    if not math.isfinite(value):
        raise NonFiniteWeight(f"Cannot serialize non-finite value {value!r}")
    rounded = Decimal(value).quantize(_QUANTUM, rounding=ROUND_HALF_UP, context=_LITERAL_CONTEXT)
    if rounded.is_zero():
        rounded = abs(rounded)
    return f"{rounded:f}{FLOAT_LITERAL_SUFFIX}"


def values_per_line_for(variant: Union[Variant, str]) -> int:
    """Return the table line width for a model variant."""
    if Variant.parse(variant) is Variant.CLASSIFICATION:
        return VALUES_PER_LINE_CLASSIFICATION
    return VALUES_PER_LINE_REGRESSION


def table_name(index: int, role: str) -> str:
    """Deterministic symbol for a layer table: role is 'weights' or 'bias'."""
    if role == "weights":
        return f"{WEIGHT_TABLE_PREFIX}{index}"
    if role == "bias":
        return f"{BIAS_TABLE_PREFIX}{index}"
    raise ValueError(f"Unknown table role '{role}' (expected 'weights' or 'bias')")


def format_float_table_body(values: Iterable[float], values_per_line: int) -> str:
    """
    Render table values as ceil(n / values_per_line) lines.

    A comma follows every value except the last of the whole table.
    """
    if values_per_line <= 0:
        raise ValueError(f"values_per_line must be positive, got {values_per_line}")
    literals = [format_float_literal(v) for v in values]
    lines: List[str] = []
    for start in range(0, len(literals), values_per_line):
        chunk = literals[start:start + values_per_line]
        line = TABLE_INDENT + VALUE_SEPARATOR.join(chunk)
        if start + values_per_line < len(literals):
            line += ","
        lines.append(line)
    return "\n".join(lines) + "\n" if lines else ""


def render_float_table(
    name: str,
    values: Sequence[float],
    values_per_line: int,
    flash_qualifier: str = "PROGMEM",
) -> str:
    """Render one complete `const float name[] QUALIFIER = {...};` declaration."""
    qualifier = f" {flash_qualifier}" if flash_qualifier else ""
    return (
        f"const float {name}[]{qualifier} = {{\n"
        f"{format_float_table_body(values, values_per_line)}"
        "};\n"
    )


def render_layer_tables(
    index: int,
    layer: Layer,
    values_per_line: int,
    flash_qualifier: str = "PROGMEM",
) -> str:
    """Render the weights table and, when present, the bias table of one layer."""
    parts = [
        f"// Layer {index}: {layer.name} ({layer.input_units} -> {layer.output_units})\n",
        render_float_table(table_name(index, "weights"), layer.weights, values_per_line, flash_qualifier),
    ]
    if layer.has_bias:
        parts.append("\n")
        parts.append(render_float_table(table_name(index, "bias"), layer.bias, values_per_line, flash_qualifier))
    return "".join(parts)


def serialize_weight_tables(
    ir: ModelIR,
    variant: Union[Variant, str],
    flash_qualifier: str = "PROGMEM",
    values_per_line: Optional[int] = None,
) -> str:
    """Render every layer's tables in IR order, separated by blank lines."""
    per_line = values_per_line if values_per_line is not None else values_per_line_for(variant)
    return "\n".join(
        render_layer_tables(idx, layer, per_line, flash_qualifier)
        for idx, layer in enumerate(ir)
    )


def table_size_bytes(ir: ModelIR) -> int:
    """Total flash bytes occupied by all float tables (4 bytes per value)."""
    return 4 * ir.parameter_count
