# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for codegen.weight_tables."""

import math
import unittest

import numpy as np

from tinytrainer.codegen.errors import NonFiniteWeight
from tinytrainer.codegen.ir import Layer, ModelIR, Variant
from tinytrainer.codegen.weight_tables import (
    format_float_literal,
    format_float_table_body,
    render_float_table,
    serialize_weight_tables,
    table_name,
    table_size_bytes,
    values_per_line_for,
)


def _random_layer(name, n_in, n_out, seed):
    rng = np.random.default_rng(seed)
    return Layer(
        name=name,
        weights=rng.standard_normal(n_in * n_out),
        bias=rng.standard_normal(n_out),
        input_units=n_in,
        output_units=n_out,
    )


def _table_lines(tables: str, name: str):
    """Value lines of one table declaration in a serialized header fragment."""
    lines = tables.splitlines()
    start = next(i for i, line in enumerate(lines) if line.startswith(f"const float {name}[]"))
    end = next(i for i in range(start, len(lines)) if lines[i] == "};")
    return lines[start + 1:end]


class TestFloatLiteral(unittest.TestCase):
    def test_six_decimals_and_suffix(self):
        self.assertEqual(format_float_literal(1.0), "1.000000f")
        self.assertEqual(format_float_literal(-1.5), "-1.500000f")
        self.assertEqual(format_float_literal(0.25), "0.250000f")

    def test_halves_round_away_from_zero(self):
        self.assertEqual(format_float_literal(0.0078125), "0.007813f")
        self.assertEqual(format_float_literal(-0.0078125), "-0.007813f")

    def test_no_negative_zero(self):
        self.assertEqual(format_float_literal(-0.0), "0.000000f")
        self.assertEqual(format_float_literal(-1e-9), "0.000000f")

    def test_float32_values_print_their_exact_value(self):
        self.assertEqual(format_float_literal(np.float32(0.1)), "0.100000f")

    def test_non_finite_raises(self):
        with self.assertRaises(NonFiniteWeight):
            format_float_literal(float("nan"))
        with self.assertRaises(NonFiniteWeight):
            format_float_literal(float("inf"))


class TestTableLayout(unittest.TestCase):
    def test_values_per_line_by_variant(self):
        self.assertEqual(values_per_line_for(Variant.CLASSIFICATION), 10)
        self.assertEqual(values_per_line_for("regression"), 8)

    def test_table_names(self):
        self.assertEqual(table_name(0, "weights"), "weights_dense_0")
        self.assertEqual(table_name(2, "bias"), "bias_dense_2")
        with self.assertRaises(ValueError):
            table_name(0, "scale")

    def test_trailing_comma_rules(self):
        body = format_float_table_body([1, 2, 3, 4, 5], values_per_line=2)
        self.assertEqual(
            body,
            "  1.000000f, 2.000000f,\n"
            "  3.000000f, 4.000000f,\n"
            "  5.000000f\n",
        )

    def test_exactly_full_last_line_has_no_comma(self):
        body = format_float_table_body([1, 2, 3, 4], values_per_line=2)
        self.assertTrue(body.endswith("3.000000f, 4.000000f\n"))

    def test_render_float_table_declaration(self):
        table = render_float_table("weights_dense_0", [0.5], values_per_line=10)
        self.assertEqual(table, "const float weights_dense_0[] PROGMEM = {\n  0.500000f\n};\n")

    def test_empty_qualifier(self):
        table = render_float_table("bias_dense_0", [0.5], values_per_line=10, flash_qualifier="")
        self.assertTrue(table.startswith("const float bias_dense_0[] = {"))


class TestSerializeWeightTables(unittest.TestCase):
    def test_line_counts_for_gesture_network(self):
        ir = ModelIR([
            _random_layer("dense", 900, 50, seed=0),
            _random_layer("dense_1", 50, 15, seed=1),
            _random_layer("dense_2", 15, 4, seed=2),
        ])
        tables = serialize_weight_tables(ir, Variant.CLASSIFICATION)
        expected = {
            "weights_dense_0": math.ceil(900 * 50 / 10),
            "bias_dense_0": 5,
            "weights_dense_1": math.ceil(50 * 15 / 10),
            "bias_dense_1": 2,
            "weights_dense_2": 6,
            "bias_dense_2": 1,
        }
        for name, count in expected.items():
            self.assertEqual(len(_table_lines(tables, name)), count, name)

    def test_regression_uses_eight_per_line(self):
        ir = ModelIR([_random_layer("dense", 15, 2, seed=3)])
        tables = serialize_weight_tables(ir, Variant.REGRESSION)
        self.assertEqual(len(_table_lines(tables, "weights_dense_0")), 4)
        first = _table_lines(tables, "weights_dense_0")[0]
        self.assertEqual(first.count("f"), 8)

    def test_output_is_deterministic(self):
        ir = ModelIR([_random_layer("dense", 30, 7, seed=4), _random_layer("dense_1", 7, 3, seed=5)])
        first = serialize_weight_tables(ir, Variant.CLASSIFICATION)
        second = serialize_weight_tables(ir, Variant.CLASSIFICATION)
        self.assertEqual(first, second)

    def test_layer_without_bias_has_no_bias_table(self):
        ir = ModelIR([Layer(name="dense", weights=[1, 2], input_units=2, output_units=1)])
        tables = serialize_weight_tables(ir, Variant.CLASSIFICATION)
        self.assertIn("weights_dense_0", tables)
        self.assertNotIn("bias_dense_0", tables)

    def test_row_major_order(self):
        ir = ModelIR([Layer(name="dense", weights=[1, 2, 3, 4, 5, 6], input_units=2, output_units=3)])
        tables = serialize_weight_tables(ir, Variant.CLASSIFICATION)
        self.assertIn("1.000000f, 2.000000f, 3.000000f, 4.000000f, 5.000000f, 6.000000f", tables)

    def test_explicit_zero_width_is_rejected(self):
        ir = ModelIR([_random_layer("dense", 4, 3, seed=7)])
        with self.assertRaises(ValueError):
            serialize_weight_tables(ir, Variant.CLASSIFICATION, values_per_line=0)

    def test_explicit_width_overrides_variant(self):
        ir = ModelIR([_random_layer("dense", 4, 3, seed=8)])
        tables = serialize_weight_tables(ir, Variant.CLASSIFICATION, values_per_line=4)
        self.assertEqual(len(_table_lines(tables, "weights_dense_0")), 3)

    def test_table_size_bytes(self):
        ir = ModelIR([_random_layer("dense", 4, 3, seed=6)])
        self.assertEqual(table_size_bytes(ir), 4 * (12 + 3))


if __name__ == "__main__":
    unittest.main()
