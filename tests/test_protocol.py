# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the prediction wire protocol."""

import unittest

from tinytrainer.codegen.errors import InvalidOutputLabel, ProtocolError
from tinytrainer.codegen.ir import Variant
from tinytrainer.codegen.protocol import (
    ClassificationMessage,
    RegressionMessage,
    frame_classification,
    frame_regression,
    parse_message,
    validate_output_labels,
)


class TestFraming(unittest.TestCase):
    def test_classification_message(self):
        self.assertEqual(frame_classification("wave", 0.925), "wave,92.50\n")
        self.assertEqual(frame_classification("flex", 1.0), "flex,100.00\n")

    def test_regression_message(self):
        self.assertEqual(frame_regression([0.847, 0.234]), "R,0.847,0.234\n")

    def test_regression_values_are_clamped(self):
        self.assertEqual(frame_regression([1.5, -0.2]), "R,1.000,0.000\n")

    def test_regression_needs_values(self):
        with self.assertRaises(ValueError):
            frame_regression([])


class TestParsing(unittest.TestCase):
    def test_parse_classification(self):
        message = parse_message("wave,92.50\n")
        self.assertEqual(message, ClassificationMessage(label="wave", confidence=92.5))

    def test_parse_regression(self):
        message = parse_message("R,0.622,0.378\n")
        self.assertIsInstance(message, RegressionMessage)
        self.assertEqual(message.values, (0.622, 0.378))

    def test_terminator_is_optional(self):
        self.assertEqual(parse_message("punch,33.33").label, "punch")

    def test_malformed_messages(self):
        for line in ["", "\n", "wave", "wave,92.5", ",92.50", "R,0.5", "R,1.500", "R,"]:
            with self.subTest(line=line):
                with self.assertRaises(ProtocolError):
                    parse_message(line)

    def test_framed_messages_parse_back(self):
        self.assertEqual(parse_message(frame_classification("b", 0.5)).confidence, 50.0)
        self.assertEqual(parse_message(frame_regression([0.0, 1.0])).values, (0.0, 1.0))


class TestLabelValidation(unittest.TestCase):
    def test_regression_tag_is_reserved_for_classification(self):
        with self.assertRaises(InvalidOutputLabel):
            validate_output_labels(["R", "S"], Variant.CLASSIFICATION)
        validate_output_labels(["R", "S"], Variant.REGRESSION)

    def test_unframeable_labels(self):
        for labels in [[], [""], ["  "], ["a\nb"], ['say "hi"'], ["back\\slash"]]:
            with self.subTest(labels=labels):
                with self.assertRaises(InvalidOutputLabel):
                    validate_output_labels(labels, "classification")

    def test_field_separator_is_rejected(self):
        for variant in (Variant.CLASSIFICATION, Variant.REGRESSION):
            with self.subTest(variant=variant):
                with self.assertRaises(InvalidOutputLabel):
                    validate_output_labels(["R,x", "b"], variant)

    def test_accepted_labels_parse_back(self):
        labels = ["wave", "R2", "left hand"]
        validate_output_labels(labels, Variant.CLASSIFICATION)
        for label in labels:
            self.assertEqual(parse_message(frame_classification(label, 0.5)).label, label)

    def test_ordinary_labels_pass(self):
        validate_output_labels(["wave", "punch", "flex"], "classification")


if __name__ == "__main__":
    unittest.main()
