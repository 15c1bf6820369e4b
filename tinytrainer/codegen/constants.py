# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Constants used across the codegen module.

These constants fix the numeric formatting and naming rules of the generated
artifacts so that re-running the compiler yields byte-identical output.
"""

# Decimal digits printed for every weight/bias literal
FLOAT_LITERAL_DECIMALS = 6

# Single-precision suffix appended to every literal
FLOAT_LITERAL_SUFFIX = "f"

# Values per line in flash tables, per model variant
VALUES_PER_LINE_CLASSIFICATION = 10
VALUES_PER_LINE_REGRESSION = 8

# Table name prefixes (suffixed with the dense layer index)
WEIGHT_TABLE_PREFIX = "weights_dense_"
BIAS_TABLE_PREFIX = "bias_dense_"

# Artifact filenames
CLASSIFICATION_SKETCH_FILENAME = "gesture_model.ino"
REGRESSION_SKETCH_FILENAME = "regression_model.ino"
MODEL_HEADER_FILENAME = "model_data.h"
README_FILENAME = "README.md"

# PWM duty cycle range for regression outputs
PWM_MAX = 255

# Environment variable enabling IR snapshot export during generation
SNAPSHOT_DIR_ENV = "TINYTRAINER_SNAPSHOT_DIR"
