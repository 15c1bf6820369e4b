# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Model-side tools: weight extraction, compatibility scan, reference inference and the compile CLI."""

from .compile_model import compile_ir, compile_model
from .model_compatibility import (
    CompatibilityFinding,
    CompatibilityReport,
    check_compatibility,
    scan_model_layers,
    summarize_report,
)
from .model_extractor import (
    HasLearnableParameters,
    MaterializedLayer,
    adapt_layers,
    build_model_ir,
    extract_model_ir,
    materialize_layers,
)
from .reference_inference import InferenceResult, ReferenceInference, pwm_duty

__all__ = [
    "compile_ir",
    "compile_model",
    "CompatibilityFinding",
    "CompatibilityReport",
    "check_compatibility",
    "scan_model_layers",
    "summarize_report",
    "HasLearnableParameters",
    "MaterializedLayer",
    "adapt_layers",
    "build_model_ir",
    "extract_model_ir",
    "materialize_layers",
    "InferenceResult",
    "ReferenceInference",
    "pwm_duty",
]
