# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""tinytrainer: compile trained dense networks into Arduino BLE inference sketches."""

from .codegen import (
    ArduinoCodeGenerator,
    CompilationError,
    GeneratedArtifact,
    ModelIR,
    ModelMetadata,
    TransportConfig,
    Variant,
)
from .tools import ReferenceInference, compile_ir, compile_model, extract_model_ir

__version__ = "0.1.0"

__all__ = [
    "ArduinoCodeGenerator",
    "CompilationError",
    "GeneratedArtifact",
    "ModelIR",
    "ModelMetadata",
    "TransportConfig",
    "Variant",
    "ReferenceInference",
    "compile_ir",
    "compile_model",
    "extract_model_ir",
]
