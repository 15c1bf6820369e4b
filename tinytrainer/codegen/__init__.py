# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Model IR, weight serialization, wire protocol and Arduino sketch generation."""

from .errors import (
    CompilationError,
    EmptyModel,
    InvalidOutputLabel,
    LayerChainMismatch,
    MalformedLayerShape,
    NonFiniteWeight,
    OutputCountMismatch,
    ProtocolError,
    UnsupportedLayerKind,
    WindowSizeMismatch,
)
from .generate_arduino_code import ArduinoCodeGenerator, TransportConfig
from .ir import GeneratedArtifact, Layer, LayerKind, ModelIR, ModelMetadata, Variant
from .targets import assign_output_pins

__all__ = [
    "ArduinoCodeGenerator",
    "TransportConfig",
    "assign_output_pins",
    "GeneratedArtifact",
    "Layer",
    "LayerKind",
    "ModelIR",
    "ModelMetadata",
    "Variant",
    "CompilationError",
    "EmptyModel",
    "InvalidOutputLabel",
    "LayerChainMismatch",
    "MalformedLayerShape",
    "NonFiniteWeight",
    "OutputCountMismatch",
    "ProtocolError",
    "UnsupportedLayerKind",
    "WindowSizeMismatch",
]
