# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Codegen pass pipeline."""

from .context import PipelineContext
from .pass_base import CodegenPass
from .pipeline import (
    AssembleArtifactPass,
    BuildLayerSpecsPass,
    CodegenPipeline,
    EmitSketchPass,
    RenderDocsPass,
    SerializeWeightsPass,
    ValidateModelPass,
    build_default_pipeline,
    run_default_pipeline,
)

__all__ = [
    "PipelineContext",
    "CodegenPass",
    "CodegenPipeline",
    "ValidateModelPass",
    "BuildLayerSpecsPass",
    "SerializeWeightsPass",
    "EmitSketchPass",
    "RenderDocsPass",
    "AssembleArtifactPass",
    "build_default_pipeline",
    "run_default_pipeline",
]
