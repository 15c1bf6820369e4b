# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Default pipeline runner and pass wrappers."""

import time
from typing import Iterable

from ..ir import GeneratedArtifact
from .context import PipelineContext
from .pass_base import CodegenPass


class CodegenPipeline:
    """Run a list of passes in order while collecting timing diagnostics."""

    def __init__(self, passes: Iterable[CodegenPass], verbose: bool = False):
        self.passes = list(passes)
        self.verbose = verbose

    def run(self, context: PipelineContext) -> PipelineContext:
        if self.verbose:
            print("\n[Pipeline] Running sketch generation pipeline...")
        for pipeline_pass in self.passes:
            stage_name = pipeline_pass.name
            start_s = time.perf_counter()
            pipeline_pass.run(context)
            elapsed_s = time.perf_counter() - start_s
            context.add_timing(stage_name, elapsed_s)
            context.diagnostics.setdefault("stages", []).append(
                {"name": stage_name, "elapsed_s": elapsed_s}
            )
            if self.verbose:
                print(f"  [Pipeline] {stage_name}: {elapsed_s:.3f}s")
        return context


class ValidateModelPass(CodegenPass):
    """Precondition checks on IR and metadata before anything is emitted."""

    name = "validate"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        generator.validate()
        context.diagnostics["layer_count"] = len(generator.ir)
        context.diagnostics["parameter_count"] = generator.ir.parameter_count


class BuildLayerSpecsPass(CodegenPass):
    """Walk the IR and build the per-layer emit specs."""

    name = "build_layer_specs"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        generator.build_layer_specs()
        context.diagnostics["layer_specs_count"] = len(generator.layer_specs)


class SerializeWeightsPass(CodegenPass):
    """Render the flash-resident weight and bias tables."""

    name = "serialize_weights"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        context.fragments["weight_tables"] = generator.serialize_weights()
        context.diagnostics["table_bytes"] = generator.table_bytes


class EmitSketchPass(CodegenPass):
    """Render the main sketch and the model header."""

    name = "emit_sketch"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        context.files[generator.sketch_filename] = generator.generate_sketch()
        context.files[generator.header_filename] = generator.generate_header(
            context.fragments["weight_tables"]
        )


class RenderDocsPass(CodegenPass):
    """Render the README."""

    name = "render_docs"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        context.files[generator.readme_filename] = generator.generate_readme()


class AssembleArtifactPass(CodegenPass):
    """Freeze the rendered files into a GeneratedArtifact."""

    name = "assemble"

    def run(self, context: PipelineContext) -> None:
        context.artifact = GeneratedArtifact(context.files)
        context.diagnostics["artifact_files"] = sorted(context.files)


def build_default_pipeline(verbose: bool = False) -> CodegenPipeline:
    """Build the default generation pipeline."""
    return CodegenPipeline(
        [
            ValidateModelPass(),
            BuildLayerSpecsPass(),
            SerializeWeightsPass(),
            EmitSketchPass(),
            RenderDocsPass(),
            AssembleArtifactPass(),
        ],
        verbose=verbose,
    )


def run_default_pipeline(generator) -> PipelineContext:
    """Run the default pipeline for a generator instance."""
    context = PipelineContext(generator=generator)
    return build_default_pipeline(verbose=getattr(generator, "verbose", False)).run(context)
