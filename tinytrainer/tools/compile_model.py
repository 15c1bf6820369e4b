# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Compile a trained dense network into an Arduino sketch, weight header and README.

Usage:
    tinytrainer-compile --model-file my_model.py --weights model.pt \\
        --labels wave,punch,flex --window-size 900 --output generated/
    tinytrainer-compile --snapshot model_ir.json --output generated/
"""

from __future__ import annotations

import argparse
import ast
import importlib.util
import inspect
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, Union

import torch
import torch.nn as nn

from ..codegen.errors import CompilationError
from ..codegen.generate_arduino_code import ArduinoCodeGenerator, TransportConfig
from ..codegen.ir import GeneratedArtifact, ModelIR, ModelMetadata, Variant
from ..codegen.sensors import DEFAULT_SENSOR, available_sensors
from ..codegen.snapshots import load_model_snapshot, save_model_snapshot
from ..codegen.targets import DEFAULT_TARGET, available_targets
from .model_compatibility import scan_model_layers, summarize_report
from .model_extractor import extract_model_ir


def compile_ir(
    ir: ModelIR,
    metadata: ModelMetadata,
    *,
    verbose: bool = False,
    **generator_options: Any,
) -> GeneratedArtifact:
    """Run the generator on an existing IR. Raises CompilationError on bad input."""
    generator = ArduinoCodeGenerator(ir, metadata, verbose=verbose, **generator_options)
    return generator.generate_all()


def compile_model(
    model: Any,
    output_labels: Sequence[str],
    sample_window_size: int,
    variant: Union[Variant, str] = Variant.CLASSIFICATION,
    *,
    verbose: bool = False,
    **generator_options: Any,
) -> GeneratedArtifact:
    """
    Compile a trained model into the three-file artifact.

    Args:
        model: trained model handle (nn.Module, Keras-style model or layer list)
        output_labels: class names (classification) or output names (regression)
        sample_window_size: number of input values per prediction
        variant: "classification" or "regression"
        generator_options: forwarded to ArduinoCodeGenerator (target_name,
            sensor_name, transport, intervals, ...)

    Either all three files are returned or a CompilationError is raised.
    """
    metadata = ModelMetadata(
        output_labels=tuple(output_labels),
        sample_window_size=sample_window_size,
        variant=Variant.parse(variant),
    )
    ir = extract_model_ir(model, verbose=verbose)
    return compile_ir(ir, metadata, verbose=verbose, **generator_options)


def _parse_init_kwargs(values: Optional[List[str]]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    if not values:
        return kwargs
    for item in values:
        if "=" not in item:
            raise ValueError(f"Invalid --init-kwarg '{item}'. Expected KEY=VALUE.")
        key, value = item.split("=", 1)
        kwargs[key] = ast.literal_eval(value)
    return kwargs


def _parse_labels(value: str) -> List[str]:
    return [label.strip() for label in value.split(",")]


def _load_module_from_path(path: Path):
    spec = importlib.util.spec_from_file_location(path.stem, str(path))
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Unable to import module from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _find_model_class(module, model_class: Optional[str]) -> Type[nn.Module]:
    if model_class:
        cls = getattr(module, model_class, None)
        if cls is None or not inspect.isclass(cls) or not issubclass(cls, nn.Module):
            raise ValueError(f"Class '{model_class}' not found or not an nn.Module in {module.__name__}.")
        return cls

    candidates = [
        obj for obj in vars(module).values()
        if inspect.isclass(obj) and issubclass(obj, nn.Module) and obj.__module__ == module.__name__
    ]
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise ValueError(
            f"No nn.Module subclass found in {module.__name__}. "
            "Use --model-class to select a class explicitly."
        )
    names = ", ".join(c.__name__ for c in candidates)
    raise ValueError(
        f"Multiple nn.Module classes found in {module.__name__}: {names}. "
        "Use --model-class to choose one."
    )


def load_model_from_pyfile(
    path: str,
    model_class: Optional[str],
    init_kwargs: Dict[str, Any],
    weights: Optional[str] = None,
) -> nn.Module:
    """
    Instantiate a model from a Python file and optionally load a state dict.

    If `model_class` is omitted and the module provides `create_model()`,
    that factory is used (when no init kwargs are passed).
    """
    module = _load_module_from_path(Path(path).resolve())
    if model_class is None and callable(getattr(module, "create_model", None)) and not init_kwargs:
        model = module.create_model()
        if not isinstance(model, nn.Module):
            raise ValueError(f"{module.__name__}.create_model() did not return nn.Module.")
    else:
        model = _find_model_class(module, model_class)(**init_kwargs)
    if weights:
        state_dict = torch.load(weights, map_location="cpu")
        model.load_state_dict(state_dict)
    return model.eval()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compile a trained dense network into an Arduino BLE inference sketch."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--snapshot", type=str, help="Model IR snapshot JSON (labels and window size included).")
    source.add_argument("--model-file", type=str, help="Path to Python file containing an nn.Module.")
    parser.add_argument("--model-class", type=str, default=None, help="Model class name in the module.")
    parser.add_argument(
        "--init-kwarg",
        action="append",
        default=[],
        help="Model constructor argument as KEY=VALUE (VALUE parsed with Python literal_eval).",
    )
    parser.add_argument("--weights", type=str, default=None, help="Optional state dict saved with torch.save.")
    parser.add_argument("--labels", type=_parse_labels, default=None, help="Comma-separated output labels.")
    parser.add_argument(
        "--variant",
        default=Variant.CLASSIFICATION.value,
        choices=[v.value for v in Variant],
    )
    parser.add_argument("--window-size", type=int, default=None, help="Input values per prediction.")
    parser.add_argument("--target", default=DEFAULT_TARGET, choices=available_targets())
    parser.add_argument("--sensor", default=DEFAULT_SENSOR, choices=available_sensors())
    parser.add_argument("--sample-interval-ms", type=int, default=20)
    parser.add_argument("--prediction-interval-ms", type=int, default=100)
    parser.add_argument("--baud-rate", type=int, default=115200)
    parser.add_argument("--device-name", type=str, default=None, help="BLE advertised name.")
    parser.add_argument("--timestamp", type=str, default=None, help="Banner timestamp written into the files.")
    parser.add_argument("--output", type=str, default="generated", help="Output directory.")
    parser.add_argument("--save-snapshot", type=str, default=None, help="Also write the Model IR snapshot here.")
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Validate the model and print the compatibility report without writing files.",
    )
    return parser.parse_args(argv)


def _build_inputs(args: argparse.Namespace):
    if args.snapshot:
        ir, metadata = load_model_snapshot(args.snapshot)
        if args.labels is not None or args.window_size is not None:
            metadata = ModelMetadata(
                output_labels=tuple(args.labels) if args.labels is not None else metadata.output_labels,
                sample_window_size=args.window_size or metadata.sample_window_size,
                variant=metadata.variant,
            )
        return ir, metadata

    if args.labels is None or args.window_size is None:
        raise ValueError("--model-file requires --labels and --window-size.")
    model = load_model_from_pyfile(
        args.model_file, args.model_class, _parse_init_kwargs(args.init_kwarg), args.weights
    )
    report = scan_model_layers(model)
    print(summarize_report(report))
    if not report.compatible:
        raise CompilationError("Model contains layers that cannot be compiled.")
    metadata = ModelMetadata(
        output_labels=tuple(args.labels),
        sample_window_size=args.window_size,
        variant=Variant.parse(args.variant),
    )
    return extract_model_ir(model, verbose=True), metadata


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        ir, metadata = _build_inputs(args)
        generator = ArduinoCodeGenerator(
            ir,
            metadata,
            target_name=args.target,
            sensor_name=args.sensor,
            transport=TransportConfig.for_variant(metadata.variant, device_name=args.device_name),
            sample_interval_ms=args.sample_interval_ms,
            prediction_interval_ms=args.prediction_interval_ms,
            baud_rate=args.baud_rate,
            generated_at=args.timestamp,
            verbose=True,
        )
        if args.check_only:
            generator.validate()
            print("[OK] Model can be compiled")
            return 0
        if args.save_snapshot:
            path = save_model_snapshot(
                args.save_snapshot, ir, metadata,
                extra={"target": args.target, "sensor": args.sensor},
            )
            print(f"  [Snapshot] Wrote {path}")
        generator.write_all(args.output)
    except (CompilationError, ValueError) as exc:
        print(f"ERROR: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
