# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Arduino code generator: Model IR to a sketch, a weight header and a README.

Usage:
    python -m tinytrainer.codegen.generate_arduino_code --snapshot model_ir.json --output generated/

The generator consumes a Model IR (from the weight extractor or an IR
snapshot) plus metadata, and renders three Mako templates. Every step is
deterministic: re-running on the same IR yields byte-identical files.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from mako.lookup import TemplateLookup

from .constants import (
    CLASSIFICATION_SKETCH_FILENAME,
    MODEL_HEADER_FILENAME,
    PWM_MAX,
    README_FILENAME,
    REGRESSION_SKETCH_FILENAME,
    SNAPSHOT_DIR_ENV,
)
from .errors import InvalidOutputLabel, OutputCountMismatch, WindowSizeMismatch
from .ir import GeneratedArtifact, ModelIR, ModelMetadata, Variant
from .layers import OUTPUT_BUFFER, handle_activation, handle_dense
from .pipeline.pipeline import run_default_pipeline
from .protocol import (
    C_CLASSIFICATION_FORMAT,
    C_REGRESSION_VALUE_FORMAT,
    C_TERMINATOR,
    CONFIDENCE_DECIMALS,
    REGRESSION_DECIMALS,
    REGRESSION_TAG,
    frame_classification,
    frame_regression,
    validate_output_labels,
)
from .sensors import DEFAULT_SENSOR, SensorProfile, available_sensors, create_sensor
from .snapshots import SnapshotManager, load_model_snapshot
from .targets import DEFAULT_TARGET, TargetBase, available_targets, create_target
from .weight_tables import serialize_weight_tables, table_size_bytes

# Nordic UART Service identifiers
NUS_SERVICE_UUID = "6E400001-B5A3-F393-E0A9-E50E24DCCA9E"
NUS_RX_UUID = "6E400002-B5A3-F393-E0A9-E50E24DCCA9E"
NUS_TX_UUID = "6E400003-B5A3-F393-E0A9-E50E24DCCA9E"


@dataclass(frozen=True)
class TransportConfig:
    """BLE UART identifiers passed through to the sketch unchanged."""

    service_uuid: str = NUS_SERVICE_UUID
    tx_uuid: str = NUS_TX_UUID
    rx_uuid: str = NUS_RX_UUID
    device_name: str = "TinyTrainer"
    tx_capacity: int = 64
    rx_capacity: int = 20

    @classmethod
    def for_variant(cls, variant: Union[Variant, str], **overrides: Any) -> "TransportConfig":
        """Default transport per variant: device name and TX size differ."""
        if Variant.parse(variant) is Variant.CLASSIFICATION:
            defaults = {"device_name": "GestureRecognizer", "tx_capacity": 64}
        else:
            defaults = {"device_name": "Nano33BLE-Regression", "tx_capacity": 128}
        defaults.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**defaults)


@dataclass
class LayerBuildContext:
    """
    Mutable state passed through layer spec building.

    Layer handlers read the current buffer and unit count and append their
    emit specs and unit defines.
    """
    variant: Variant = Variant.CLASSIFICATION
    final_index: int = 0

    current_buffer: str = "input"
    current_units: int = 0
    current_units_symbol: str = "INPUT_SIZE"

    unit_defines: List[Tuple[str, int]] = field(default_factory=list)

    specs: List[dict] = field(default_factory=list)


def max_message_length(metadata: ModelMetadata) -> int:
    """Longest prediction message (terminator included) the sketch can send."""
    if metadata.is_classification:
        longest = max(len(label.encode("utf-8")) for label in metadata.output_labels)
        # "<label>,100.00\n"
        return longest + 1 + len("100") + 1 + CONFIDENCE_DECIMALS + 1
    # "R" + ",1.000" per value + "\n"
    return len(REGRESSION_TAG) + metadata.num_outputs * (3 + REGRESSION_DECIMALS) + 1


class ArduinoCodeGenerator:
    """
    Generate an Arduino sketch, weight header and README from a Model IR.

    Pipeline (see `pipeline/pipeline.py`):

    1. **Validate**: label count, layer chaining, window size, pin and
       message budgets. Any failure raises a CompilationError and nothing
       is rendered.
    2. **Layer specs**: each dense layer becomes an emit spec through the
       handlers in `layers/`; activations are chosen by position and variant.
    3. **Weight tables**: flash tables via `weight_tables.py`.
    4. **Templates**: Mako renders the sketch, header and README.

    Attributes:
        ir: the Model IR being compiled
        metadata: labels, window size and variant
        target: board target used for flash macros, pins and libraries
        sensor: sensor profile used for frame reads and normalization
    """

    def __init__(
        self,
        ir: ModelIR,
        metadata: ModelMetadata,
        target: Optional[TargetBase] = None,
        target_name: Optional[str] = None,
        sensor: Optional[SensorProfile] = None,
        sensor_name: Optional[str] = None,
        transport: Optional[TransportConfig] = None,
        sample_interval_ms: int = 20,
        prediction_interval_ms: int = 100,
        baud_rate: int = 115200,
        generated_at: Optional[str] = None,
        output_dir: Optional[Union[str, Path]] = None,
        verbose: bool = False,
    ):
        """
        Initialize code generator.

        Args:
            ir: Model IR from the weight extractor or a snapshot
            metadata: output labels, sample window size and variant
            target: Target object (mutually exclusive with target_name)
            target_name: Target name from registry (default: "nano33ble")
            sensor: Sensor profile (mutually exclusive with sensor_name)
            sensor_name: Sensor name from registry (default: "imu")
            transport: BLE identifiers; defaults depend on the variant
            generated_at: optional banner timestamp; omitted for reproducible output
        """
        self.ir = ir
        self.metadata = metadata
        self.template_dir = Path(__file__).parent / "templates"
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.verbose = verbose

        if target is not None and target_name is not None:
            raise ValueError("Specify either 'target' or 'target_name', not both.")
        if target is not None:
            self.target = target
        else:
            self.target = create_target(target_name or DEFAULT_TARGET)
        self.target.validate_required_capabilities()

        if sensor is not None and sensor_name is not None:
            raise ValueError("Specify either 'sensor' or 'sensor_name', not both.")
        self.sensor = sensor if sensor is not None else create_sensor(sensor_name or DEFAULT_SENSOR)
        if not self.target.supports_sensor(self.sensor.family):
            raise ValueError(
                f"Target '{self.target.name}' has no '{self.sensor.family}' sensor"
            )

        self.transport = transport or TransportConfig.for_variant(metadata.variant)

        if sample_interval_ms <= 0 or prediction_interval_ms <= 0:
            raise ValueError("Sample and prediction intervals must be positive")
        self.sample_interval_ms = int(sample_interval_ms)
        self.prediction_interval_ms = int(prediction_interval_ms)
        self.baud_rate = int(baud_rate)
        self.generated_at = generated_at

        # Snapshot export (disabled by default)
        self.snapshot_output_dir = os.getenv(SNAPSHOT_DIR_ENV, "").strip()
        self.snapshot_path = None

        # Filled by the pipeline
        self.layer_specs: List[dict] = []
        self.unit_defines: List[Tuple[str, int]] = []
        self.output_pins: List[int] = []
        self.table_bytes = 0
        self.pipeline_context = None
        self._lookup = None

    # ------------------------------------------------------------------
    # Filenames

    @property
    def sketch_filename(self) -> str:
        if self.metadata.is_classification:
            return CLASSIFICATION_SKETCH_FILENAME
        return REGRESSION_SKETCH_FILENAME

    @property
    def header_filename(self) -> str:
        return MODEL_HEADER_FILENAME

    @property
    def readme_filename(self) -> str:
        return README_FILENAME

    # ------------------------------------------------------------------
    # Pipeline stages

    def validate(self) -> None:
        """Run every precondition check. Raises a CompilationError subclass."""
        ir, metadata = self.ir, self.metadata
        ir.validate_chain()
        validate_output_labels(metadata.output_labels, metadata.variant)

        if metadata.num_outputs != ir.output_units:
            raise OutputCountMismatch(
                f"{metadata.num_outputs} output labels for a model with "
                f"{ir.output_units} output units"
            )
        if metadata.sample_window_size != ir.input_units:
            raise WindowSizeMismatch(
                f"Sample window of {metadata.sample_window_size} values does not match "
                f"the first layer's {ir.input_units} inputs"
            )
        frame_size = self.sensor.frame_size
        if metadata.sample_window_size % frame_size != 0:
            raise WindowSizeMismatch(
                f"Sample window of {metadata.sample_window_size} values is not a whole "
                f"number of {frame_size}-channel '{self.sensor.name}' frames"
            )

        if not metadata.is_classification:
            try:
                self.target.pwm_pins(metadata.num_outputs)
            except ValueError as exc:
                raise OutputCountMismatch(f"Too many regression outputs: {exc}") from exc

        longest = max_message_length(metadata)
        if longest > self.transport.tx_capacity:
            message = (
                f"Longest prediction message is {longest} bytes, TX characteristic "
                f"holds {self.transport.tx_capacity}"
            )
            if metadata.is_classification:
                raise InvalidOutputLabel(message)
            raise OutputCountMismatch(message)

        if self.verbose:
            print(f"  [Validate] {len(ir)} layers, {ir.parameter_count} parameters, "
                  f"{metadata.num_outputs} outputs ({metadata.variant.value})")

    def build_layer_specs(self) -> List[dict]:
        """
        Build the forward-pass plan (`self.layer_specs`).

        Walks the IR in order; each layer goes through the dense handler and
        then the activation handler.
        """
        ctx = LayerBuildContext(
            variant=self.metadata.variant,
            final_index=len(self.ir) - 1,
            current_units=self.ir.input_units,
        )
        for idx, layer in enumerate(self.ir):
            spec = {'index': idx, 'name': layer.name}
            handle_dense(self, ctx, layer.name, layer, spec, idx)
            handle_activation(self, ctx, layer.name, layer, spec, idx)

        self.layer_specs = ctx.specs
        self.unit_defines = ctx.unit_defines
        if self.metadata.is_classification:
            self.output_pins = []
        else:
            self.output_pins = self.target.pwm_pins(self.metadata.num_outputs)
        return self.layer_specs

    def serialize_weights(self) -> str:
        tables = serialize_weight_tables(
            self.ir, self.metadata.variant, flash_qualifier=self.target.flash_qualifier
        )
        self.table_bytes = table_size_bytes(self.ir)
        return tables

    def generate_sketch(self) -> str:
        template = (
            "classification_sketch.ino.mako"
            if self.metadata.is_classification
            else "regression_sketch.ino.mako"
        )
        return self.render_template(template)

    def generate_header(self, weight_tables: str) -> str:
        return self.render_template("model_data.h.mako", weight_tables=weight_tables)

    def generate_readme(self) -> str:
        return self.render_template(
            "readme.md.mako",
            architecture_rows=self._architecture_rows(),
            libraries=self.target.required_libraries(self.sensor.family),
            example_message=self.example_message().rstrip("\n"),
        )

    def generate_all(self) -> GeneratedArtifact:
        """Run the full pipeline and return the three generated files."""
        if self.verbose:
            print(f"[Codegen] Target: {self.target.display_name}, sensor: {self.sensor.name}")
        context = run_default_pipeline(self)
        self.pipeline_context = context
        if self.snapshot_output_dir:
            self._write_snapshot()
        if self.verbose:
            print(f"[OK] Generated {', '.join(context.artifact)}")
        return context.artifact

    def write_all(self, output_dir: Optional[Union[str, Path]] = None) -> List[Path]:
        """Generate and write the artifact files into output_dir."""
        out = output_dir if output_dir is not None else self.output_dir
        if out is None:
            raise ValueError("No output directory given")
        artifact = self.generate_all()
        written = artifact.write_to(out)
        if self.verbose:
            for path in written:
                print(f"  [OK] Wrote {path}")
        return list(written)

    # ------------------------------------------------------------------
    # Rendering helpers

    def render_template(self, template_name: str, **kwargs) -> str:
        """Render a Mako template to a string."""
        if self._lookup is None:
            # TemplateLookup lets templates include partials (e.g. `partials/*.mako`)
            self._lookup = TemplateLookup(
                directories=[str(self.template_dir)],
                input_encoding='utf-8',
            )
        template = self._lookup.get_template(template_name)

        kwargs.update({
            'generator': self,
            'title': self._title(),
            'ir': self.ir,
            'metadata': self.metadata,
            'target': self.target,
            'sensor': self.sensor,
            'sensor_header': self.target.sensor_library(self.sensor.family)[0],
            'transport_header': self.target.capabilities.transport_header,
            'transport': self.transport,
            'layer_specs': self.layer_specs,
            'unit_defines': self.unit_defines,
            'output_buffer': OUTPUT_BUFFER,
            'output_pins': self.output_pins,
            'output_pins_c': ", ".join(str(pin) for pin in self.output_pins),
            'pwm_max': PWM_MAX,
            'window_frames': self.sensor.frames_in_window(self.metadata.sample_window_size),
            'sample_interval_ms': self.sample_interval_ms,
            'prediction_interval_ms': self.prediction_interval_ms,
            'baud_rate': self.baud_rate,
            'generated_at': self.generated_at,
            'architecture': self._architecture_summary(),
            'table_bytes': self.table_bytes,
            'sketch_filename': self.sketch_filename,
            'header_filename': self.header_filename,
            'readme_filename': self.readme_filename,
            'c_classification_format': C_CLASSIFICATION_FORMAT,
            'c_regression_value_format': C_REGRESSION_VALUE_FORMAT,
            'c_terminator': C_TERMINATOR,
            'regression_tag': REGRESSION_TAG,
        })
        return template.render(**kwargs)

    def example_message(self) -> str:
        """A well-formed sample message for the README."""
        if self.metadata.is_classification:
            return frame_classification(self.metadata.output_labels[0], 0.925)
        return frame_regression([0.5] * self.metadata.num_outputs)

    def _title(self) -> str:
        kind = "Classifier" if self.metadata.is_classification else "Regression Model"
        return f"BLE {self.sensor.name.upper()} {kind}"

    def _architecture_summary(self) -> str:
        units = [str(self.ir.input_units)] + [str(layer.output_units) for layer in self.ir]
        return " -> ".join(units)

    def _architecture_rows(self) -> List[Dict[str, Any]]:
        rows = []
        dense_specs = [s for s in self.layer_specs if s['op'] == 'dense']
        softmax_names = {s['buffer'] for s in self.layer_specs if s['op'] == 'softmax'}
        for spec, layer in zip(dense_specs, self.ir):
            activation = spec['activation']
            if spec['output_buffer'] in softmax_names:
                activation = 'softmax'
            rows.append({
                'index': spec['index'],
                'name': spec['name'],
                'in_units': spec['in_units'],
                'out_units': spec['out_units'],
                'activation': activation,
                'parameters': layer.parameter_count,
            })
        return rows

    def _write_snapshot(self) -> None:
        manager = SnapshotManager(
            self.snapshot_output_dir,
            base_extra={'target': self.target.name, 'sensor': self.sensor.name},
        )
        self.snapshot_path = manager.write(self.ir, self.metadata)
        if self.verbose:
            print(f"  [Snapshot] Wrote {self.snapshot_path}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate an Arduino sketch from a Model IR snapshot")
    parser.add_argument('--snapshot', required=True, help="Model IR snapshot JSON")
    parser.add_argument('--output', default='generated', help="Output directory")
    parser.add_argument('--target', default=DEFAULT_TARGET, choices=available_targets())
    parser.add_argument('--sensor', default=DEFAULT_SENSOR, choices=available_sensors())
    args = parser.parse_args(argv)

    ir, metadata = load_model_snapshot(args.snapshot)
    generator = ArduinoCodeGenerator(
        ir, metadata, target_name=args.target, sensor_name=args.sensor, verbose=True
    )
    generator.write_all(args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
