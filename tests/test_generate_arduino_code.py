# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for codegen.generate_arduino_code."""

import dataclasses
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import numpy as np

from tinytrainer.codegen.constants import SNAPSHOT_DIR_ENV
from tinytrainer.codegen.errors import (
    InvalidOutputLabel,
    LayerChainMismatch,
    OutputCountMismatch,
    WindowSizeMismatch,
)
from tinytrainer.codegen.generate_arduino_code import (
    NUS_SERVICE_UUID,
    ArduinoCodeGenerator,
    TransportConfig,
    main,
    max_message_length,
)
from tinytrainer.codegen.ir import Layer, ModelIR, ModelMetadata, Variant
from tinytrainer.codegen.snapshots import load_model_snapshot, save_model_snapshot
from tinytrainer.codegen.targets import Nano33BLETarget, create_target


class _OffsetPinTarget(Nano33BLETarget):
    """Nano 33 BLE variant with a different PWM pin range."""

    def __init__(self, first_pin, pin_count):
        super().__init__()
        self._capabilities = dataclasses.replace(
            self._capabilities, first_pwm_pin=first_pin, pwm_pin_count=pin_count
        )


def _dense(name, n_in, n_out, seed):
    rng = np.random.default_rng(seed)
    return Layer(
        name=name,
        weights=rng.uniform(-1, 1, n_in * n_out),
        bias=rng.uniform(-1, 1, n_out),
        input_units=n_in,
        output_units=n_out,
    )


def _gesture_model(labels=("wave", "punch", "flex"), window=18):
    ir = ModelIR([_dense("dense", 18, 4, seed=0), _dense("dense_1", 4, len(labels), seed=1)])
    metadata = ModelMetadata(output_labels=labels, sample_window_size=window, variant=Variant.CLASSIFICATION)
    return ir, metadata


def _regression_model(labels=("x", "y")):
    ir = ModelIR([_dense("dense", 18, 6, seed=2), _dense("dense_1", 6, len(labels), seed=3)])
    metadata = ModelMetadata(output_labels=labels, sample_window_size=18, variant=Variant.REGRESSION)
    return ir, metadata


class TestClassificationSketch(unittest.TestCase):
    def setUp(self):
        ir, metadata = _gesture_model()
        self.generator = ArduinoCodeGenerator(ir, metadata)
        self.artifact = self.generator.generate_all()

    def test_three_files(self):
        self.assertEqual(sorted(self.artifact), ["README.md", "gesture_model.ino", "model_data.h"])

    def test_header_contents(self):
        header = self.artifact["model_data.h"]
        self.assertIn("#define INPUT_SIZE 18", header)
        self.assertIn("#define HIDDEN_UNITS_1 4", header)
        self.assertIn("#define NUM_OUTPUTS 3", header)
        self.assertIn('"wave",', header)
        self.assertIn('  "flex"\n};', header)
        self.assertIn("const float weights_dense_0[] PROGMEM = {", header)
        self.assertIn("const float bias_dense_1[] PROGMEM = {", header)
        self.assertTrue(header.rstrip().endswith("#endif // MODEL_DATA_H"))

    def test_sketch_forward_pass(self):
        sketch = self.artifact["gesture_model.ino"]
        self.assertIn('#include "model_data.h"', sketch)
        self.assertIn("#include <Arduino_LSM9DS1.h>", sketch)
        self.assertIn("#include <ArduinoBLE.h>", sketch)
        self.assertIn("float h1[HIDDEN_UNITS_1];", sketch)
        self.assertIn("float outputs[NUM_OUTPUTS];", sketch)
        self.assertIn("pgm_read_float_near(&weights_dense_0[j * HIDDEN_UNITS_1 + i])", sketch)
        self.assertIn("h1[i] = max(0.0f, sum);", sketch)
        self.assertIn("maxLogit", sketch)
        self.assertIn("reportPrediction(outputs);", sketch)

    def test_sketch_reports_with_protocol_format(self):
        sketch = self.artifact["gesture_model.ino"]
        self.assertIn('"%s,%.2f\\n"', sketch)
        self.assertIn("if (probs[i] > maxConf)", sketch)

    def test_sketch_transport_and_sensor(self):
        sketch = self.artifact["gesture_model.ino"]
        self.assertIn(NUS_SERVICE_UUID, sketch)
        self.assertIn('BLE.setLocalName("GestureRecognizer");', sketch)
        self.assertIn("const int TX_CAPACITY = 64;", sketch)
        self.assertIn("IMU.readAcceleration(ax, ay, az);", sketch)
        self.assertIn("const int FRAME_SIZE = 9;", sketch)
        self.assertIn("const unsigned long SAMPLE_INTERVAL = 20;", sketch)
        self.assertIn("void onSensorUnavailable()", sketch)
        self.assertIn("void onCommand(const String& command)", sketch)

    def test_readme_contents(self):
        readme = self.artifact["README.md"]
        self.assertIn("wave", readme)
        self.assertIn("Model architecture", readme)
        self.assertIn("| 0 | dense | 18 | 4 | relu |", readme)
        self.assertIn("| 1 | dense_1 | 4 | 3 | softmax |", readme)
        self.assertIn("Arduino_LSM9DS1", readme)

    def test_output_is_deterministic(self):
        ir, metadata = _gesture_model()
        again = ArduinoCodeGenerator(ir, metadata).generate_all()
        for filename in self.artifact:
            self.assertEqual(self.artifact[filename], again[filename], filename)

    def test_no_timestamp_by_default(self):
        for text in self.artifact.values():
            self.assertNotIn("Generated:", text)

    def test_timestamp_banner(self):
        ir, metadata = _gesture_model()
        artifact = ArduinoCodeGenerator(ir, metadata, generated_at="2026-01-01 12:00").generate_all()
        self.assertIn("// Generated: 2026-01-01 12:00", artifact["gesture_model.ino"])
        self.assertIn("// Generated: 2026-01-01 12:00", artifact["model_data.h"])

    def test_pipeline_stage_timings(self):
        context = self.generator.pipeline_context
        self.assertEqual(
            context.stage_order,
            ["validate", "build_layer_specs", "serialize_weights", "emit_sketch", "render_docs", "assemble"],
        )
        self.assertEqual(context.diagnostics["table_bytes"], 4 * (18 * 4 + 4 + 4 * 3 + 3))


class TestRegressionSketch(unittest.TestCase):
    def setUp(self):
        ir, metadata = _regression_model()
        self.artifact = ArduinoCodeGenerator(ir, metadata).generate_all()

    def test_three_files(self):
        self.assertEqual(sorted(self.artifact), ["README.md", "model_data.h", "regression_model.ino"])

    def test_pins_and_pwm(self):
        sketch = self.artifact["regression_model.ino"]
        self.assertIn("const int OUTPUT_PINS[NUM_OUTPUTS] = {2, 3};", sketch)
        self.assertIn("lroundf(constrain(value, 0.0f, 1.0f) * 255.0f)", sketch)
        self.assertIn("analogWrite(OUTPUT_PINS[i], pwmDuty(value));", sketch)

    def test_sigmoid_output_and_no_softmax(self):
        sketch = self.artifact["regression_model.ino"]
        self.assertIn("outputs[i] = 1.0f / (1.0f + expf(-sum));", sketch)
        self.assertNotIn("maxLogit", sketch)

    def test_message_format(self):
        sketch = self.artifact["regression_model.ino"]
        self.assertIn('",%.3f"', sketch)
        self.assertIn('BLE.setLocalName("Nano33BLE-Regression");', sketch)
        self.assertIn("const int TX_CAPACITY = 128;", sketch)

    def test_readme_lists_pins(self):
        readme = self.artifact["README.md"]
        self.assertIn("- **x**: pin 2", readme)
        self.assertIn("- **y**: pin 3", readme)
        self.assertIn("R,0.500,0.500", readme)

    def test_header_uses_eight_values_per_line(self):
        header = self.artifact["model_data.h"]
        lines = header.splitlines()
        start = lines.index("const float weights_dense_0[] PROGMEM = {")
        self.assertEqual(lines[start + 1].count("f,"), 8)


class TestTargetsAndSensors(unittest.TestCase):
    def test_color_sensor(self):
        ir = ModelIR([_dense("dense", 10, 2, seed=4)])
        metadata = ModelMetadata(output_labels=["red", "blue"], sample_window_size=10, variant="classification")
        artifact = ArduinoCodeGenerator(ir, metadata, sensor_name="color").generate_all()
        sketch = artifact["gesture_model.ino"]
        self.assertIn("#include <Arduino_APDS9960.h>", sketch)
        self.assertIn("APDS.readColor(r, g, b, c);", sketch)
        self.assertIn("frame[4] = 1.0f - constrain(p, 0, 255) / 255.0f;", sketch)

    def test_rev2_target(self):
        ir, metadata = _gesture_model()
        artifact = ArduinoCodeGenerator(ir, metadata, target_name="nano33ble_rev2").generate_all()
        self.assertIn("#include <Arduino_BMI270_BMM150.h>", artifact["gesture_model.ino"])

    def test_target_and_target_name_are_exclusive(self):
        ir, metadata = _gesture_model()
        with self.assertRaises(ValueError):
            ArduinoCodeGenerator(ir, metadata, target=create_target("nano33ble"), target_name="nano33ble")

    def test_unknown_names(self):
        ir, metadata = _gesture_model()
        with self.assertRaises(ValueError):
            ArduinoCodeGenerator(ir, metadata, target_name="uno")
        with self.assertRaises(ValueError):
            ArduinoCodeGenerator(ir, metadata, sensor_name="microphone")

    def test_output_pins_come_from_target(self):
        ir, metadata = _regression_model()
        artifact = ArduinoCodeGenerator(ir, metadata, target=_OffsetPinTarget(first_pin=5, pin_count=4)).generate_all()
        self.assertIn("const int OUTPUT_PINS[NUM_OUTPUTS] = {5, 6};", artifact["regression_model.ino"])
        self.assertIn("- **y**: pin 6", artifact["README.md"])

    def test_custom_transport(self):
        ir, metadata = _gesture_model()
        transport = TransportConfig.for_variant("classification", device_name="Wand")
        self.assertEqual(transport.tx_capacity, 64)
        artifact = ArduinoCodeGenerator(ir, metadata, transport=transport).generate_all()
        self.assertIn('BLE.setLocalName("Wand");', artifact["gesture_model.ino"])


class TestValidation(unittest.TestCase):
    def _generate(self, ir, metadata, **kwargs):
        return ArduinoCodeGenerator(ir, metadata, **kwargs).generate_all()

    def test_label_count_must_match_outputs(self):
        ir, _ = _gesture_model()
        metadata = ModelMetadata(output_labels=["a", "b"], sample_window_size=18, variant="classification")
        with self.assertRaises(OutputCountMismatch):
            self._generate(ir, metadata)

    def test_window_must_match_first_layer(self):
        ir, metadata = _gesture_model(window=27)
        with self.assertRaises(WindowSizeMismatch):
            self._generate(ir, metadata)

    def test_window_must_be_whole_frames(self):
        ir = ModelIR([_dense("dense", 10, 2, seed=5)])
        metadata = ModelMetadata(output_labels=["a", "b"], sample_window_size=10, variant="classification")
        with self.assertRaises(WindowSizeMismatch):
            self._generate(ir, metadata, sensor_name="imu")

    def test_layers_must_chain(self):
        ir = ModelIR([_dense("dense", 18, 4, seed=0), _dense("dense_1", 5, 3, seed=1)])
        _, metadata = _gesture_model()
        with self.assertRaises(LayerChainMismatch):
            self._generate(ir, metadata)

    def test_regression_tag_label(self):
        ir, metadata = _gesture_model(labels=("R", "S", "T"))
        with self.assertRaises(InvalidOutputLabel):
            self._generate(ir, metadata)

    def test_label_with_field_separator(self):
        ir, metadata = _gesture_model(labels=("R,x", "b", "c"))
        with self.assertRaises(InvalidOutputLabel):
            self._generate(ir, metadata)

    def test_pin_budget_comes_from_target(self):
        ir, metadata = _regression_model()
        with self.assertRaises(OutputCountMismatch):
            self._generate(ir, metadata, target=_OffsetPinTarget(first_pin=5, pin_count=1))

    def test_label_must_fit_transport(self):
        ir, metadata = _gesture_model(labels=("a" * 60, "b", "c"))
        self.assertGreater(max_message_length(metadata), 64)
        with self.assertRaises(InvalidOutputLabel):
            self._generate(ir, metadata)

    def test_regression_outputs_within_pin_budget(self):
        labels = tuple(f"o{i}" for i in range(13))
        ir, metadata = _regression_model(labels=labels)
        with self.assertRaises(OutputCountMismatch):
            self._generate(ir, metadata)

    def test_intervals_must_be_positive(self):
        ir, metadata = _gesture_model()
        with self.assertRaises(ValueError):
            ArduinoCodeGenerator(ir, metadata, sample_interval_ms=0)


class TestOutputAndSnapshots(unittest.TestCase):
    def test_write_all(self):
        ir, metadata = _gesture_model()
        with tempfile.TemporaryDirectory() as tmpdir:
            written = ArduinoCodeGenerator(ir, metadata).write_all(tmpdir)
            self.assertEqual(len(written), 3)
            for path in written:
                self.assertTrue(Path(path).exists())

    def test_write_all_needs_directory(self):
        ir, metadata = _gesture_model()
        with self.assertRaises(ValueError):
            ArduinoCodeGenerator(ir, metadata).write_all()

    def test_snapshot_env_exports_ir(self):
        ir, metadata = _gesture_model()
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.dict(os.environ, {SNAPSHOT_DIR_ENV: tmpdir}):
                generator = ArduinoCodeGenerator(ir, metadata)
            generator.generate_all()
            self.assertTrue(Path(generator.snapshot_path).exists())
            loaded_ir, loaded_metadata = load_model_snapshot(generator.snapshot_path)
            self.assertEqual(loaded_metadata, metadata)
            np.testing.assert_array_equal(loaded_ir[0].weights, ir[0].weights)

    def test_failed_compilation_writes_no_snapshot(self):
        ir, _ = _gesture_model()
        metadata = ModelMetadata(output_labels=["a", "b"], sample_window_size=18, variant="classification")
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.dict(os.environ, {SNAPSHOT_DIR_ENV: tmpdir}):
                generator = ArduinoCodeGenerator(ir, metadata)
            with self.assertRaises(OutputCountMismatch):
                generator.generate_all()
            self.assertIsNone(generator.snapshot_path)
            self.assertEqual(list(Path(tmpdir).iterdir()), [])

    def test_main_generates_from_snapshot(self):
        ir, metadata = _gesture_model()
        with tempfile.TemporaryDirectory() as tmpdir:
            snapshot = save_model_snapshot(str(Path(tmpdir) / "model_ir.json"), ir, metadata)
            out_dir = Path(tmpdir) / "generated"
            self.assertEqual(main(["--snapshot", snapshot, "--output", str(out_dir)]), 0)
            self.assertTrue((out_dir / "gesture_model.ino").exists())


if __name__ == "__main__":
    unittest.main()
