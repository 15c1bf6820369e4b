# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for codegen.snapshots IR export and reload."""

import json
import tempfile
import unittest
from pathlib import Path

import numpy as np

from tinytrainer.codegen.ir import Layer, ModelIR, ModelMetadata
from tinytrainer.codegen.snapshots import (
    SNAPSHOT_FILENAME,
    SNAPSHOT_KIND,
    SNAPSHOT_SCHEMA_VERSION,
    SnapshotManager,
    build_snapshot_payload,
    load_model_snapshot,
    load_snapshot,
    snapshot_from_payload,
)


def _model():
    ir = ModelIR([
        Layer(name="dense", weights=np.float32([0.1, -0.2, 0.3, 0.4]), bias=[0.5, -0.5], input_units=2, output_units=2),
        Layer(name="dense_1", weights=[1.0, 2.0], input_units=2, output_units=1),
    ])
    metadata = ModelMetadata(output_labels=["level"], sample_window_size=2, variant="regression")
    return ir, metadata


class TestSnapshotManager(unittest.TestCase):
    def test_write_and_reload(self):
        ir, metadata = _model()
        with tempfile.TemporaryDirectory() as tmpdir:
            manager = SnapshotManager(tmpdir, base_extra={"sensor": "imu"})
            path = manager.write(ir, metadata, extra={"run": "unit"})
            self.assertEqual(Path(path).name, SNAPSHOT_FILENAME)

            payload = load_snapshot(path)
            self.assertEqual(payload["schema_version"], SNAPSHOT_SCHEMA_VERSION)
            self.assertEqual(payload["kind"], SNAPSHOT_KIND)
            self.assertEqual(payload["extra"], {"sensor": "imu", "run": "unit"})
            self.assertIn("created_utc", payload)

            loaded_ir, loaded_metadata = load_model_snapshot(path)
            self.assertEqual(loaded_metadata, metadata)
            self.assertEqual(len(loaded_ir), 2)
            np.testing.assert_array_equal(loaded_ir[0].weights, ir[0].weights)
            np.testing.assert_array_equal(loaded_ir[0].bias, ir[0].bias)
            self.assertIsNone(loaded_ir[1].bias)

    def test_tagged_path(self):
        manager = SnapshotManager("/tmp/snapshots")
        self.assertTrue(manager.snapshot_path("before").endswith("before_" + SNAPSHOT_FILENAME))

    def test_json_is_canonical(self):
        ir, metadata = _model()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = SnapshotManager(tmpdir).write(ir, metadata)
            text = Path(path).read_text()
            payload = json.loads(text)
            self.assertEqual(text, json.dumps(payload, indent=2, sort_keys=True) + "\n")


class TestSnapshotSchema(unittest.TestCase):
    def test_wrong_kind_is_rejected(self):
        ir, metadata = _model()
        payload = build_snapshot_payload(ir=ir, metadata=metadata)
        payload["kind"] = "something.else"
        with self.assertRaises(ValueError):
            snapshot_from_payload(payload)

    def test_major_version_mismatch_is_rejected(self):
        ir, metadata = _model()
        payload = build_snapshot_payload(ir=ir, metadata=metadata)
        payload["schema_version"] = "2.0"
        with self.assertRaises(ValueError):
            snapshot_from_payload(payload)

    def test_missing_field_is_reported(self):
        ir, metadata = _model()
        payload = build_snapshot_payload(ir=ir, metadata=metadata)
        del payload["metadata"]
        with self.assertRaises(ValueError):
            snapshot_from_payload(payload)


if __name__ == "__main__":
    unittest.main()
