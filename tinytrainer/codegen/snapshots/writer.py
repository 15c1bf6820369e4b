# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Snapshot writer/loader helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from ..ir import ModelIR, ModelMetadata
from .schema import SNAPSHOT_FILENAME, build_snapshot_payload, snapshot_from_payload


def _to_jsonable(value: Any) -> Any:
    """Normalize objects into JSON-serializable primitives."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    return str(value)


def write_snapshot(path: str, payload: Mapping[str, Any]) -> str:
    """Write snapshot payload as canonical JSON and return path."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(_to_jsonable(dict(payload)), indent=2, sort_keys=True) + "\n")
    return str(out_path)


def load_snapshot(path: str) -> Dict[str, Any]:
    """Load snapshot payload from JSON file."""
    return json.loads(Path(path).read_text())


def save_model_snapshot(
    path: str,
    ir: ModelIR,
    metadata: ModelMetadata,
    extra: Optional[Mapping[str, Any]] = None,
) -> str:
    """Build and write one IR snapshot to path."""
    payload = build_snapshot_payload(ir=ir, metadata=metadata, extra=extra)
    return write_snapshot(path, payload)


def load_model_snapshot(path: str) -> Tuple[ModelIR, ModelMetadata]:
    """Load an IR snapshot file back into (ModelIR, ModelMetadata)."""
    return snapshot_from_payload(load_snapshot(path))


class SnapshotManager:
    """Manage IR snapshot export for one generation run."""

    def __init__(self, output_dir: str, base_extra: Optional[Mapping[str, Any]] = None) -> None:
        self.output_dir = str(output_dir)
        self.base_extra: Dict[str, Any] = dict(base_extra or {})

    def snapshot_path(self, tag: str = "") -> str:
        filename = f"{tag}_{SNAPSHOT_FILENAME}" if tag else SNAPSHOT_FILENAME
        return str(Path(self.output_dir) / filename)

    def write(
        self,
        ir: ModelIR,
        metadata: ModelMetadata,
        *,
        tag: str = "",
        extra: Optional[Mapping[str, Any]] = None,
    ) -> str:
        merged_extra = dict(self.base_extra)
        if extra:
            merged_extra.update(dict(extra))
        return save_model_snapshot(self.snapshot_path(tag), ir, metadata, extra=merged_extra)
