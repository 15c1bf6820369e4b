# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Schema definitions for Model IR snapshot payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from ..ir import Layer, ModelIR, ModelMetadata

SNAPSHOT_SCHEMA_VERSION = "1.0"
SNAPSHOT_KIND = "tinytrainer.model_ir"
SNAPSHOT_FILENAME = "model_ir.json"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None).isoformat() + "Z"


def layer_to_dict(layer: Layer) -> Dict[str, Any]:
    return {
        "name": layer.name,
        "kind": layer.kind.value,
        "input_units": layer.input_units,
        "output_units": layer.output_units,
        "weights": layer.weights,
        "bias": layer.bias,
    }


def layer_from_dict(data: Mapping[str, Any]) -> Layer:
    return Layer(
        name=str(data["name"]),
        kind=data.get("kind", "dense"),
        input_units=int(data["input_units"]),
        output_units=int(data["output_units"]),
        weights=data["weights"],
        bias=data.get("bias"),
    )


def build_snapshot_payload(
    *,
    ir: ModelIR,
    metadata: ModelMetadata,
    extra: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Build a snapshot payload with deterministic schema fields."""
    return {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "kind": SNAPSHOT_KIND,
        "created_utc": _utc_now_iso(),
        "model": {"layers": [layer_to_dict(layer) for layer in ir]},
        "metadata": {
            "output_labels": list(metadata.output_labels),
            "sample_window_size": metadata.sample_window_size,
            "variant": metadata.variant.value,
        },
        "extra": dict(extra or {}),
    }


def snapshot_from_payload(payload: Mapping[str, Any]) -> Tuple[ModelIR, ModelMetadata]:
    """Rebuild (ModelIR, ModelMetadata) from a loaded payload."""
    if payload.get("kind") != SNAPSHOT_KIND:
        raise ValueError(f"Not a model IR snapshot (kind={payload.get('kind')!r})")
    version = str(payload.get("schema_version", ""))
    if version.split(".")[0] != SNAPSHOT_SCHEMA_VERSION.split(".")[0]:
        raise ValueError(
            f"Unsupported snapshot schema version {version!r} (expected {SNAPSHOT_SCHEMA_VERSION})"
        )
    try:
        layers = [layer_from_dict(entry) for entry in payload["model"]["layers"]]
        meta = payload["metadata"]
        metadata = ModelMetadata(
            output_labels=meta["output_labels"],
            sample_window_size=meta["sample_window_size"],
            variant=meta["variant"],
        )
    except KeyError as exc:
        raise ValueError(f"Snapshot is missing field {exc}") from exc
    return ModelIR(layers), metadata
