# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Model IR snapshot export and reload utilities."""

from .schema import (
    SNAPSHOT_FILENAME,
    SNAPSHOT_KIND,
    SNAPSHOT_SCHEMA_VERSION,
    build_snapshot_payload,
    layer_from_dict,
    layer_to_dict,
    snapshot_from_payload,
)
from .writer import (
    SnapshotManager,
    load_model_snapshot,
    load_snapshot,
    save_model_snapshot,
    write_snapshot,
)

__all__ = [
    "SNAPSHOT_FILENAME",
    "SNAPSHOT_KIND",
    "SNAPSHOT_SCHEMA_VERSION",
    "build_snapshot_payload",
    "layer_from_dict",
    "layer_to_dict",
    "snapshot_from_payload",
    "SnapshotManager",
    "load_model_snapshot",
    "load_snapshot",
    "save_model_snapshot",
    "write_snapshot",
]
