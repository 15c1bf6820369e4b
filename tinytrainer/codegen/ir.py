# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Model IR: the immutable layer-by-layer description of a trained dense network.

The IR is built once per compilation from materialized weights and is never
mutated afterwards. All downstream stages (forward-pass emission, weight
serialization, documentation) read from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import EmptyModel, LayerChainMismatch, MalformedLayerShape


class LayerKind(str, Enum):
    DENSE = "dense"


class Variant(str, Enum):
    CLASSIFICATION = "classification"
    REGRESSION = "regression"

    @classmethod
    def parse(cls, value: Union[str, "Variant"]) -> "Variant":
        if isinstance(value, cls):
            return value
        canonical = (value or "").strip().lower()
        for member in cls:
            if member.value == canonical:
                return member
        available = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown variant '{value}'. Available variants: {available}")


def _frozen_float32(values) -> np.ndarray:
    array = np.array(values, dtype=np.float32).reshape(-1)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Layer:
    """One dense layer. `weights` is the row-major (inputs x outputs) matrix, flattened."""

    name: str
    weights: np.ndarray
    input_units: int
    output_units: int
    bias: Optional[np.ndarray] = None
    kind: LayerKind = LayerKind.DENSE

    def __post_init__(self) -> None:
        object.__setattr__(self, "weights", _frozen_float32(self.weights))
        if self.bias is not None:
            object.__setattr__(self, "bias", _frozen_float32(self.bias))
        object.__setattr__(self, "kind", LayerKind(self.kind))

        if int(self.input_units) <= 0 or int(self.output_units) <= 0:
            raise MalformedLayerShape(
                f"Layer '{self.name}': units must be positive "
                f"(got {self.input_units} -> {self.output_units})"
            )
        object.__setattr__(self, "input_units", int(self.input_units))
        object.__setattr__(self, "output_units", int(self.output_units))

        expected = self.input_units * self.output_units
        if self.weights.size != expected:
            raise MalformedLayerShape(
                f"Layer '{self.name}': {self.weights.size} weights for "
                f"{self.input_units}x{self.output_units} (expected {expected})"
            )
        if self.bias is not None and self.bias.size != self.output_units:
            raise MalformedLayerShape(
                f"Layer '{self.name}': bias has {self.bias.size} values, "
                f"expected {self.output_units}"
            )

    @property
    def has_bias(self) -> bool:
        return self.bias is not None

    @property
    def parameter_count(self) -> int:
        return self.weights.size + (self.bias.size if self.bias is not None else 0)

    def weight_matrix(self) -> np.ndarray:
        """Return a (input_units, output_units) read-only view of the weights."""
        return self.weights.reshape(self.input_units, self.output_units)


@dataclass(frozen=True, eq=False)
class ModelIR:
    """Ordered, non-empty sequence of dense layers."""

    layers: Tuple[Layer, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(self.layers))
        if not self.layers:
            raise EmptyModel("Model has no weight-bearing layers")

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self.layers)

    def __getitem__(self, index: int) -> Layer:
        return self.layers[index]

    @property
    def input_units(self) -> int:
        return self.layers[0].input_units

    @property
    def output_units(self) -> int:
        return self.layers[-1].output_units

    @property
    def parameter_count(self) -> int:
        return sum(layer.parameter_count for layer in self.layers)

    def validate_chain(self) -> None:
        """Raise LayerChainMismatch if any adjacent pair does not chain."""
        for prev, nxt in zip(self.layers, self.layers[1:]):
            if prev.output_units != nxt.input_units:
                raise LayerChainMismatch(
                    f"Layer '{prev.name}' outputs {prev.output_units} units but "
                    f"'{nxt.name}' expects {nxt.input_units} inputs"
                )


@dataclass(frozen=True)
class ModelMetadata:
    """Labels, window size and variant supplied alongside the trained model."""

    output_labels: Tuple[str, ...]
    sample_window_size: int
    variant: Variant

    def __post_init__(self) -> None:
        if isinstance(self.output_labels, str):
            raise TypeError("output_labels must be a sequence of strings, not a string")
        object.__setattr__(self, "output_labels", tuple(str(l) for l in self.output_labels))
        object.__setattr__(self, "variant", Variant.parse(self.variant))
        if int(self.sample_window_size) <= 0:
            raise ValueError(f"sample_window_size must be positive, got {self.sample_window_size}")
        object.__setattr__(self, "sample_window_size", int(self.sample_window_size))

    @property
    def num_outputs(self) -> int:
        return len(self.output_labels)

    @property
    def is_classification(self) -> bool:
        return self.variant is Variant.CLASSIFICATION


class GeneratedArtifact(Mapping[str, str]):
    """Read-only filename -> text mapping with exactly three entries."""

    EXPECTED_ENTRIES = 3

    def __init__(self, files: Mapping[str, str]):
        if len(files) != self.EXPECTED_ENTRIES:
            raise ValueError(
                f"Generated artifact must hold {self.EXPECTED_ENTRIES} files, got {sorted(files)}"
            )
        self._files = MappingProxyType(dict(files))

    def __getitem__(self, filename: str) -> str:
        return self._files[filename]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"GeneratedArtifact({list(self._files)})"

    def write_to(self, output_dir: Union[str, Path]) -> Sequence[Path]:
        """Write every file into output_dir and return the written paths."""
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        written = []
        for filename, content in self._files.items():
            path = out / filename
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            written.append(path)
        return written
