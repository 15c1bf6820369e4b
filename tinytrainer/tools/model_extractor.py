# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Weight Extractor for trained dense networks

Walks a trained model's layers in definition order and produces an immutable
Model IR. Works directly on the live model object:

- PyTorch `nn.Module`: leaf modules from `named_modules()`; an `nn.Linear`
  weight is stored (out, in) and is transposed to (in, out)
- Keras-style layers: anything with `get_weights()` returning
  [kernel (in, out), bias]
- Any object implementing `HasLearnableParameters`

Extraction is two steps. `materialize_layers` copies every tensor to host
memory (the only blocking step). `build_model_ir` is a pure function of the
materialized arrays. A layer without learnable weights (dropout, reshape,
activations, weight-free normalization) contributes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Protocol, runtime_checkable

import numpy as np
import torch
import torch.nn as nn

from ..codegen.errors import (
    EmptyModel,
    MalformedLayerShape,
    NonFiniteWeight,
    UnsupportedLayerKind,
)
from ..codegen.ir import Layer, LayerKind, ModelIR


@runtime_checkable
class HasLearnableParameters(Protocol):
    """Capability interface: a layer that may expose a weight matrix and bias."""

    name: str

    def kind(self) -> str:
        """Layer kind, 'dense' for fully connected layers."""

    def weights(self) -> Optional[Any]:
        """Weight matrix with rows = input features, or None."""

    def bias(self) -> Optional[Any]:
        """Bias vector (one value per output unit), or None."""


class TorchLayerAdapter:
    """Expose a leaf `nn.Module` through HasLearnableParameters."""

    def __init__(self, name: str, module: nn.Module):
        self.name = name
        self.module = module

    def kind(self) -> str:
        if isinstance(self.module, nn.Linear):
            return LayerKind.DENSE.value
        return self.module.__class__.__name__.lower()

    def weights(self) -> Optional[torch.Tensor]:
        weight = getattr(self.module, "weight", None)
        if not isinstance(weight, torch.Tensor):
            return None
        if isinstance(self.module, nn.Linear):
            return weight.t()
        return weight

    def bias(self) -> Optional[torch.Tensor]:
        bias = getattr(self.module, "bias", None)
        return bias if isinstance(bias, torch.Tensor) else None


class KerasLayerAdapter:
    """Expose a Keras-style layer (`get_weights()` -> [kernel, bias])."""

    def __init__(self, layer: Any):
        self.layer = layer
        self.name = str(getattr(layer, "name", layer.__class__.__name__))

    def kind(self) -> str:
        class_name = getattr(self.layer, "getClassName", None)
        name = class_name() if callable(class_name) else self.layer.__class__.__name__
        return name.lower()

    def _arrays(self) -> List[Any]:
        return list(self.layer.get_weights())

    def weights(self) -> Optional[Any]:
        arrays = self._arrays()
        return arrays[0] if arrays else None

    def bias(self) -> Optional[Any]:
        arrays = self._arrays()
        return arrays[1] if len(arrays) > 1 else None


class PassThroughLayer:
    """A layer that exposes no learnable parameters."""

    def __init__(self, name: str):
        self.name = name

    def kind(self) -> str:
        return "pass_through"

    def weights(self) -> None:
        return None

    def bias(self) -> None:
        return None


@dataclass(frozen=True)
class MaterializedLayer:
    """Host-memory copy of one weight-bearing layer."""

    name: str
    kind: str
    weights: np.ndarray
    bias: Optional[np.ndarray]


def _is_leaf(module: nn.Module) -> bool:
    return len(list(module.children())) == 0


def adapt_layer(layer: Any, name: Optional[str] = None) -> HasLearnableParameters:
    """Wrap one layer object in the adapter matching its capabilities."""
    if isinstance(layer, nn.Module):
        return TorchLayerAdapter(name or layer.__class__.__name__, layer)
    if callable(getattr(layer, "get_weights", None)):
        return KerasLayerAdapter(layer)
    if isinstance(layer, HasLearnableParameters):
        return layer
    return PassThroughLayer(name or str(getattr(layer, "name", layer.__class__.__name__)))


def adapt_layers(model: Any) -> List[HasLearnableParameters]:
    """
    Return the model's layers in definition order as adapters.

    Accepts an `nn.Module` (leaf modules of `named_modules()`), an object
    with a `layers` attribute (Keras-style models) or an iterable of layers.
    """
    if isinstance(model, nn.Module):
        leaves = [(name, m) for name, m in model.named_modules() if name and _is_leaf(m)]
        if not leaves and _is_leaf(model):
            leaves = [(model.__class__.__name__, model)]
        return [TorchLayerAdapter(name, module) for name, module in leaves]
    layers = getattr(model, "layers", None)
    if layers is None:
        layers = model
    if not isinstance(layers, Iterable):
        raise TypeError(f"Cannot read layers from {model.__class__.__name__}")
    return [adapt_layer(layer, name=str(idx)) for idx, layer in enumerate(layers)]


def _to_numpy(value: Any) -> np.ndarray:
    if isinstance(value, torch.Tensor):
        return value.detach().cpu().numpy().astype(np.float32)
    return np.asarray(value, dtype=np.float32)


def materialize_layers(
    layers: Iterable[HasLearnableParameters],
    verbose: bool = False,
) -> List[MaterializedLayer]:
    """
    Copy every weight and bias tensor into host memory.

    Layers without weights are skipped. Any failure while reading a tensor
    propagates and aborts the whole extraction.
    """
    materialized: List[MaterializedLayer] = []
    for layer in layers:
        raw_weights = layer.weights()
        if raw_weights is None:
            if verbose:
                print(f"  {layer.name}: no learnable weights, skipped")
            continue
        raw_bias = layer.bias()
        weights = _to_numpy(raw_weights)
        bias = _to_numpy(raw_bias) if raw_bias is not None else None
        materialized.append(MaterializedLayer(
            name=layer.name,
            kind=str(layer.kind()).lower(),
            weights=weights,
            bias=bias,
        ))
        if verbose:
            bias_desc = f", bias={bias.shape}" if bias is not None else ""
            print(f"  {layer.name}: {layer.kind()}, weights={weights.shape}{bias_desc}")
    return materialized


def build_model_ir(materialized: Iterable[MaterializedLayer]) -> ModelIR:
    """
    Build the Model IR from materialized layers.

    Units are read from the weight shape: (in, out) for 2-D, (n,) is n -> 1.
    Raises MalformedLayerShape, UnsupportedLayerKind, NonFiniteWeight or
    EmptyModel.
    """
    layers: List[Layer] = []
    for m in materialized:
        weights = np.asarray(m.weights, dtype=np.float32)
        if weights.ndim == 2:
            input_units, output_units = weights.shape
        elif weights.ndim == 1:
            input_units, output_units = weights.size, 1
        else:
            raise MalformedLayerShape(
                f"Layer '{m.name}': weight shape {tuple(weights.shape)} is neither 1-D nor 2-D"
            )

        if m.kind != LayerKind.DENSE.value:
            raise UnsupportedLayerKind(
                f"Layer '{m.name}' of kind '{m.kind}' has weights but is not a dense layer"
            )

        if not np.all(np.isfinite(weights)):
            raise NonFiniteWeight(f"Layer '{m.name}': weights contain NaN or Inf")
        bias = None
        if m.bias is not None:
            bias = np.asarray(m.bias, dtype=np.float32).reshape(-1)
            if not np.all(np.isfinite(bias)):
                raise NonFiniteWeight(f"Layer '{m.name}': bias contains NaN or Inf")

        layers.append(Layer(
            name=m.name,
            weights=weights.reshape(-1),
            bias=bias,
            input_units=int(input_units),
            output_units=int(output_units),
        ))

    if not layers:
        raise EmptyModel("Model has no weight-bearing layers")
    return ModelIR(layers)


def extract_model_ir(model: Any, verbose: bool = False) -> ModelIR:
    """Materialize all weights of a trained model, then build its IR."""
    if verbose:
        print("[Extract] Reading layers from " + model.__class__.__name__)
    adapters = adapt_layers(model)
    materialized = materialize_layers(adapters, verbose=verbose)
    ir = build_model_ir(materialized)
    if verbose:
        shapes = " -> ".join([str(ir.input_units)] + [str(layer.output_units) for layer in ir])
        print(f"[Extract] {len(ir)} dense layers ({shapes}), {ir.parameter_count} parameters")
    return ir
