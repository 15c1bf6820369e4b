# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Errors raised while compiling a trained model into Arduino artifacts."""


class CompilationError(ValueError):
    """Base class for fatal compilation errors. No partial artifact is produced."""


class MalformedLayerShape(CompilationError):
    """A weight-bearing layer reports a tensor shape that is not 1-D or 2-D."""


class UnsupportedLayerKind(CompilationError):
    """A weight-bearing layer is not a dense (fully connected) layer."""


class EmptyModel(CompilationError):
    """The model exposes no weight-bearing layers."""


class NonFiniteWeight(CompilationError):
    """A weight or bias tensor contains NaN or infinite values."""


class OutputCountMismatch(CompilationError):
    """Label count does not match the terminal layer's unit count."""


class LayerChainMismatch(CompilationError):
    """Adjacent layers do not chain (outputs of one != inputs of the next)."""


class WindowSizeMismatch(CompilationError):
    """Sample window does not match the first layer or the sensor frame size."""


class InvalidOutputLabel(CompilationError):
    """An output label cannot be carried by the prediction protocol."""


class ProtocolError(ValueError):
    """An inbound prediction message does not follow the wire grammar."""
