# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Model-compatibility checks: can the extractor and emitter handle this model?"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import torch.nn as nn

from .model_extractor import TorchLayerAdapter, adapt_layers

STATUS_DENSE = "dense"
STATUS_PASS_THROUGH = "pass_through"
STATUS_UNSUPPORTED = "unsupported"

# Activations the emitter applies by layer position (hidden ReLU, softmax or sigmoid output)
POSITIONAL_ACTIVATIONS = ("ReLU", "Softmax", "Sigmoid")

_REPLACEMENT_SUGGESTIONS = {
    "Conv1d": "Flatten the window and use nn.Linear layers.",
    "Conv2d": "Flatten the window and use nn.Linear layers.",
    "BatchNorm1d": "Fold the normalization into the preceding nn.Linear before export.",
    "LayerNorm": "Normalize inputs on the host or drop the layer.",
    "LSTM": "Recurrent layers are not supported; use a dense network over the window.",
    "GRU": "Recurrent layers are not supported; use a dense network over the window.",
    "Embedding": "Embeddings are not supported; feed numeric sensor values.",
}


@dataclass
class CompatibilityFinding:
    """Single compatibility finding for one layer."""

    layer_name: str
    class_name: str
    status: str  # dense | pass_through | unsupported
    reason: str
    suggestion: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layer_name": self.layer_name,
            "class_name": self.class_name,
            "status": self.status,
            "reason": self.reason,
            "suggestion": self.suggestion,
        }


@dataclass
class CompatibilityReport:
    """Compatibility report for a model."""

    model_name: str
    findings: List[CompatibilityFinding] = field(default_factory=list)

    @property
    def dense(self) -> List[CompatibilityFinding]:
        return [f for f in self.findings if f.status == STATUS_DENSE]

    @property
    def pass_through(self) -> List[CompatibilityFinding]:
        return [f for f in self.findings if f.status == STATUS_PASS_THROUGH]

    @property
    def unsupported(self) -> List[CompatibilityFinding]:
        return [f for f in self.findings if f.status == STATUS_UNSUPPORTED]

    @property
    def compatible(self) -> bool:
        return len(self.unsupported) == 0 and len(self.dense) > 0

    @property
    def exit_code(self) -> int:
        return 0 if self.compatible else 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_name": self.model_name,
            "compatible": self.compatible,
            "exit_code": self.exit_code,
            "dense_count": len(self.dense),
            "pass_through_count": len(self.pass_through),
            "unsupported_count": len(self.unsupported),
            "findings": [f.to_dict() for f in self.findings],
        }


def _class_name(adapter: Any) -> str:
    if isinstance(adapter, TorchLayerAdapter):
        return adapter.module.__class__.__name__
    wrapped = getattr(adapter, "layer", adapter)
    return wrapped.__class__.__name__


def classify_layer(adapter: Any) -> Optional[CompatibilityFinding]:
    """Classify one adapted layer as dense, pass_through or unsupported."""
    class_name = _class_name(adapter)
    has_weights = adapter.weights() is not None

    if has_weights and adapter.kind() == "dense":
        return CompatibilityFinding(
            layer_name=adapter.name,
            class_name=class_name,
            status=STATUS_DENSE,
            reason="Dense layer; compiled to a flash table and a multiply-accumulate loop.",
        )

    if has_weights:
        return CompatibilityFinding(
            layer_name=adapter.name,
            class_name=class_name,
            status=STATUS_UNSUPPORTED,
            reason=f"{class_name} carries trained weights but is not a dense layer.",
            suggestion=_REPLACEMENT_SUGGESTIONS.get(class_name, "Replace with nn.Linear layers."),
        )

    if isinstance(adapter, TorchLayerAdapter):
        module = adapter.module
        if next(module.parameters(recurse=False), None) is not None:
            return CompatibilityFinding(
                layer_name=adapter.name,
                class_name=class_name,
                status=STATUS_UNSUPPORTED,
                reason="Parameterized module without a 'weight' tensor; its parameters would be lost.",
                suggestion=_REPLACEMENT_SUGGESTIONS.get(class_name, "Replace with nn.Linear layers."),
            )
        if class_name in _REPLACEMENT_SUGGESTIONS:
            return CompatibilityFinding(
                layer_name=adapter.name,
                class_name=class_name,
                status=STATUS_UNSUPPORTED,
                reason=f"{class_name} changes the computation and has no emitted counterpart.",
                suggestion=_REPLACEMENT_SUGGESTIONS[class_name],
            )
        if _is_activation(module) and class_name not in POSITIONAL_ACTIVATIONS:
            return CompatibilityFinding(
                layer_name=adapter.name,
                class_name=class_name,
                status=STATUS_UNSUPPORTED,
                reason=f"{class_name} activation would be replaced by ReLU/softmax/sigmoid on the board.",
                suggestion="Use nn.ReLU between hidden layers.",
            )

    return CompatibilityFinding(
        layer_name=adapter.name,
        class_name=class_name,
        status=STATUS_PASS_THROUGH,
        reason="No learnable weights; skipped during extraction.",
    )


def _is_activation(module: nn.Module) -> bool:
    return module.__class__.__module__ == nn.ReLU.__module__


def scan_model_layers(model: Any) -> CompatibilityReport:
    """Run the compatibility scan over every layer the extractor would see."""
    report = CompatibilityReport(model_name=model.__class__.__name__)
    for adapter in adapt_layers(model):
        finding = classify_layer(adapter)
        if finding is not None:
            report.findings.append(finding)
    return report


def summarize_report(report: CompatibilityReport) -> str:
    """Format a human-readable compatibility summary."""
    lines: List[str] = []
    lines.append(f"Compatibility Report for {report.model_name}")
    lines.append("=" * (len(lines[-1])))
    lines.append(f"Dense layers:   {len(report.dense)}")
    lines.append(f"Pass-through:   {len(report.pass_through)}")
    lines.append(f"Unsupported:    {len(report.unsupported)}")

    if not report.dense:
        lines.append("")
        lines.append("No dense layers found; nothing to compile.")

    if report.unsupported:
        lines.append("")
        lines.append("Unsupported layers:")
        for f in report.unsupported:
            lines.append(f"  - {f.layer_name}: {f.class_name}")
            lines.append(f"    reason: {f.reason}")
            if f.suggestion:
                lines.append(f"    suggestion: {f.suggestion}")
    return "\n".join(lines)


def check_compatibility(model: Any, strict: bool = True) -> CompatibilityReport:
    """Scan a model; with strict=True raise ValueError when it cannot be compiled."""
    report = scan_model_layers(model)
    if strict and not report.compatible:
        raise ValueError(summarize_report(report))
    return report
