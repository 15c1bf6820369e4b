# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Prediction wire protocol shared by the emitted sketch and host applications.

One message per completed inference, newline terminated:

    classification:  <label>,<confidence>\\n      e.g. "wave,92.50\\n"
    regression:      R,<v1>,<v2>,...,<vN>\\n      e.g. "R,0.847,0.234\\n"

Confidence is the winning probability as a percentage with two decimals.
Regression values carry three decimals and lie in [0.000, 1.000]. The
leading `R` tags a regression report, so no classification label may be
the bare string `R`, and no label may contain the field separator.

The grammar is transport independent. The C format strings below are what
the emitted sketch hands to snprintf, and `frame_*` produce the identical
text in Python (both round the exact binary value to nearest).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

from .errors import InvalidOutputLabel, ProtocolError
from .ir import Variant

FIELD_SEPARATOR = ","
MESSAGE_TERMINATOR = "\n"
REGRESSION_TAG = "R"

CONFIDENCE_DECIMALS = 2
REGRESSION_DECIMALS = 3

# printf-style formats used by the emitted C code
C_CLASSIFICATION_FORMAT = "%s,%.2f\\n"
C_REGRESSION_VALUE_FORMAT = ",%.3f"
C_TERMINATOR = "\\n"

_CONFIDENCE_RE = re.compile(r"^\d+\.\d{2}$")
_REGRESSION_VALUE_RE = re.compile(r"^[01]\.\d{3}$")


@dataclass(frozen=True)
class ClassificationMessage:
    label: str
    confidence: float  # percent, 0-100


@dataclass(frozen=True)
class RegressionMessage:
    values: Tuple[float, ...]


def validate_output_labels(labels: Sequence[str], variant: Union[Variant, str]) -> None:
    """Raise InvalidOutputLabel when a label cannot be framed unambiguously."""
    variant = Variant.parse(variant)
    if not labels:
        raise InvalidOutputLabel("At least one output label is required")
    for label in labels:
        if not label or not label.strip():
            raise InvalidOutputLabel("Output labels must be non-empty")
        if "\n" in label or "\r" in label:
            raise InvalidOutputLabel(f"Output label {label!r} contains a line break")
        if "\\" in label or '"' in label:
            raise InvalidOutputLabel(f"Output label {label!r} contains a quote or backslash")
        if FIELD_SEPARATOR in label:
            raise InvalidOutputLabel(
                f"Output label {label!r} contains the field separator '{FIELD_SEPARATOR}'"
            )
        if variant is Variant.CLASSIFICATION and label == REGRESSION_TAG:
            raise InvalidOutputLabel(
                f"Classification label '{REGRESSION_TAG}' collides with the regression message tag"
            )


def frame_classification(label: str, probability: float) -> str:
    """Frame a classification report from the winning label and its probability (0-1)."""
    return f"{label}{FIELD_SEPARATOR}{probability * 100.0:.{CONFIDENCE_DECIMALS}f}{MESSAGE_TERMINATOR}"


def frame_regression(values: Sequence[float]) -> str:
    """Frame a regression report. Values are clamped to [0, 1] before formatting."""
    if len(values) == 0:
        raise ValueError("Regression message needs at least one value")
    fields = [REGRESSION_TAG]
    for value in values:
        clamped = min(1.0, max(0.0, float(value)))
        fields.append(f"{clamped:.{REGRESSION_DECIMALS}f}")
    return FIELD_SEPARATOR.join(fields) + MESSAGE_TERMINATOR


def parse_message(line: str) -> Union[ClassificationMessage, RegressionMessage]:
    """Decode one received message (terminator optional)."""
    text = line[:-1] if line.endswith(MESSAGE_TERMINATOR) else line
    text = text.rstrip("\r")
    if not text:
        raise ProtocolError("Empty prediction message")

    if text.startswith(REGRESSION_TAG + FIELD_SEPARATOR):
        raw_values = text.split(FIELD_SEPARATOR)[1:]
        if not all(_REGRESSION_VALUE_RE.match(v) for v in raw_values):
            raise ProtocolError(f"Malformed regression message: {line!r}")
        values = tuple(float(v) for v in raw_values)
        if any(v > 1.0 for v in values):
            raise ProtocolError(f"Regression value out of range in {line!r}")
        return RegressionMessage(values=values)

    label, sep, confidence = text.rpartition(FIELD_SEPARATOR)
    if not sep or not label or not _CONFIDENCE_RE.match(confidence):
        raise ProtocolError(f"Malformed classification message: {line!r}")
    return ClassificationMessage(label=label, confidence=float(confidence))
