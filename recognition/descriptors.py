"""Conversion between face descriptors on the wire and NumPy vectors.

Descriptors arrive in several historical shapes: a JSON array, a
comma-separated string of numbers, a JSON object keyed by position (what a
serialised typed array looks like) or an already parsed list. All of them
are normalised here; the canonical stored form is the JSON array produced by
:func:`encode`.
"""

from __future__ import annotations

import json
import math
import numbers
from typing import Any, Mapping, Optional, Sequence, Union

from django.conf import settings

import numpy as np

from .exceptions import InvalidDescriptorFormat


DEFAULT_DESCRIPTOR_LENGTH = 128

RawDescriptor = Union[str, Sequence[Any], Mapping[str, Any], np.ndarray]


def get_descriptor_length() -> Optional[int]:
    """Return the configured dimensionality, or ``None`` when unchecked."""

    length = getattr(settings, "FACE_DESCRIPTOR_LENGTH", DEFAULT_DESCRIPTOR_LENGTH)
    return int(length) if length else None


def _coerce_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidDescriptorFormat("Face descriptor must contain only numeric values.")
    try:
        number = float(value)
    except OverflowError as exc:
        raise InvalidDescriptorFormat("Face descriptor values must be finite numbers.") from exc
    if not math.isfinite(number):
        raise InvalidDescriptorFormat("Face descriptor values must be finite numbers.")
    return number


def _values_from_mapping(payload: Mapping[str, Any]) -> list[Any]:
    try:
        indexed = sorted((int(key), value) for key, value in payload.items())
    except (TypeError, ValueError) as exc:
        raise InvalidDescriptorFormat("Face descriptor object must be keyed by position.") from exc

    if [index for index, _ in indexed] != list(range(len(indexed))):
        raise InvalidDescriptorFormat("Face descriptor object keys must be contiguous positions.")
    return [value for _, value in indexed]


def _values_from_string(raw: str) -> list[Any]:
    stripped = raw.strip()
    if not stripped:
        raise InvalidDescriptorFormat("Face descriptor must not be empty.")

    if stripped[0] in "[{":
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise InvalidDescriptorFormat("Face descriptor is not valid JSON.") from exc
        if isinstance(parsed, dict):
            return _values_from_mapping(parsed)
        if isinstance(parsed, list):
            return parsed
        raise InvalidDescriptorFormat("Face descriptor must be a JSON array.")

    values: list[float] = []
    for token in stripped.split(","):
        token = token.strip()
        if not token:
            raise InvalidDescriptorFormat("Face descriptor contains an empty value.")
        try:
            values.append(float(token))
        except ValueError as exc:
            raise InvalidDescriptorFormat(
                "Face descriptor must contain only numeric values."
            ) from exc
    return values


def decode(raw: RawDescriptor, expected_length: Optional[int] = None) -> np.ndarray:
    """Parse ``raw`` into a one-dimensional ``float64`` vector.

    Args:
        raw: Descriptor as received from a client or read from storage.
        expected_length: When given, the decoded vector must have exactly this
            many elements.

    Raises:
        InvalidDescriptorFormat: If ``raw`` is not a non-empty vector of finite
            numbers of the expected length.
    """

    if raw is None:
        raise InvalidDescriptorFormat("Face descriptor is required.")

    if isinstance(raw, str):
        values: Sequence[Any] = _values_from_string(raw)
    elif isinstance(raw, np.ndarray):
        if raw.ndim != 1:
            raise InvalidDescriptorFormat("Face descriptor must be one-dimensional.")
        values = raw.tolist()
    elif isinstance(raw, Mapping):
        values = _values_from_mapping(raw)
    elif isinstance(raw, (list, tuple)):
        values = raw
    else:
        raise InvalidDescriptorFormat("Face descriptor must be an array or a string.")

    vector = np.array([_coerce_number(value) for value in values], dtype=np.float64)
    if vector.size == 0:
        raise InvalidDescriptorFormat("Face descriptor must contain at least one value.")

    if expected_length is not None and vector.size != expected_length:
        raise InvalidDescriptorFormat(
            f"Face descriptor must contain {expected_length} values, got {vector.size}."
        )
    return vector


def encode(vector: Union[np.ndarray, Sequence[float]]) -> str:
    """Serialise a descriptor to its canonical JSON array form."""

    return json.dumps([float(value) for value in np.asarray(vector, dtype=np.float64).ravel()])


def normalize_for_storage(raw: RawDescriptor) -> str:
    """Validate an enrollment payload and return the string to persist."""

    return encode(decode(raw, expected_length=get_descriptor_length()))


__all__ = [
    "DEFAULT_DESCRIPTOR_LENGTH",
    "decode",
    "encode",
    "get_descriptor_length",
    "normalize_for_storage",
]
