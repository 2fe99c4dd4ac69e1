"""Descriptor normalization and comparison.

Descriptors are L2-normalized and quantized to integers before they are
stored, hashed or compared. The same normalization is used on the write and
read paths; z-score standardization is never applied.

Normalization uses sequential summation and ``math.sqrt`` so the quantized
output is reproducible bit for bit. Similarity scoring only needs to be
accurate, so it uses numpy.
"""
import math
from typing import List, Optional, Sequence

import numpy as np

from facetrack.core.exceptions import ValidationError


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""
    return int(math.floor(value + 0.5))


def validate_descriptor(raw: Sequence[float], dimension: Optional[int] = None) -> List[float]:
    """Check that a raw descriptor is a non-empty sequence of finite numbers.

    Args:
        raw: Descriptor as received from the capture client
        dimension: Expected length, or None to accept any length

    Returns:
        The descriptor as a list of floats

    Raises:
        ValidationError: If the descriptor is empty, non-numeric, non-finite
            or of the wrong dimension
    """
    if raw is None or isinstance(raw, (str, bytes)):
        raise ValidationError("Descriptor array is required")
    try:
        values = [float(v) for v in raw]
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Descriptor must contain only numbers: {e}") from e
    if not values:
        raise ValidationError("Descriptor array is empty")
    if dimension is not None and len(values) != dimension:
        raise ValidationError(
            f"Descriptor has {len(values)} dimensions, expected {dimension}",
            details={"dimension": len(values), "expected": dimension},
        )
    if not all(math.isfinite(v) for v in values):
        raise ValidationError("Descriptor contains non-finite values")
    return values


def average_descriptors(scans: Sequence[Sequence[float]]) -> List[float]:
    """Average several scans of the same face element-wise.

    Raises:
        ValidationError: If no scans are given or their dimensions differ
    """
    if not scans:
        raise ValidationError("At least one descriptor scan is required")
    vectors = [validate_descriptor(scan) for scan in scans]
    dimension = len(vectors[0])
    if any(len(v) != dimension for v in vectors):
        raise ValidationError("Descriptor scans have different dimensions")
    if len(vectors) == 1:
        return vectors[0]
    count = len(vectors)
    return [sum(column) / count for column in zip(*vectors)]


def normalize(raw: Sequence[float], multiplier: int = 1000) -> List[int]:
    """L2-normalize a descriptor and quantize it to integers.

    Args:
        raw: Non-empty descriptor
        multiplier: Scale applied after normalization

    Returns:
        Quantized descriptor with the same dimension as the input
    """
    values = [float(v) for v in raw]
    norm = math.sqrt(sum(v * v for v in values)) or 1.0
    return [round_half_up(v / norm * multiplier) for v in values]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors; 0.0 when either is zero."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denominator = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / denominator


def blend_descriptors(stored: Sequence[int], observed: Sequence[int], weight: int) -> List[int]:
    """Running weighted average of a stored descriptor and a new observation.

    The stored descriptor counts ``weight`` times, the observation once.
    """
    weight = max(weight, 1)
    return [
        round_half_up((old * weight + new) / (weight + 1))
        for old, new in zip(stored, observed)
    ]
