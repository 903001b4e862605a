"""Face descriptor matching.

This module holds the pure matching logic of the attendance flow: the
Euclidean distance between two descriptors and the nearest-neighbour search
over the enrolled roster. Both work on synthetic vectors so they are covered
by fast unit tests without touching the database.

The roster is small, so a linear scan is used. Callers depend on the
:class:`DescriptorMatcher` protocol only, which leaves room for an indexed
implementation later.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence, Union

from django.conf import settings

import numpy as np

from .descriptors import RawDescriptor, decode
from .exceptions import DimensionMismatch, InvalidDescriptorFormat

logger = logging.getLogger(__name__)

DEFAULT_DISTANCE_THRESHOLD = 0.4


def get_distance_threshold() -> float:
    """Return the single match threshold shared by enrollment and recognition."""

    return float(getattr(settings, "RECOGNITION_DISTANCE_THRESHOLD", DEFAULT_DISTANCE_THRESHOLD))


def distance(a: Union[np.ndarray, Sequence[float]], b: Union[np.ndarray, Sequence[float]]) -> float:
    """Return the Euclidean distance between two descriptors.

    Raises:
        DimensionMismatch: If the descriptors have different lengths.
    """

    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.shape != right.shape:
        raise DimensionMismatch(left.size, right.size)
    return float(np.linalg.norm(left - right))


def is_within_distance_threshold(value: Optional[float], threshold: float) -> bool:
    """Return ``True`` when ``value`` is strictly below ``threshold``."""

    if value is None or math.isnan(value):
        return False
    return bool(value < threshold)


@dataclass(frozen=True)
class Candidate:
    """An enrolled employee and the descriptor stored for them."""

    employee_id: int
    descriptor: RawDescriptor


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one search. ``employee_id`` is ``None`` when nothing was accepted."""

    employee_id: Optional[int]
    distance: float

    @property
    def matched(self) -> bool:
        return self.employee_id is not None

    @property
    def reported_distance(self) -> Optional[float]:
        """Distance suitable for a JSON payload (``None`` when none was computed)."""

        return self.distance if math.isfinite(self.distance) else None


class DescriptorMatcher(Protocol):
    threshold: float

    def find_best_match(
        self, probe: np.ndarray, candidates: Iterable[Candidate]
    ) -> MatchResult:  # pragma: no cover - protocol
        ...


class LinearScanMatcher:
    """Nearest-neighbour search by scanning every candidate in order."""

    def __init__(self, threshold: Optional[float] = None) -> None:
        self.threshold = get_distance_threshold() if threshold is None else float(threshold)

    def find_best_match(self, probe: np.ndarray, candidates: Iterable[Candidate]) -> MatchResult:
        """Return the closest candidate if it is strictly below the threshold.

        Candidates whose stored descriptor cannot be decoded, or whose length
        differs from the probe, are logged and skipped. On equal distances the
        first candidate in iteration order wins.
        """

        best_id: Optional[int] = None
        best_distance = math.inf

        for candidate in candidates:
            try:
                vector = decode(candidate.descriptor)
                score = distance(probe, vector)
            except (InvalidDescriptorFormat, DimensionMismatch) as exc:
                logger.warning(
                    "Skipping unusable enrolled descriptor: %s",
                    exc,
                    extra={"employee_id": candidate.employee_id},
                )
                continue

            if score < best_distance:
                best_distance = score
                best_id = candidate.employee_id

        if best_id is None or not is_within_distance_threshold(best_distance, self.threshold):
            logger.debug(
                "No descriptor within threshold",
                extra={"distance": best_distance, "threshold": self.threshold},
            )
            return MatchResult(employee_id=None, distance=best_distance)

        return MatchResult(employee_id=best_id, distance=best_distance)


def find_best_match(
    probe: np.ndarray,
    candidates: Iterable[Candidate],
    threshold: Optional[float] = None,
) -> MatchResult:
    """Convenience wrapper around :class:`LinearScanMatcher`."""

    return LinearScanMatcher(threshold).find_best_match(probe, candidates)


__all__ = [
    "Candidate",
    "DEFAULT_DISTANCE_THRESHOLD",
    "DescriptorMatcher",
    "LinearScanMatcher",
    "MatchResult",
    "distance",
    "find_best_match",
    "get_distance_threshold",
    "is_within_distance_threshold",
]
