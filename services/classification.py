"""Threshold tables and the pure classifiers built on them."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence

LIGHT_LEVELS = (
    "muy oscuro",
    "oscuro",
    "poco iluminado",
    "bien iluminado",
    "muy iluminado",
)


@dataclass(frozen=True)
class LightThresholds:
    """Ordered lux cut points between consecutive light levels."""

    very_dark: float = 10.0
    dark: float = 50.0
    dim: float = 200.0
    bright: float = 1000.0

    def __post_init__(self) -> None:
        cuts = self.as_tuple()
        if any(lower >= upper for lower, upper in zip(cuts, cuts[1:])):
            raise ValueError(f"Light thresholds must be strictly ascending, got {cuts}.")

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "LightThresholds":
        if len(values) != 4:
            raise ValueError(f"Expected 4 light thresholds, got {len(values)}.")
        return cls(*(float(value) for value in values))

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.very_dark, self.dark, self.dim, self.bright)


def classify_light_level(value: float, thresholds: LightThresholds) -> str:
    for cut, label in zip(thresholds.as_tuple(), LIGHT_LEVELS):
        if value < cut:
            return label
    return LIGHT_LEVELS[-1]


def classify_light_state(value: float, thresholds: LightThresholds) -> int:
    """0 (dark) below the ``dim`` cut point, 1 (illuminated) at or above it."""
    return 1 if value >= thresholds.dim else 0


class RangeStatus(str, Enum):
    below = "bajo"
    above = "alto"
    within = "en_rango"
    no_data = "sin_datos"


@dataclass(frozen=True)
class Range:
    minimum: float
    maximum: float

    def contains(self, value: Optional[float]) -> bool:
        if _is_missing(value):
            return False
        return self.minimum <= value <= self.maximum  # type: ignore[operator]


RECOMMENDED_RANGES: Dict[str, Range] = {
    "temperature": Range(23.0, 27.0),
    "humidity": Range(40.0, 60.0),
    "light": Range(300.0, 500.0),
}


def classify_range(value: Optional[float], bounds: Range) -> RangeStatus:
    if _is_missing(value):
        return RangeStatus.no_data
    if value < bounds.minimum:  # type: ignore[operator]
        return RangeStatus.below
    if value > bounds.maximum:  # type: ignore[operator]
        return RangeStatus.above
    return RangeStatus.within


def _is_missing(value: Optional[float]) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)
