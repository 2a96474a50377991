from __future__ import annotations

"""
Lookup tables and the piecewise-linear interpolator.

Every nonlinear multiplier in the model is a `LookupTable`: an immutable,
validated sequence of (x, y) points. Queries between two points return the
linear interpolation of the bracketing pair; queries outside the domain
return the y value of the nearest end point (flat extrapolation).
"""

from dataclasses import dataclass
import math
from typing import Iterable, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class LookupTable:
    name: str
    xs: Tuple[float, ...]
    ys: Tuple[float, ...]

    def __post_init__(self) -> None:
        xs = tuple(float(x) for x in self.xs)
        ys = tuple(float(y) for y in self.ys)
        if len(xs) != len(ys):
            raise ConfigurationError(
                f"Lookup table '{self.name}' has {len(xs)} x values but {len(ys)} y values"
            )
        if len(xs) < 2:
            raise ConfigurationError(f"Lookup table '{self.name}' needs at least 2 points, got {len(xs)}")
        if not all(math.isfinite(v) for v in xs + ys):
            raise ConfigurationError(f"Lookup table '{self.name}' contains non-finite values")
        for i in range(1, len(xs)):
            if xs[i] <= xs[i - 1]:
                raise ConfigurationError(
                    f"Lookup table '{self.name}' must have strictly increasing x values; "
                    f"x[{i - 1}]={xs[i - 1]} >= x[{i}]={xs[i]}"
                )
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "xs", xs)
        object.__setattr__(self, "ys", ys)

    @classmethod
    def from_range(cls, name: str, start: float, step: float, ys: Sequence[float]) -> "LookupTable":
        """Build a table whose x values are `start, start + step, ...`, one per y value."""
        xs = tuple(start + i * step for i in range(len(ys)))
        return cls(name, xs, tuple(ys))

    @classmethod
    def from_points(cls, name: str, points: Iterable[Sequence[float]]) -> "LookupTable":
        """Build a table from explicit `(x, y)` pairs, kept in the given order."""
        pairs = [tuple(p) for p in points]
        for idx, pair in enumerate(pairs):
            if len(pair) != 2:
                raise ConfigurationError(f"Lookup table '{name}': entry {idx} is not an (x, y) pair: {pair!r}")
        return cls(name, tuple(p[0] for p in pairs), tuple(p[1] for p in pairs))

    @property
    def domain(self) -> Tuple[float, float]:
        return self.xs[0], self.xs[-1]

    def points(self) -> list[Tuple[float, float]]:
        return list(zip(self.xs, self.ys))

    def __call__(self, x: float) -> float:
        return interpolate(self, x)


def interpolate(table: LookupTable, x: float) -> float:
    """Piecewise-linear lookup with flat extrapolation beyond both ends.

    `numpy.interp` clamps to the first/last y value outside the domain, which
    is the boundary policy of the model. NaN queries propagate as NaN so the
    engine's finiteness checks can report them.
    """
    return float(np.interp(float(x), table.xs, table.ys))
