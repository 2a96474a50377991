from __future__ import annotations

"""
Run specs and the scalar parameter set of the World2 model.

Defaults reproduce the reference run of Forrester (1971). Every rate constant
comes as a pair (`X`, `X1`) with a switch year `SWTn`: the model uses `X` up to
and including the switch year and `X1` afterwards. In the reference run both
values of every pair are equal, so the switches are inert until a scenario
changes one of them.
"""

from dataclasses import asdict, dataclass, fields, replace
import difflib
import math
from typing import Dict, Mapping

import numpy as np

from .errors import ConfigurationError


DEFAULT_START = 1900.0
DEFAULT_STOP = 2100.0
DEFAULT_DT = 0.2

# Absorbs float error in (stop - start) / dt, e.g. 200 / 0.2
_GRID_TOLERANCE = 1e-9


@dataclass(frozen=True)
class RunSpecs:
    starttime: float = DEFAULT_START
    stoptime: float = DEFAULT_STOP
    dt: float = DEFAULT_DT

    def __post_init__(self) -> None:
        for field_name in ("starttime", "stoptime", "dt"):
            value = getattr(self, field_name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(f"runspecs.{field_name} must be a finite number, got {value!r}")
        if self.dt <= 0:
            raise ConfigurationError(f"runspecs.dt must be positive, got {self.dt}")
        if self.starttime >= self.stoptime:
            raise ConfigurationError(
                f"runspecs.starttime ({self.starttime}) must be before stoptime ({self.stoptime})"
            )

    @property
    def num_steps(self) -> int:
        """Number of grid points N = floor((stop - start) / dt) + 1."""
        return int(math.floor((self.stoptime - self.starttime) / self.dt + _GRID_TOLERANCE)) + 1

    def time_grid(self) -> np.ndarray:
        """Return `start + i * dt` for i in 0..N-1."""
        return self.starttime + np.arange(self.num_steps, dtype=float) * self.dt


@dataclass(frozen=True)
class Parameters:
    # Initial stocks
    PI: float = 1.65e9  # population (people)
    NRI: float = 900e9  # natural resources (resource units)
    CII: float = 0.4e9  # capital investment (capital units)
    POLI: float = 0.2e9  # pollution (pollution units)
    CIAFI: float = 0.2  # capital-investment-in-agriculture fraction

    # Switched normals
    BRN: float = 0.04
    BRN1: float = 0.04
    SWT1: float = 1970.0
    NRUN: float = 1.0
    NRUN1: float = 1.0
    SWT2: float = 1970.0
    DRN: float = 0.028
    DRN1: float = 0.028
    SWT3: float = 1970.0
    CIGN: float = 0.05
    CIGN1: float = 0.05
    SWT4: float = 1970.0
    CIDN: float = 0.025
    CIDN1: float = 0.025
    SWT5: float = 1970.0
    POLN: float = 1.0
    POLN1: float = 1.0
    SWT6: float = 1970.0
    FC: float = 1.0
    FC1: float = 1.0
    SWT7: float = 1970.0

    # Normalisation constants
    FN: float = 1.0  # food normal
    LA: float = 135e6  # land area (km2)
    PDN: float = 26.5  # population density normal (people/km2)
    CIAFN: float = 0.3  # capital-investment-in-agriculture fraction normal
    CIAFT: float = 15.0  # CIAF adjustment time (years)
    POLS: float = 3.6e9  # pollution standard
    ECIRN: float = 1.0  # effective-capital-investment ratio normal
    QLS: float = 1.0  # quality-of-life standard

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(f"Parameter {f.name} must be a finite number, got {value!r}")
        for name in ("NRI", "LA", "PDN", "POLS", "ECIRN", "FN", "CIAFT"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"Parameter {name} must be positive, got {getattr(self, name)}")
        if not 0.0 < self.CIAFN < 1.0:
            raise ConfigurationError(f"Parameter CIAFN must lie in (0, 1), got {self.CIAFN}")

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def with_overrides(self, overrides: Mapping[str, float]) -> "Parameters":
        """Return a copy with named constants replaced.

        Unknown names raise `ConfigurationError` with the closest valid names.
        """
        known = self.names()
        for name in overrides:
            if name not in known:
                hint = difflib.get_close_matches(name, known, n=3)
                suffix = f" Did you mean: {', '.join(hint)}?" if hint else ""
                raise ConfigurationError(f"Unknown parameter '{name}'.{suffix}")
        return replace(self, **{k: float(v) for k, v in overrides.items()})


def clip(before: float, after: float, switch_time: float, time: float) -> float:
    """Time switch: `before` while `time <= switch_time`, `after` once past it."""
    return before if switch_time >= time else after
