from __future__ import annotations

"""
Run-time numeric checks, result validation and scenario echo.

The engine calls `check_finite` on every value it writes and `safe_divide`
for every ratio, so an invalid numeric state stops the run at the offending
step with a `NumericDomainError` naming the variable, step index and year.
`validate_result` re-checks the output contract once the run is complete.
"""

import json
import logging
import math
from pathlib import Path
from typing import Optional

import numpy as np

from .errors import NumericDomainError
from .naming import ALL_VARIABLES, FIRST_STEP_UNSET, INITIAL_CONSTANTS


def check_finite(value: float, *, variable: str, index: int, year: Optional[float] = None) -> float:
    """Return `value` as a float, raising if it is NaN or infinite."""
    value = float(value)
    if not math.isfinite(value):
        raise NumericDomainError(f"non-finite value {value}", variable=variable, index=index, year=year)
    return value


def safe_divide(
    numerator: float, denominator: float, *, variable: str, index: int, year: Optional[float] = None
) -> float:
    """Divide, raising `NumericDomainError` on a zero denominator or non-finite result."""
    if denominator == 0:
        raise NumericDomainError(
            f"division by zero ({numerator} / {denominator})", variable=variable, index=index, year=year
        )
    return check_finite(numerator / denominator, variable=variable, index=index, year=year)


def validate_result(result, log: Optional[logging.Logger] = None) -> None:
    """Check the output contract of a completed run.

    - every variable has exactly N samples aligned with the time grid
    - levels at index 0 equal their initial constants
    - the NaN sentinel appears only at index 0 of the first-step flows

    Raises RuntimeError with an actionable message on the first violation.
    """
    n = len(result.time)
    problems: list[str] = []
    for name in ALL_VARIABLES:
        values = result.series.get(name)
        if values is None:
            problems.append(f"missing series {name}")
            continue
        if len(values) != n:
            problems.append(f"{name} has {len(values)} samples, expected {n}")
            continue
        unset = np.flatnonzero(np.isnan(values))
        allowed = {0} if name in FIRST_STEP_UNSET else set()
        bad = [int(i) for i in unset if int(i) not in allowed]
        if bad:
            problems.append(f"{name} unset at indices {bad[:5]}")
    params = result.parameters.as_dict()
    for level, const in INITIAL_CONSTANTS.items():
        values = result.series.get(level)
        if values is not None and len(values) and values[0] != params[const]:
            problems.append(f"{level}[0]={values[0]} differs from {const}={params[const]}")
    if problems:
        msg = "Result validation failed: " + "; ".join(problems)
        if log:
            log.error(msg)
        raise RuntimeError(msg)


def echo_scenario_overrides(*, log_dir: Path, scenario, log: logging.Logger) -> Path:
    """Write the applied runspecs and overrides to `scenario_overrides_echo.json`.

    Also logs override counts, and the overridden keys at DEBUG.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    echo = {
        "name": scenario.name,
        "runspecs": {
            "starttime": float(scenario.runspecs.starttime),
            "stoptime": float(scenario.runspecs.stoptime),
            "dt": float(scenario.runspecs.dt),
            "num_steps": int(scenario.runspecs.num_steps),
        },
        "overrides": {
            "constants": {k: float(v) for k, v in sorted(scenario.constants.items())},
            "points": {k: [[float(x), float(y)] for (x, y) in pts] for k, pts in sorted(scenario.points.items())},
        },
    }
    json_path = log_dir / "scenario_overrides_echo.json"
    json_path.write_text(json.dumps(echo, indent=2), encoding="utf-8")

    log.info(
        "Scenario overrides applied: %d constants, %d lookups",
        len(scenario.constants),
        len(scenario.points),
    )
    if scenario.constants:
        log.debug("Override constants: %s", sorted(scenario.constants))
    if scenario.points:
        log.debug("Override lookups: %s", sorted(scenario.points))
    return json_path
