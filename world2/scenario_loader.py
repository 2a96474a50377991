from __future__ import annotations

"""
Scenario Loader (YAML/JSON) & Strict Overrides

Responsibilities
- Load a single scenario file (YAML or JSON) containing optional `name`,
  `runspecs` and `overrides` blocks.
- Validate `runspecs` with defaults (1900.0→2100.0, dt=0.2) and basic
  consistency checks.
- Validate `overrides.constants` keys against the `Parameters` fields and
  `overrides.points` keys against the lookup-table names. Unknown keys are
  validation errors (strict policy) with nearest-match suggestions.
- Coerce numeric values, sort lookup point arrays by x, and require strictly
  increasing x values.

Example
    name: reduced_resource_usage
    runspecs:
      starttime: 1900
      stoptime: 2100
      dt: 0.2
    overrides:
      constants:
        NRUN1: 0.25
      points:
        CIM: [[0, 0.1], [1, 1], [2, 1.8], [3, 2.4], [4, 2.8], [5, 3]]
"""

from dataclasses import dataclass, field
import difflib
import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml

from .errors import ConfigurationError
from .lookup import LookupTable
from .parameters import DEFAULT_DT, DEFAULT_START, DEFAULT_STOP, Parameters, RunSpecs
from .tables import TABLE_NAMES, TableSet, default_tables


@dataclass(frozen=True)
class Scenario:
    name: str
    runspecs: RunSpecs
    # Strictly validated and normalized
    constants: Dict[str, float] = field(default_factory=dict)
    points: Dict[str, List[Tuple[float, float]]] = field(default_factory=dict)

    def build_parameters(self, base: Optional[Parameters] = None) -> Parameters:
        return (base or Parameters()).with_overrides(self.constants)

    def build_tables(self, base: Optional[TableSet] = None) -> TableSet:
        base = base if base is not None else default_tables()
        if not self.points:
            return base
        return base.replace({name: LookupTable.from_points(name, pts) for name, pts in self.points.items()})


def _coerce_numeric(value: object, field_name: str) -> float:
    """Coerce an int/float or a numeric string (with optional thousands commas) to float."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Non-numeric value for '{field_name}': {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip().replace(",", "").replace("_", "")
        try:
            return float(s)
        except ValueError as exc:
            raise ConfigurationError(f"Non-numeric value for '{field_name}': {value!r}") from exc
    raise ConfigurationError(f"Non-numeric value for '{field_name}': {value!r}")


def _coerce_points(points: Sequence[Sequence[object]], lookup_name: str) -> List[Tuple[float, float]]:
    """Validate and normalize a list of [x, y] pairs to floats sorted by x."""
    if not isinstance(points, (list, tuple)):
        raise ConfigurationError(f"Points for '{lookup_name}' must be a list of [x, y] pairs")
    normalized: List[Tuple[float, float]] = []
    for idx, pair in enumerate(points):
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ConfigurationError(
                f"Points for '{lookup_name}' must be a list of [x, y] pairs; bad entry at index {idx}: {pair!r}"
            )
        x = _coerce_numeric(pair[0], f"{lookup_name}[{idx}].x")
        y = _coerce_numeric(pair[1], f"{lookup_name}[{idx}].y")
        normalized.append((x, y))

    normalized.sort(key=lambda p: p[0])
    if len(normalized) < 2:
        raise ConfigurationError(f"Points for '{lookup_name}' need at least 2 pairs, got {len(normalized)}")
    for i in range(1, len(normalized)):
        if normalized[i][0] <= normalized[i - 1][0]:
            raise ConfigurationError(
                f"Points for '{lookup_name}' must have strictly increasing x values; offending sequence: {normalized}"
            )
    return normalized


def _nearest_matches(name: str, candidates: Iterable[str], n: int = 3) -> List[str]:
    return difflib.get_close_matches(name, list(candidates), n=n)


def _unknown_key_error(kind: str, key: str, candidates: Iterable[str]) -> ConfigurationError:
    hint = _nearest_matches(key, candidates)
    suffix = f" Did you mean: {', '.join(hint)}?" if hint else ""
    return ConfigurationError(f"Unknown {kind} '{key}'.{suffix}")


def _read_file(path: Path) -> Mapping[str, object]:
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        elif suffix == ".json":
            data = json.loads(text)
        else:
            raise ConfigurationError(f"Unsupported scenario format '{suffix}' (use .yaml, .yml or .json)")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not parse scenario file {path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Scenario file {path} must contain a mapping at the top level")
    return data


def _parse_runspecs(raw: Optional[Mapping[str, object]]) -> RunSpecs:
    if raw is None:
        return RunSpecs()
    if not isinstance(raw, dict):
        raise ConfigurationError("'runspecs' must be a mapping")
    allowed = {"starttime", "stoptime", "dt"}
    for key in raw:
        if key not in allowed:
            raise _unknown_key_error("runspecs key", str(key), allowed)
    return RunSpecs(
        starttime=_coerce_numeric(raw.get("starttime", DEFAULT_START), "runspecs.starttime"),
        stoptime=_coerce_numeric(raw.get("stoptime", DEFAULT_STOP), "runspecs.stoptime"),
        dt=_coerce_numeric(raw.get("dt", DEFAULT_DT), "runspecs.dt"),
    )


def _parse_overrides(raw: Optional[Mapping[str, object]]) -> Tuple[Dict[str, float], Dict[str, List[Tuple[float, float]]]]:
    if raw is None:
        return {}, {}
    if not isinstance(raw, dict):
        raise ConfigurationError("'overrides' must be a mapping")
    for key in raw:
        if key not in ("constants", "points"):
            raise _unknown_key_error("overrides block", str(key), ("constants", "points"))

    constants: Dict[str, float] = {}
    raw_constants = raw.get("constants") or {}
    if not isinstance(raw_constants, dict):
        raise ConfigurationError("'overrides.constants' must be a mapping of name -> number")
    known = Parameters.names()
    for key, value in raw_constants.items():
        key = str(key)
        if key not in known:
            raise _unknown_key_error("constant", key, known)
        constants[key] = _coerce_numeric(value, key)

    points: Dict[str, List[Tuple[float, float]]] = {}
    raw_points = raw.get("points") or {}
    if not isinstance(raw_points, dict):
        raise ConfigurationError("'overrides.points' must be a mapping of table name -> [[x, y], ...]")
    for key, value in raw_points.items():
        key = str(key)
        if key not in TABLE_NAMES:
            raise _unknown_key_error("lookup table", key, TABLE_NAMES)
        points[key] = _coerce_points(value, key)
    return constants, points


def load_and_validate_scenario(path: Path | str) -> Scenario:
    """Load a scenario file and return a validated, normalized `Scenario`.

    Parameter and table overrides are materialised once here, so invalid
    combinations (e.g. a non-positive land area) fail before any stepping.
    """
    path = Path(path)
    data = _read_file(path)
    for key in data:
        if key not in ("name", "runspecs", "overrides"):
            raise _unknown_key_error("top-level key", str(key), ("name", "runspecs", "overrides"))

    name = str(data.get("name") or path.stem)
    runspecs = _parse_runspecs(data.get("runspecs"))
    constants, points = _parse_overrides(data.get("overrides"))
    scenario = Scenario(name=name, runspecs=runspecs, constants=constants, points=points)

    scenario.build_parameters()
    scenario.build_tables()
    return scenario
