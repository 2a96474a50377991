from __future__ import annotations

"""
Results summary & CSV writer.

Turns a `SimulationResult` into the artefacts consumed outside the engine:
- `summarize(result)`: headline figures (population peak, values at 2000 and
  at the final year) as a flat dict for logging and comparisons
- `write_results_csv(result, path)`: one row per grid year, one column per
  variable; unset first-step flows are written as empty cells
"""

from pathlib import Path
from typing import Dict, Optional

from .io_paths import OUTPUT_DIR, RESULTS_CSV_NAME
from .naming import LEVELS


SUMMARY_YEAR = 2000.0


def summarize(result) -> Dict[str, float]:
    """Return headline KPIs of a run keyed by `<VAR> <year>` style labels."""
    out: Dict[str, float] = {}
    peak, peak_year = result.peak("P")
    out["Peak P"] = peak
    out["Peak P year"] = peak_year
    peak_polr, peak_polr_year = result.peak("POLR")
    out["Peak POLR"] = peak_polr
    out["Peak POLR year"] = peak_polr_year

    years = [float(result.time[-1])]
    try:
        result.index_of(SUMMARY_YEAR)
        years.insert(0, SUMMARY_YEAR)
    except ValueError:
        pass
    for year in years:
        for name in LEVELS + ("QL",):
            out[f"{name} {year:g}"] = result.at_year(name, year)
    return out


def write_results_csv(result, path: Optional[Path] = None) -> Path:
    """Write the full trajectory to CSV and return the written path."""
    path = Path(path) if path is not None else OUTPUT_DIR / RESULTS_CSV_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    result.to_frame().to_csv(path, float_format="%.10g")
    return path
