from __future__ import annotations

"""
World2 simulation engine: fixed-step explicit Euler with DYNAMO staging.

The model has five levels (P, NR, CI, CIAF, POL). Each step K reads the
fully resolved state of step J = K - 1 and then fills step K in a fixed
order (`World2Model.STEP_SEQUENCE`):

1.  BR, DR        birth and death rates from P.J and four multipliers each
2.  P.K           P.J + DT (BR - DR)
3.  NRUR, NR, NRFR
4.  POLG, POLA, POL, POLR
5.  CIAF.K        first-order relaxation toward CFIFR(FR.J) * CIQR(QLM.J / QLF.J)
6.  CID, CIG, CI
7.  CR.K          from P.K
8.  CIR.K         from CI.K and P.K
9.  CIRA.K, FR.K  from CR.K, CIR.K, CIAF.K, POLR.K
10. ECIR.K, MSL.K from CIR.K, CIAF.K, NRFR.K
11. QL.K          from MSL.K, CR.K, FR.K, POLR.K

Steps 7-11 read values written earlier in the same step, so the order is part
of the model: moving them changes the trajectory.

Design principles
- All state lives in one `SimulationState` owned by the model instance; there
  is no module-level state and a model runs exactly once.
- Slots are NaN until written, written exactly once, and reading an unset
  slot is an error rather than a silent NaN.
- Every division and every written value is checked; the first invalid value
  raises `NumericDomainError` with the variable, step index and year.

Usage
- `run_world2()` runs the reference scenario and returns a `SimulationResult`.
- `World2Model(runspecs, parameters, tables).run()` runs a variant.
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import NumericDomainError
from .naming import ALL_VARIABLES, LEVELS
from .parameters import Parameters, RunSpecs, clip
from .tables import TableSet, default_tables
from .validation import check_finite, safe_divide, validate_result


log = logging.getLogger(__name__)


@dataclass
class SimulationState:
    """Per-run storage: one NaN-initialised array per variable, aligned with `time`."""

    time: np.ndarray
    series: Dict[str, np.ndarray] = field(default_factory=dict)

    @classmethod
    def allocate(cls, time: np.ndarray) -> "SimulationState":
        n = len(time)
        return cls(time=time, series={name: np.full((n,), np.nan) for name in ALL_VARIABLES})

    def __len__(self) -> int:
        return len(self.time)


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """Complete trajectory of one run. Arrays are read-only."""

    runspecs: RunSpecs
    parameters: Parameters
    time: np.ndarray
    series: Dict[str, np.ndarray]

    def __getitem__(self, name: str) -> np.ndarray:
        return self.series[name]

    def __len__(self) -> int:
        return len(self.time)

    def index_of(self, year: float) -> int:
        """Grid index of `year`; raises ValueError if the year is not a grid point."""
        i = int(round((float(year) - self.runspecs.starttime) / self.runspecs.dt))
        if not 0 <= i < len(self.time) or abs(self.time[i] - year) > 1e-6 * max(1.0, self.runspecs.dt):
            raise ValueError(f"Year {year} is not on the time grid {self.time[0]}..{self.time[-1]} step {self.runspecs.dt}")
        return i

    def at_year(self, name: str, year: float) -> float:
        return float(self.series[name][self.index_of(year)])

    def peak(self, name: str) -> Tuple[float, float]:
        """Return (max value, year of max) ignoring unset samples."""
        values = self.series[name]
        i = int(np.nanargmax(values))
        return float(values[i]), float(self.time[i])

    def to_frame(self) -> pd.DataFrame:
        """One row per grid year, one column per variable (unset samples stay NaN)."""
        df = pd.DataFrame({name: self.series[name] for name in ALL_VARIABLES}, index=self.time)
        df.index.name = "Year"
        return df


class World2Model:
    # Per-step stage order; see the module docstring
    STEP_SEQUENCE: Tuple[str, ...] = (
        "_update_birth_and_death_rates",
        "_update_population",
        "_update_natural_resources",
        "_update_pollution",
        "_update_agriculture_fraction",
        "_update_capital_investment",
        "_update_crowding_ratio",
        "_update_capital_ratio",
        "_update_food_ratio",
        "_update_material_standard",
        "_update_quality_of_life",
    )

    LOG_SAMPLE_EVERY = 50

    def __init__(
        self,
        runspecs: Optional[RunSpecs] = None,
        parameters: Optional[Parameters] = None,
        tables: Optional[TableSet] = None,
    ) -> None:
        self.runspecs = runspecs or RunSpecs()
        self.parameters = parameters or Parameters()
        self.tables = tables if tables is not None else default_tables()
        self.state = SimulationState.allocate(self.runspecs.time_grid())
        self._has_run = False

    # ------------------------------------------------------------------
    # state access
    # ------------------------------------------------------------------
    def _year(self, index: int) -> float:
        return float(self.state.time[index])

    def _get(self, name: str, index: int) -> float:
        value = self.state.series[name][index]
        if np.isnan(value):
            raise NumericDomainError("read before it was computed", variable=name, index=index, year=self._year(index))
        return float(value)

    def _set(self, name: str, index: int, value: float) -> float:
        slot = self.state.series[name]
        if not np.isnan(slot[index]):
            raise RuntimeError(f"{name}[{index}] written twice")
        slot[index] = check_finite(value, variable=name, index=index, year=self._year(index))
        return slot[index]

    def _divide(self, numerator: float, denominator: float, name: str, index: int) -> float:
        return safe_divide(numerator, denominator, variable=name, index=index, year=self._year(index))

    def _lookup(self, table: str, x: float) -> float:
        return self.tables[table](x)

    # ------------------------------------------------------------------
    # flows, evaluated from the state at `src`
    # ------------------------------------------------------------------
    def _birth_rate(self, src: int) -> float:
        p = self.parameters
        msl, cr, fr, polr = (self._get(n, src) for n in ("MSL", "CR", "FR", "POLR"))
        return (
            self._get("P", src)
            * clip(p.BRN, p.BRN1, p.SWT1, self._year(src))
            * self._lookup("BRMM", msl)
            * self._lookup("BRCM", cr)
            * self._lookup("BRFM", fr)
            * self._lookup("BRPM", polr)
        )

    def _death_rate(self, src: int) -> float:
        p = self.parameters
        msl, cr, fr, polr = (self._get(n, src) for n in ("MSL", "CR", "FR", "POLR"))
        return (
            self._get("P", src)
            * clip(p.DRN, p.DRN1, p.SWT3, self._year(src))
            * self._lookup("DRMM", msl)
            * self._lookup("DRPM", polr)
            * self._lookup("DRFM", fr)
            * self._lookup("DRCM", cr)
        )

    def _resource_usage_rate(self, src: int) -> float:
        p = self.parameters
        return (
            self._get("P", src)
            * clip(p.NRUN, p.NRUN1, p.SWT2, self._year(src))
            * self._lookup("NRMM", self._get("MSL", src))
        )

    def _pollution_generation(self, src: int) -> float:
        p = self.parameters
        return (
            self._get("P", src)
            * clip(p.POLN, p.POLN1, p.SWT6, self._year(src))
            * self._lookup("POLCM", self._get("CIR", src))
        )

    def _pollution_absorption(self, src: int, dst: int) -> float:
        absorption_time = self._lookup("POLAT", self._get("POLR", src))
        return self._divide(self._get("POL", src), absorption_time, "POLA", dst)

    def _capital_generation(self, src: int) -> float:
        p = self.parameters
        return (
            self._get("P", src)
            * self._lookup("CIM", self._get("MSL", src))
            * clip(p.CIGN, p.CIGN1, p.SWT4, self._year(src))
        )

    def _capital_discard(self, src: int) -> float:
        p = self.parameters
        return self._get("CI", src) * clip(p.CIDN, p.CIDN1, p.SWT5, self._year(src))

    # ------------------------------------------------------------------
    # auxiliaries at index i, shared by initialization and stepping
    # ------------------------------------------------------------------
    def _compute_resource_fraction(self, i: int) -> None:
        self._set("NRFR", i, self._divide(self._get("NR", i), self.parameters.NRI, "NRFR", i))

    def _compute_pollution_ratio(self, i: int) -> None:
        self._set("POLR", i, self._divide(self._get("POL", i), self.parameters.POLS, "POLR", i))

    def _compute_crowding_ratio(self, i: int) -> None:
        p = self.parameters
        self._set("CR", i, self._divide(self._get("P", i), p.LA * p.PDN, "CR", i))

    def _compute_capital_ratio(self, i: int) -> None:
        self._set("CIR", i, self._divide(self._get("CI", i), self._get("P", i), "CIR", i))

    def _compute_food_ratio(self, i: int) -> None:
        p = self.parameters
        cira = self._set(
            "CIRA", i, self._divide(self._get("CIR", i) * self._get("CIAF", i), p.CIAFN, "CIRA", i)
        )
        food = (
            self._lookup("FCM", self._get("CR", i))
            * self._lookup("FPCI", cira)
            * self._lookup("FPM", self._get("POLR", i))
            * clip(p.FC, p.FC1, p.SWT7, self._year(i))
        )
        self._set("FR", i, self._divide(food, p.FN, "FR", i))

    def _compute_material_standard(self, i: int) -> None:
        p = self.parameters
        effective = self._get("CIR", i) * (1.0 - self._get("CIAF", i)) * self._lookup("NREM", self._get("NRFR", i))
        ecir = self._set("ECIR", i, self._divide(effective, 1.0 - p.CIAFN, "ECIR", i))
        self._set("MSL", i, self._divide(ecir, p.ECIRN, "MSL", i))

    def _compute_quality_of_life(self, i: int) -> None:
        self._set(
            "QL",
            i,
            self.parameters.QLS
            * self._lookup("QLM", self._get("MSL", i))
            * self._lookup("QLC", self._get("CR", i))
            * self._lookup("QLF", self._get("FR", i))
            * self._lookup("QLP", self._get("POLR", i)),
        )

    # ------------------------------------------------------------------
    # step stages (k = step being filled, j = k - 1)
    # ------------------------------------------------------------------
    def _update_birth_and_death_rates(self, k: int, j: int) -> None:
        self._set("BR", k, self._birth_rate(j))
        self._set("DR", k, self._death_rate(j))

    def _update_population(self, k: int, j: int) -> None:
        dt = self.runspecs.dt
        self._set("P", k, self._get("P", j) + dt * (self._get("BR", k) - self._get("DR", k)))

    def _update_natural_resources(self, k: int, j: int) -> None:
        dt = self.runspecs.dt
        usage = self._set("NRUR", k, self._resource_usage_rate(j))
        self._set("NR", k, self._get("NR", j) - dt * usage)
        self._compute_resource_fraction(k)

    def _update_pollution(self, k: int, j: int) -> None:
        dt = self.runspecs.dt
        generation = self._set("POLG", k, self._pollution_generation(j))
        absorption = self._set("POLA", k, self._pollution_absorption(j, k))
        self._set("POL", k, self._get("POL", j) + dt * (generation - absorption))
        self._compute_pollution_ratio(k)

    def _update_agriculture_fraction(self, k: int, j: int) -> None:
        p = self.parameters
        msl, fr = self._get("MSL", j), self._get("FR", j)
        quality_ratio = self._divide(self._lookup("QLM", msl), self._lookup("QLF", fr), "CIAF", k)
        target = self._lookup("CFIFR", fr) * self._lookup("CIQR", quality_ratio)
        ciaf = self._get("CIAF", j)
        self._set("CIAF", k, ciaf + (self.runspecs.dt / p.CIAFT) * (target - ciaf))

    def _update_capital_investment(self, k: int, j: int) -> None:
        dt = self.runspecs.dt
        discard = self._set("CID", k, self._capital_discard(j))
        generation = self._set("CIG", k, self._capital_generation(j))
        self._set("CI", k, self._get("CI", j) + dt * (generation - discard))

    def _update_crowding_ratio(self, k: int, j: int) -> None:
        self._compute_crowding_ratio(k)

    def _update_capital_ratio(self, k: int, j: int) -> None:
        self._compute_capital_ratio(k)

    def _update_food_ratio(self, k: int, j: int) -> None:
        self._compute_food_ratio(k)

    def _update_material_standard(self, k: int, j: int) -> None:
        self._compute_material_standard(k)

    def _update_quality_of_life(self, k: int, j: int) -> None:
        self._compute_quality_of_life(k)

    # ------------------------------------------------------------------
    # run
    # ------------------------------------------------------------------
    def _initialize(self) -> None:
        """Fill index 0: levels from their initial constants, then every auxiliary.

        The first-step flows (BR, DR, NRUR, CIG, CID) stay unset.
        """
        p = self.parameters
        for level, value in (("P", p.PI), ("NR", p.NRI), ("CI", p.CII), ("POL", p.POLI), ("CIAF", p.CIAFI)):
            self._set(level, 0, value)

        self._compute_capital_ratio(0)
        self._compute_pollution_ratio(0)
        self._set("POLG", 0, self._pollution_generation(0))
        self._set("POLA", 0, self._pollution_absorption(0, 0))
        self._compute_crowding_ratio(0)
        self._compute_resource_fraction(0)
        self._compute_material_standard(0)
        self._compute_food_ratio(0)
        self._compute_quality_of_life(0)

    def _step(self, k: int) -> None:
        j = k - 1
        for stage in self.STEP_SEQUENCE:
            getattr(self, stage)(k, j)

    def _log_sample(self, k: int) -> None:
        if not log.isEnabledFor(logging.DEBUG):
            return
        s = self.state.series
        log.debug(
            "t=%.1f %s",
            self._year(k),
            " ".join(f"{name}={s[name][k]:.4g}" for name in LEVELS + ("QL",)),
        )

    def run(self) -> SimulationResult:
        """Compute the full trajectory once and hand it off as a `SimulationResult`."""
        if self._has_run:
            raise RuntimeError("World2Model instances run once; build a new model for another run")
        self._has_run = True

        n = len(self.state)
        log.info(
            "World2 run: %.1f..%.1f dt=%g (%d steps)",
            self.runspecs.starttime,
            self.runspecs.stoptime,
            self.runspecs.dt,
            n,
        )
        self._initialize()
        self._log_sample(0)
        for k in range(1, n):
            self._step(k)
            if k % self.LOG_SAMPLE_EVERY == 0:
                self._log_sample(k)

        for values in self.state.series.values():
            values.flags.writeable = False
        self.state.time.flags.writeable = False
        result = SimulationResult(
            runspecs=self.runspecs,
            parameters=self.parameters,
            time=self.state.time,
            series=dict(self.state.series),
        )
        validate_result(result, log=log)
        peak, peak_year = result.peak("P")
        log.info("World2 run complete: peak population %.4g in %.1f", peak, peak_year)
        return result


def run_world2(
    runspecs: Optional[RunSpecs] = None,
    parameters: Optional[Parameters] = None,
    tables: Optional[TableSet] = None,
) -> SimulationResult:
    """Run one World2 trajectory and return the result."""
    return World2Model(runspecs, parameters, tables).run()
