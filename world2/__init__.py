"""World2 system-dynamics model package.

Exports the engine, its configuration objects and the lookup-table helpers
for convenient imports. The runner (`simulate_world2.py`) and the `viz`
plotting package are kept outside so that importing the engine does not
pull in matplotlib.
"""

from .errors import ConfigurationError, NumericDomainError
from .lookup import LookupTable, interpolate
from .model import SimulationResult, SimulationState, World2Model, run_world2
from .naming import ALL_VARIABLES, AUXILIARIES, FIRST_STEP_UNSET, LEVELS, RATES, label
from .parameters import Parameters, RunSpecs, clip
from .tables import TABLE_NAMES, TableSet, default_tables

__all__ = [
    "ConfigurationError",
    "NumericDomainError",
    "LookupTable",
    "interpolate",
    "SimulationResult",
    "SimulationState",
    "World2Model",
    "run_world2",
    "ALL_VARIABLES",
    "AUXILIARIES",
    "FIRST_STEP_UNSET",
    "LEVELS",
    "RATES",
    "label",
    "Parameters",
    "RunSpecs",
    "clip",
    "TABLE_NAMES",
    "TableSet",
    "default_tables",
]
