from __future__ import annotations

"""
Variable catalogue for the World2 model.

Short names follow the DYNAMO mnemonics of the published model (P, NR, CI,
...). They are the keys of every state sequence, of the results CSV columns
and of the plots. `label()` gives the readable name used in logs and charts.
"""

from typing import Dict, FrozenSet, Tuple


LEVELS: Tuple[str, ...] = ("P", "NR", "CI", "CIAF", "POL")

RATES: Tuple[str, ...] = ("BR", "DR", "NRUR", "CIG", "CID", "POLG", "POLA")

AUXILIARIES: Tuple[str, ...] = ("NRFR", "POLR", "CR", "CIR", "CIRA", "FR", "ECIR", "MSL", "QL")

ALL_VARIABLES: Tuple[str, ...] = LEVELS + RATES + AUXILIARIES

# Flows defined only between two steps; index 0 stays unset (NaN)
FIRST_STEP_UNSET: FrozenSet[str] = frozenset({"BR", "DR", "NRUR", "CIG", "CID"})

LABELS: Dict[str, str] = {
    "P": "Population",
    "NR": "Natural Resources",
    "CI": "Capital Investment",
    "CIAF": "Capital-Investment-in-Agriculture Fraction",
    "POL": "Pollution",
    "BR": "Birth Rate",
    "DR": "Death Rate",
    "NRUR": "Natural-Resource Usage Rate",
    "CIG": "Capital-Investment Generation",
    "CID": "Capital-Investment Discard",
    "POLG": "Pollution Generation",
    "POLA": "Pollution Absorption",
    "NRFR": "Natural-Resource Fraction Remaining",
    "POLR": "Pollution Ratio",
    "CR": "Crowding Ratio",
    "CIR": "Capital-Investment Ratio",
    "CIRA": "Capital-Investment Ratio in Agriculture",
    "FR": "Food Ratio",
    "ECIR": "Effective-Capital-Investment Ratio",
    "MSL": "Material Standard of Living",
    "QL": "Quality of Life",
}


def label(name: str) -> str:
    """Return the readable label for a variable, e.g. `label("QL") == "Quality of Life"`."""
    try:
        return LABELS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown World2 variable '{name}'") from exc


# Level -> parameter holding its initial value
INITIAL_CONSTANTS: Dict[str, str] = {
    "P": "PI",
    "NR": "NRI",
    "CI": "CII",
    "CIAF": "CIAFI",
    "POL": "POLI",
}
