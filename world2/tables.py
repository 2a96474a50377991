from __future__ import annotations

"""
Reference multiplier tables of the World2 model (Forrester, World Dynamics,
1971, appendix B).

Each table maps one driving ratio to one multiplier. Tables are data, not
code: a model variant supplies alternate tables through `TableSet.replace`
(or scenario `overrides.points`) without touching the engine.

Driving ratio per table:
- MSL  (material standard of living): BRMM, DRMM, CIM, QLM, NRMM
- POLR (pollution ratio):             DRPM, BRPM, FPM, POLAT, QLP
- FR   (food ratio):                  DRFM, BRFM, CFIFR, QLF
- CR   (crowding ratio):              DRCM, BRCM, FCM, QLC
- NRFR (resource fraction remaining): NREM
- CIRA (capital ratio in agriculture): FPCI
- CIR  (capital-investment ratio):    POLCM
- QLM / QLF (quality ratio):          CIQR
"""

from typing import Dict, Iterator, Mapping, Tuple

from .errors import ConfigurationError
from .lookup import LookupTable


# name -> (first x, x step, y values)
REFERENCE_TABLES: Dict[str, Tuple[float, float, Tuple[float, ...]]] = {
    "BRMM": (0.0, 1.0, (1.2, 1.0, 0.85, 0.75, 0.7, 0.7)),
    "NREM": (0.0, 0.25, (0.0, 0.15, 0.5, 0.85, 1.0)),
    "DRMM": (0.0, 0.5, (3.0, 1.8, 1.0, 0.8, 0.7, 0.6, 0.53, 0.5, 0.5, 0.5, 0.5)),
    "DRPM": (0.0, 10.0, (0.92, 1.3, 2.0, 3.2, 4.8, 6.8, 9.2)),
    "DRFM": (0.0, 0.25, (30.0, 3.0, 2.0, 1.4, 1.0, 0.7, 0.6, 0.5, 0.5)),
    "DRCM": (0.0, 1.0, (0.9, 1.0, 1.2, 1.5, 1.9, 3.0)),
    "BRCM": (0.0, 1.0, (1.05, 1.0, 0.9, 0.7, 0.6, 0.55)),
    "BRFM": (0.0, 1.0, (0.0, 1.0, 1.6, 1.9, 2.0)),
    "BRPM": (0.0, 10.0, (1.02, 0.9, 0.7, 0.4, 0.25, 0.15, 0.1)),
    "FCM": (0.0, 1.0, (2.4, 1.0, 0.6, 0.4, 0.3, 0.2)),
    "FPCI": (0.0, 1.0, (0.5, 1.0, 1.4, 1.7, 1.9, 2.05, 2.2)),
    "CIM": (0.0, 1.0, (0.1, 1.0, 1.8, 2.4, 2.8, 3.0)),
    "FPM": (0.0, 10.0, (1.02, 0.9, 0.65, 0.35, 0.2, 0.1, 0.05)),
    "POLCM": (0.0, 1.0, (0.05, 1.0, 3.0, 5.4, 7.4, 8.0)),
    "POLAT": (0.0, 10.0, (0.6, 2.5, 5.0, 8.0, 11.5, 15.5, 20.0)),
    "CFIFR": (0.0, 0.5, (1.0, 0.6, 0.3, 0.15, 0.1)),
    "QLM": (0.0, 1.0, (0.2, 1.0, 1.7, 2.3, 2.7, 2.9)),
    "QLC": (0.0, 0.5, (2.0, 1.3, 1.0, 0.75, 0.55, 0.45, 0.38, 0.3, 0.25, 0.22, 0.2)),
    "QLF": (0.0, 1.0, (0.0, 1.0, 1.8, 2.4, 2.7)),
    "QLP": (0.0, 10.0, (1.04, 0.85, 0.6, 0.3, 0.15, 0.05, 0.02)),
    "NRMM": (0.0, 1.0, (0.0, 1.0, 1.8, 2.4, 2.9, 3.3, 3.6, 3.8, 3.9, 3.95, 4.0)),
    "CIQR": (0.0, 0.5, (0.7, 0.8, 1.0, 1.5, 2.0)),
}

TABLE_NAMES: Tuple[str, ...] = tuple(REFERENCE_TABLES)


class TableSet(Mapping[str, LookupTable]):
    """Read-only mapping of table name to `LookupTable`.

    The set must contain exactly the tables the engine reads; a missing or
    extra name is a configuration error rather than a silent fallback.
    """

    def __init__(self, tables: Mapping[str, LookupTable]) -> None:
        missing = sorted(set(TABLE_NAMES) - set(tables))
        extra = sorted(set(tables) - set(TABLE_NAMES))
        if missing:
            raise ConfigurationError(f"Missing lookup tables: {', '.join(missing)}")
        if extra:
            raise ConfigurationError(f"Unknown lookup tables: {', '.join(extra)}")
        for name, table in tables.items():
            if not isinstance(table, LookupTable):
                raise ConfigurationError(f"Table '{name}' is not a LookupTable: {type(table).__name__}")
        self._tables: Dict[str, LookupTable] = {name: tables[name] for name in TABLE_NAMES}

    def __getitem__(self, name: str) -> LookupTable:
        return self._tables[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def replace(self, overrides: Mapping[str, LookupTable]) -> "TableSet":
        """Return a new set with the given tables swapped in."""
        merged = dict(self._tables)
        merged.update(overrides)
        return TableSet(merged)


def default_tables() -> TableSet:
    """Return the reference table set."""
    return TableSet(
        {
            name: LookupTable.from_range(name, start, step, ys)
            for name, (start, step, ys) in REFERENCE_TABLES.items()
        }
    )
