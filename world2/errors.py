from __future__ import annotations

"""Error taxonomy for the World2 engine.

Both errors are fatal: a run is a deterministic function of its inputs, so
the only recovery is for the caller to change parameters and start again.
"""

from typing import Optional


class ConfigurationError(ValueError):
    """Malformed run specs, parameters or lookup tables, detected before stepping."""


class NumericDomainError(RuntimeError):
    """A step produced a division by zero or a non-finite value."""

    def __init__(self, message: str, *, variable: str, index: int, year: Optional[float] = None) -> None:
        self.variable = variable
        self.index = index
        self.year = year
        where = f"{variable} at step {index}"
        if year is not None:
            where += f" (year {year:.2f})"
        super().__init__(f"{where}: {message}")
