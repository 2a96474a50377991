from __future__ import annotations

"""Centralized path utilities for the project.

These provide absolute `Path` objects to key directories, avoiding
hard-coded relative paths throughout the codebase.
"""

from pathlib import Path


# The `world2` package sits one level below the project root
PROJECT_ROOT = Path(__file__).resolve().parents[1]

SCENARIOS_DIR = PROJECT_ROOT / "scenarios"
OUTPUT_DIR = PROJECT_ROOT / "output"
LOGS_DIR = PROJECT_ROOT / "logs"

RESULTS_CSV_NAME = "World2_Results.csv"
