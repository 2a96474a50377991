"""Plotting helpers for World2 results CSVs (requires matplotlib)."""
