#!/usr/bin/env python3
from __future__ import annotations

"""
Runner for the World2 model.

Responsibilities:
- Configure logging to both console and `logs/run.log`
- Load a YAML/JSON scenario (explicit path or preset under `scenarios/`)
- Build parameters and lookup tables with the scenario overrides applied
- Echo applied overrides to `logs/`
- Run the engine once and validate the output contract
- Write `output/World2_Results.csv` plus a scenario-suffixed copy
- Optionally render plots from the CSV (`--visualize`)
"""

import argparse
import logging
import re
import shutil
from pathlib import Path
from typing import Optional, Tuple

from world2.errors import ConfigurationError, NumericDomainError
from world2.io_paths import LOGS_DIR, OUTPUT_DIR, RESULTS_CSV_NAME, SCENARIOS_DIR
from world2.kpi_extractor import summarize, write_results_csv
from world2.model import SimulationResult, World2Model
from world2.scenario_loader import Scenario, load_and_validate_scenario
from world2.utils_logging import configure_logging
from world2.validation import echo_scenario_overrides


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for the runner.

    Exactly one of `--scenario` or `--preset` may be provided; the default
    resolves to the baseline scenario file.
    """
    p = argparse.ArgumentParser(description="World2 – Runner")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--scenario", type=str, help="Path to a scenario YAML/JSON file")
    group.add_argument(
        "--preset",
        type=str,
        help="Scenario preset name (resolves to a file under 'scenarios/', e.g. 'baseline' or 'reduced_resource_usage')",
    )
    p.add_argument("--debug", action="store_true")
    p.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for the results CSV (default: output/)",
    )
    p.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for run.log and the scenario echo (default: logs/)",
    )
    p.add_argument(
        "--visualize",
        action="store_true",
        help="Generate plots from the produced CSV and save under <output-dir>/plots/",
    )
    return p.parse_args(argv)


def _resolve_scenario_path(scenario: str | None, preset: str | None) -> Path:
    """Resolve the scenario file path from either an explicit path or a preset name.

    Rules:
    - If `scenario` is provided, return it as a `Path`.
    - If `preset` is provided, attempt `<preset>.yaml` then `<preset>.json` under `SCENARIOS_DIR`.
    - If neither provided, default to `baseline.yaml` under `SCENARIOS_DIR`.
    """
    if scenario:
        return Path(scenario)
    if preset:
        yaml_path = SCENARIOS_DIR / f"{preset}.yaml"
        json_path = SCENARIOS_DIR / f"{preset}.json"
        if yaml_path.exists():
            return yaml_path
        if json_path.exists():
            return json_path
        available = sorted([p.stem for p in SCENARIOS_DIR.glob("*.yaml")] + [p.stem for p in SCENARIOS_DIR.glob("*.json")])
        raise FileNotFoundError(
            f"Preset '{preset}' not found under {SCENARIOS_DIR}. Available presets: {', '.join(available) or '(none)'}"
        )
    return SCENARIOS_DIR / "baseline.yaml"


def run_scenario(
    scenario: Scenario,
    *,
    log: logging.Logger,
    output_dir: Optional[Path] = None,
    log_dir: Optional[Path] = None,
) -> Tuple[SimulationResult, Path]:
    """Run one scenario end to end and return the result and the CSV path."""
    output_dir = Path(output_dir) if output_dir is not None else OUTPUT_DIR
    echo_scenario_overrides(log_dir=Path(log_dir) if log_dir is not None else LOGS_DIR, scenario=scenario, log=log)

    model = World2Model(scenario.runspecs, scenario.build_parameters(), scenario.build_tables())
    result = model.run()

    for key, value in summarize(result).items():
        log.info("%s: %.6g", key, value)

    output_path = write_results_csv(result, output_dir / RESULTS_CSV_NAME)
    log.info("Wrote results CSV to %s", output_path)

    # Scenario-suffixed copy for side-by-side comparisons
    suffix = re.sub(r"[^0-9A-Za-z_]+", "_", str(scenario.name).strip().replace(" ", "_"))
    if suffix:
        suffixed = output_path.with_name(output_path.stem + f"_{suffix}" + output_path.suffix)
        shutil.copyfile(output_path, suffixed)
        log.info("Also wrote suffixed results CSV to %s", suffixed)

    return result, output_path


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    log_dir = Path(args.log_dir) if args.log_dir else LOGS_DIR
    configure_logging(log_dir, debug=args.debug)
    log = logging.getLogger("runner")

    try:
        scenario_path = _resolve_scenario_path(args.scenario, args.preset)
        scenario = load_and_validate_scenario(scenario_path)
    except (ConfigurationError, FileNotFoundError) as e:
        log.error("Scenario could not be loaded: %s", e)
        return 2

    log.info("Loaded scenario '%s' from %s", scenario.name, scenario_path)
    log.info(
        "Runspecs: start %.2f, stop %.2f, dt %.3f (%d steps)",
        scenario.runspecs.starttime,
        scenario.runspecs.stoptime,
        scenario.runspecs.dt,
        scenario.runspecs.num_steps,
    )

    try:
        _, output_csv = run_scenario(scenario, log=log, output_dir=args.output_dir, log_dir=log_dir)
    except (ConfigurationError, NumericDomainError) as e:
        log.error("Run failed: %s", e)
        return 1

    if args.visualize:
        try:
            from viz.plots import generate_all_plots_from_csv
        except ImportError as e:
            log.error("Visualization dependencies missing or import failed: %s", e)
            raise

        plots = generate_all_plots_from_csv(output_csv, plots_dir=output_csv.parent / "plots")
        log.info("Wrote %d plots under %s", len(plots), output_csv.parent / "plots")

    print("OK: World2 run complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
