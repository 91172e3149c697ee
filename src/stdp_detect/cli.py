"""
Command line entry point.

Usage:
    stdp-detect run --config configs/default.yaml
    stdp-detect run --config configs/default.yaml --seed 3 --plot session.png
    stdp-detect run --set n_period=200 --set "thr=[18, 20, 22]"
    stdp-detect batch --config configs/default.yaml --seeds 1 2 3 4 --workers 4 --output batch.json

``run`` starts one session (interactive unless ``--mode batch``). ``batch``
starts one batch-mode session per seed in parallel worker processes and
writes a JSON summary; batch sessions read the stores but never write them.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import torch.multiprocessing as mp
import yaml

from stdp_detect.config.simulation_config import RunMode, SimulationConfig
from stdp_detect.dynamics.simulation import run_session
from stdp_detect.errors import ConfigurationError, STDPDetectError
from stdp_detect.log_setup import configure_logging

logger = logging.getLogger(__name__)

# Fields whose values stay strings even when they look like numbers
TEXT_FIELDS = frozenset(
    f.name for f in fields(SimulationConfig) if isinstance(f.default, (str, Enum))
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_overrides(items: Optional[Sequence[str]]) -> Dict[str, Any]:
    """Turn ``key=value`` strings into a dict, parsing values as YAML.

    Values of string fields (``data_dir``, ``mode``, ``device``, ``dtype``)
    are kept verbatim.
    """
    overrides: Dict[str, Any] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(f"Override must look like key=value, got '{item}'")
        if key in TEXT_FIELDS:
            overrides[key] = value.strip()
            continue
        try:
            parsed = yaml.safe_load(value)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse value of override '{item}': {e}") from e
        # YAML 1.1 reads exponents without a dot ("1e-4") as strings
        if isinstance(parsed, str):
            try:
                parsed = float(parsed)
            except ValueError:
                pass
        overrides[key] = parsed
    return overrides


def load_config(
    path: Optional[str],
    overrides: Optional[Dict[str, Any]] = None,
) -> SimulationConfig:
    if path is None:
        return SimulationConfig.from_dict({}, overrides)
    return SimulationConfig.from_yaml(path, overrides)


def _batch_worker(job: Dict[str, Any]) -> Dict[str, Any]:
    """Run one batch-mode session in a worker process."""
    configure_logging(job["log_level"])
    config = SimulationConfig.from_dict(
        job["config"], {"seed": job["seed"], "mode": RunMode.BATCH.value}
    )
    result = run_session(config, tolerance=job["tolerance"])
    return result.summary()


def run_batch(
    config: SimulationConfig,
    seeds: Sequence[int],
    workers: int = 1,
    tolerance: float = 0.0,
    log_level: str = "WARNING",
) -> List[Dict[str, Any]]:
    """Run one batch-mode session per seed.

    Args:
        config: Base configuration (seed and mode are replaced per job)
        seeds: One seed per session
        workers: Number of worker processes; 1 runs the sessions in-process
        tolerance: Occurrence tolerance for the performance evaluation (s)
        log_level: Logging level inside the workers

    Returns:
        Session summaries, in the order of ``seeds``
    """
    base = config.to_dict()
    jobs = [
        {"config": base, "seed": int(seed), "tolerance": tolerance, "log_level": log_level}
        for seed in seeds
    ]
    logger.info(f"Running {len(jobs)} batch session(s) on {workers} worker(s)")

    if workers <= 1:
        return [_batch_worker(job) for job in jobs]

    ctx = mp.get_context("spawn")
    with ctx.Pool(processes=workers) as pool:
        return pool.map(_batch_worker, jobs)


def cmd_run(args: argparse.Namespace) -> int:
    overrides = parse_overrides(args.set)
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.mode is not None:
        overrides["mode"] = args.mode
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir

    config = load_config(args.config, overrides)
    result = run_session(config, tolerance=args.tolerance)

    if args.plot:
        from stdp_detect.visualization.plots import save_session_figure

        save_session_figure(result, args.plot)
        logger.info(f"Saved figure to {args.plot}")
    if args.output:
        _write_json(args.output, result.summary())
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    overrides = parse_overrides(args.set)
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    # Seeds are assigned per session
    overrides.setdefault("seed", None)
    overrides["mode"] = RunMode.INTERACTIVE.value

    config = load_config(args.config, overrides)
    seeds = args.seeds or list(range(args.first_seed, args.first_seed + args.n_seeds))
    summaries = run_batch(
        config,
        seeds,
        workers=args.workers,
        tolerance=args.tolerance,
        log_level=args.log_level,
    )
    for summary in summaries:
        logger.info(
            f"seed {summary['seed']}: rate {summary['mean_rate']:.2f} Hz, "
            f"hit rate {summary.get('mean_hit_rate', float('nan')):.1%}, "
            f"false alarms {summary.get('mean_false_alarm_rate', float('nan')):.2f} Hz"
        )
    if args.output:
        _write_json(args.output, {"config": config.to_dict(), "sessions": summaries})
    return 0


def _write_json(path: str, data: Dict[str, Any]) -> None:
    path_obj = Path(path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)
    with open(path_obj, "w") as f:
        json.dump(data, f, indent=2)
    logger.info(f"Wrote summary to {path_obj}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stdp-detect",
        description="STDP-based detection of a repeating spike pattern in Poisson noise",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-dir", help="Also write the log to a file in this directory")

    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="YAML configuration file")
    common.add_argument(
        "--set", action="append", metavar="KEY=VALUE", help="Override a configuration value"
    )
    common.add_argument("--data-dir", help="Directory of the pattern/weight/convergence stores")
    common.add_argument(
        "--tolerance", type=float, default=0.0,
        help="Extra time after each pattern occurrence counted as a hit (s)",
    )
    common.add_argument("--output", help="Write a JSON summary to this file")

    run_parser = subparsers.add_parser("run", parents=[common], help="Run one session")
    run_parser.add_argument("--seed", type=int, help="Random seed")
    run_parser.add_argument(
        "--mode", choices=[m.value for m in RunMode], help="Run mode (default: from config)"
    )
    run_parser.add_argument("--plot", help="Save raster/membrane/convergence figure to this file")
    run_parser.set_defaults(func=cmd_run)

    batch_parser = subparsers.add_parser(
        "batch", parents=[common], help="Run batch-mode sessions for several seeds"
    )
    batch_parser.add_argument("--seeds", type=int, nargs="+", help="Explicit seeds")
    batch_parser.add_argument("--first-seed", type=int, default=1, help="First seed (default: 1)")
    batch_parser.add_argument(
        "--n-seeds", type=int, default=4, help="Number of seeds when --seeds is omitted"
    )
    batch_parser.add_argument("--workers", type=int, default=1, help="Worker processes")
    batch_parser.set_defaults(func=cmd_batch)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point routing to subcommands."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level, log_dir=args.log_dir)
        return args.func(args)
    except STDPDetectError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
