# decide_metrics/cli.py
from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .config import ConfigBuilder
from .config.constants import SamplingConstants
from .io.loggers import ConsoleReporter, DataFrameLogger, DataLogger, QueuedDataLogger
from .simulation import ScenarioSimulation, SimulationConfig

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    """
    CLI parser for the metrics engine.

    Parsing and option descriptions only; the session itself is built in
    :func:`run_simulation`.
    """
    parser = argparse.ArgumentParser(
        prog="decide-metrics",
        description="Real-time operator performance metrics for VR training sessions.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sim = subparsers.add_parser(
        "simulate",
        help="Run a seeded synthetic scenario through the full metric stack.",
    )
    sim.add_argument("--duration", type=float, default=60.0, help="Scenario length in s (default: 60).")
    sim.add_argument("--tick-rate", type=float, default=60.0, help="Simulation tick rate in Hz (default: 60).")
    sim.add_argument(
        "--sampling-rate",
        type=float,
        default=30.0,
        help="Metric sampling rate in Hz; ticks in between are dropped (default: 30).",
    )
    sim.add_argument(
        "--collection-interval",
        type=float,
        default=0.1,
        help="Seconds between interval records sent to the loggers (default: 0.1).",
    )
    sim.add_argument("--seed", type=int, default=0, help="Random seed for scene and physiology (default: 0).")
    sim.add_argument("--scenario-name", default="Synthetic", help="Scenario name in all records.")
    sim.add_argument("--output-json", help="Write the final analysis report to this JSON file.")
    sim.add_argument("--output-csv", help="Write the interval records to this CSV file.")
    sim.add_argument(
        "--smoothing-mode",
        choices=["frame_coupled", "time_constant"],
        default="frame_coupled",
        help="Stress smoothing: tick-coupled lerp or a fixed time constant (default: frame_coupled).",
    )
    sim.add_argument(
        "--max-data-points",
        type=int,
        default=SamplingConstants.HARD_MAX_DATA_POINTS,
        help="Raw data points kept per metric (default and hard cap: 10000).",
    )
    sim.add_argument(
        "--log-raw-data",
        action="store_true",
        help="Log every raw data point and metric event at DEBUG level.",
    )
    sim.add_argument(
        "--verbose",
        action="store_true",
        help="Report every interval record on the console, not only the final report.",
    )
    return parser


def build_simulation_config(args: argparse.Namespace) -> SimulationConfig:
    return SimulationConfig(
        scenario_name=args.scenario_name,
        duration_s=args.duration,
        tick_rate_hz=args.tick_rate,
        seed=args.seed,
    )


def run_simulation(args: argparse.Namespace) -> int:
    """Run the synthetic scenario and write the requested outputs."""
    frame_logger = DataFrameLogger(csv_path=args.output_csv, report_path=args.output_json)
    queued = QueuedDataLogger(frame_logger)
    loggers: List[DataLogger] = [queued, ConsoleReporter(verbose=args.verbose)]

    simulation = ScenarioSimulation(
        build_simulation_config(args),
        parameters=ConfigBuilder.build_metric_parameters(args),
        registry_config=ConfigBuilder.build_registry_config(args),
        stress_config=ConfigBuilder.build_stress_config(args),
        loggers=loggers,
    )
    try:
        report = simulation.run()
    finally:
        queued.close()

    logger.info(
        "Session %s: %d interval records, %d metric reports",
        report.session_id,
        len(frame_logger),
        len(report.analysis_results),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    if args.command == "simulate":
        return run_simulation(args)
    parser.error(f"unknown command {args.command!r}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
