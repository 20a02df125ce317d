#!/usr/bin/env python3
"""Command-line interface for running the consultation simulator."""

import argparse
import json
import sys
import threading
from typing import Dict, List, Optional

from consultation.config import SimulationConfig, load_config
from consultation.core.errors import ConfigError
from consultation.observability import configure_logging, get_logger
from consultation.sinks import StructlogStatusSink
from consultation.system import SimulationController
from consultation.visualization.plotting import plot_simulation_report

log = get_logger("cli")


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Configuration file (if any) overridden by command-line flags."""
    base = load_config(args.config) if args.config else SimulationConfig()
    return base.with_overrides(
        arrival_mean_ms=args.arrival_mean_ms,
        service_mean_ms=args.service_mean_ms,
        high_preference_probability=args.high_probability,
        time_scale=args.time_scale,
        seed=args.seed,
        log_path=args.log_file,
    )


def run_simulation(controller: SimulationController, duration: float,
                   interrupt: Optional[threading.Event] = None) -> Dict:
    """Run for ``duration`` wall-clock seconds (or until interrupted) and summarize."""
    interrupt = interrupt or threading.Event()
    controller.start()
    try:
        interrupt.wait(duration)
    except KeyboardInterrupt:
        log.info("interrupted")
    finally:
        controller.stop()
    return controller.summary()


def save_results(results: Dict, output_path: str) -> None:
    """Save results to JSON file."""
    with open(output_path, 'w') as f:
        json.dump(results, f, indent=2)


def print_results(results: Dict) -> None:
    """Print results to console."""
    print("\n=== Simulation Results ===")
    print(f"Simulated time: {results['simulated_seconds']:.0f} s "
          f"({results['elapsed_wall_seconds']:.1f} s wall clock)")

    print("\nClients:")
    for key, value in results['clients'].items():
        print(f"  {key}: {value}")

    wt = results['waiting_time']
    print("\nWaiting Time:")
    print(f"  Mean: {wt['mean']:.2f} s (95% CI {wt['ci_low']:.2f} - {wt['ci_high']:.2f})")
    print(f"  Std: {wt['std']:.2f} s, Min: {wt['min']:.2f} s, Max: {wt['max']:.2f} s")

    print("\nLawyer Utilization:")
    for lawyer_id, value in sorted(results['utilization'].items(), key=lambda kv: int(kv[0])):
        label = " (high category)" if lawyer_id == '0' else ""
        print(f"  Lawyer {lawyer_id}{label}: {value:.1%}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Run the legal consultation simulator')

    parser.add_argument('-t', '--duration', type=float, default=60.0,
                        help='Wall-clock seconds to run (default: 60)')
    parser.add_argument('--time-scale', type=float,
                        help='Simulated seconds per wall-clock second (default: 1)')
    parser.add_argument('-s', '--seed', type=int,
                        help='Random seed')
    parser.add_argument('--high-probability', type=float,
                        help='Probability a client prefers the high-category lawyer (default: 0.2)')
    parser.add_argument('--arrival-mean-ms', type=float,
                        help='Mean inter-arrival time in ms (default: 180000)')
    parser.add_argument('--service-mean-ms', type=float,
                        help='Mean service time in ms (default: 600000)')
    parser.add_argument('--config', type=str,
                        help='JSON configuration file')
    parser.add_argument('--log-file', type=str,
                        help='Event log file (default: consultation_log.txt)')

    parser.add_argument('-o', '--output', type=str,
                        help='Output file for results (JSON)')
    parser.add_argument('--plot-file', type=str,
                        help='Save a report figure to file')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Suppress console output')
    parser.add_argument('--log-level', type=str,
                        help='Operator log level (default: $LOG_LEVEL or INFO)')
    parser.add_argument('--log-format', choices=['development', 'production'],
                        default='development',
                        help='Console or JSON operator logs')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for CLI."""
    args = parse_args(argv)
    configure_logging(args.log_format, args.log_level)

    try:
        config = build_config(args)
    except ConfigError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    controller = SimulationController(config, status_sink=StructlogStatusSink())
    try:
        results = run_simulation(controller, args.duration)
    finally:
        controller.shutdown()

    if not args.quiet:
        print_results(results)

    if args.output:
        save_results(results, args.output)
        if not args.quiet:
            print(f"\nResults saved to: {args.output}")

    if args.plot_file:
        plot_simulation_report(results, controller.metrics.samples(),
                               save_path=args.plot_file)
        if not args.quiet:
            print(f"Plot saved to: {args.plot_file}")


if __name__ == '__main__':
    main()
