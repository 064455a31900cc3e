"""Command-line entry point for running the DRIFT neural link experiment."""

from __future__ import annotations

import argparse
import time
from pathlib import Path

from .analysis import LinkExperiment, parse_schedule
from .config import DriftConfig
from .data_io import DriftDocument, default_document
from .errors import ConfigurationError, ExecutionError
from .harness import TickClock, WallClock, standard_configurations
from .terrain import Terrain


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def print_header(text: str, width: int = 70) -> None:
    """Print a formatted section header."""
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width)


def print_summary(artifacts, elapsed: float, verbose: bool) -> None:
    """Print experiment summary statistics."""
    print_header("Experiment Summary")

    print(f"\nRuntime: {format_duration(elapsed)}")
    if artifacts.output_dir is not None:
        print(f"Output Directory: {artifacts.output_dir}")

    print("\n--- Pretraining ---")
    for summary in artifacts.training:
        print(f"  {summary.name:<12} {summary.accuracy * 100:6.1f}% over {summary.total} samples")

    print("\n--- Configurations ---")
    print(artifacts.tables)

    if verbose:
        from .reporting import format_windows

        for result in artifacts.results:
            print(f"\n--- Windows: {result.configuration} ---")
            print(format_windows(result))


def main(argv: list[str] | None = None) -> None:
    import sys

    parser = argparse.ArgumentParser(
        description="Run the DRIFT neural link terrain adaptation experiment.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                 # Wall-clock run with default settings
  %(prog)s --ticks --duration 5000 --window 500
                                           # Deterministic tick-budget run
  %(prog)s --schedule road,sand,ice,grass  # Change terrain during the run
  %(prog)s --save-config drift_config.json # Write the default document and exit
        """,
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory where results, tables and plots will be written (default: none).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Load models and links from a saved DRIFT document.",
    )
    parser.add_argument(
        "--save-config",
        type=Path,
        default=None,
        help="Write the default DRIFT document to this path and exit.",
    )
    parser.add_argument(
        "--ticks",
        action="store_true",
        help="Measure durations in ticks instead of wall-clock seconds.",
    )
    parser.add_argument("--duration", type=float, default=None, help="Benchmark length per configuration.")
    parser.add_argument("--window", type=float, default=None, help="Window length for metric aggregation.")
    parser.add_argument("--pretrain", type=float, default=None, help="Pretraining length per model.")
    parser.add_argument(
        "--terrain",
        choices=[t.value for t in Terrain],
        default=Terrain.SAND.value,
        help="Terrain used for the benchmark (default: sand).",
    )
    parser.add_argument(
        "--schedule",
        type=str,
        default=None,
        help="Comma-separated terrains visited in equal shares of the run (overrides --terrain).",
    )
    parser.add_argument(
        "--simple",
        action="store_true",
        help="Only compare the isolated baseline with the linked, adaptive navigator.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output with per-window tables.",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except errors and final results.",
    )
    args = parser.parse_args(argv)

    if args.save_config is not None:
        path = default_document().save(args.save_config)
        print(f"Saved DRIFT config to {path}")
        return

    import os
    if args.quiet:
        os.environ["DRIFT_VERBOSITY"] = "0"
    elif args.verbose:
        os.environ["DRIFT_VERBOSITY"] = "2"
    else:
        os.environ["DRIFT_VERBOSITY"] = "1"

    start_time = time.time()

    try:
        config = DriftConfig()
        if args.seed is not None:
            config = DriftConfig(seed=args.seed)
        document = DriftDocument.load(args.config) if args.config is not None else None
        schedule = parse_schedule(args.schedule) if args.schedule else None
        configurations = standard_configurations(
            rich=not args.simple,
            terrain=Terrain(args.terrain),
            schedule=schedule,
        )

        if args.ticks:
            clock_factory = TickClock
            duration = args.duration if args.duration is not None else 3000.0
            window = args.window if args.window is not None else 500.0
            pretrain = args.pretrain if args.pretrain is not None else 5000.0
        else:
            clock_factory = WallClock
            duration, window, pretrain = args.duration, args.window, args.pretrain

        if not args.quiet:
            print_header("DRIFT Neural Link Experiment")
            mode = "ticks" if args.ticks else "seconds"
            print(f"\nClock: {mode}")
            print(f"Configurations: {', '.join(c.name for c in configurations)}")

        experiment = LinkExperiment(document=document, config=config, clock_factory=clock_factory)
        artifacts = experiment.run(
            configurations=configurations,
            output_dir=args.output_dir,
            duration=duration,
            window_interval=window,
            pretrain_duration=pretrain,
        )
        elapsed = time.time() - start_time

        if args.quiet:
            print(f"{artifacts.best.configuration} {artifacts.best.total_targets}")
        else:
            print_summary(artifacts, elapsed, args.verbose)
            print_header("Experiment Complete")

    except FileNotFoundError as e:
        elapsed = time.time() - start_time
        print(
            f"\nError after {format_duration(elapsed)}:\n"
            f"File not found: {e}",
            file=sys.stderr
        )
        sys.exit(1)
    except ConfigurationError as e:
        elapsed = time.time() - start_time
        print(
            f"\nError after {format_duration(elapsed)}:\n"
            f"Invalid configuration: {e}",
            file=sys.stderr
        )
        sys.exit(1)
    except ExecutionError as e:
        elapsed = time.time() - start_time
        print(
            f"\nError after {format_duration(elapsed)}:\n"
            f"Model execution failed: {e}",
            file=sys.stderr
        )
        sys.exit(1)
    except ValueError as e:
        elapsed = time.time() - start_time
        print(
            f"\nError after {format_duration(elapsed)}:\n"
            f"Invalid input: {e}",
            file=sys.stderr
        )
        sys.exit(1)
    except Exception as e:
        elapsed = time.time() - start_time
        print(
            f"\nError after {format_duration(elapsed)}: {e}\n"
            f"For help, run: python -m drift --help",
            file=sys.stderr
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
