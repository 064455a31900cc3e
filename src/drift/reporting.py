"""Reporting utilities for neural link experiments."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
from tabulate import tabulate

from .harness import ExperimentResult, select_best


def summarize_results(results: Sequence[ExperimentResult]) -> str:
    rows: list[tuple] = []
    for result in results:
        terrain_counts = ", ".join(f"{name}={count}" for name, count in sorted(result.terrain_targets.items()))
        rows.append(
            (
                result.configuration,
                "on" if result.capabilities.coupling else "off",
                "on" if result.capabilities.adaptation else "off",
                len(result.windows),
                result.total_targets,
                result.total_steps,
                f"{result.accuracy * 100:.1f}",
                f"{result.steps_per_target:.0f}" if result.total_targets else "-",
                terrain_counts or "-",
            )
        )
    table = tabulate(
        rows,
        headers=[
            "Configuration",
            "Link",
            "Adapt",
            "Windows",
            "Targets",
            "Steps",
            "Effective [%]",
            "Steps/Target",
            "Targets by terrain",
        ],
        tablefmt="github",
    )
    if not results:
        return table
    best = select_best(results)
    overall = f"Best configuration: {best.configuration} ({best.total_targets} targets)"
    return table + "\n" + overall


def format_windows(result: ExperimentResult) -> str:
    rows = [
        (
            w.index,
            w.dominant_terrain or "-",
            w.targets_reached,
            w.total_steps,
            f"{w.accuracy * 100:.1f}",
        )
        for w in result.windows
    ]
    return tabulate(
        rows,
        headers=["Window", "Terrain", "Targets", "Steps", "Effective [%]"],
        tablefmt="github",
    )


def plot_window_accuracy(results: Sequence[ExperimentResult], out_path: Path) -> None:
    plt.figure(figsize=(7.5, 5.0))
    for result in results:
        indices = [w.index for w in result.windows]
        accuracy = [w.accuracy * 100.0 for w in result.windows]
        plt.plot(indices, accuracy, "o-", label=result.configuration, linewidth=2.0)
    plt.xlabel("Window")
    plt.ylabel("Effective moves [%]")
    plt.title("Per-window effectiveness by configuration")
    plt.grid(True, alpha=0.3)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()
