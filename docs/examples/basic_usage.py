"""
Basic Usage Example for DRIFT

This script demonstrates the fundamental workflow:
1. Build the classifier and navigator from the default document
2. Pretrain both models
3. Benchmark the four coupling x adaptation configurations on sand
4. Compare targets reached per configuration
"""

import numpy as np
from drift import BenchmarkHarness, DriftConfig, TickClock, standard_configurations
from drift.data_io import default_document
from drift.network import build_network
from drift.reporting import format_windows, summarize_results
from drift.training import train_classifier, train_navigator_road_only


def main():
    print("=" * 60)
    print("DRIFT Basic Usage Example")
    print("=" * 60)

    config = DriftConfig(seed=42)
    rng = np.random.default_rng(config.seed)

    # Step 1: Build models
    print("\n[1] Building models from the default document...")
    document = default_document()
    models = {name: build_network(document.get_model(name), rng) for name in ("classifier", "navigator")}
    for name, model in models.items():
        print(f"    {name}: {model.input_size} inputs -> {model.output_size} outputs, {model.num_stages} stages")
    for link in document.get_links():
        print(f"    link {link.name}: {link.source_model}[stage {link.source_stage}] -> "
              f"{link.target_model}[{link.target_offset}:{link.target_offset + link.width}]")

    # Step 2: Pretrain (tick budgets keep the run reproducible)
    print("\n[2] Pretraining...")
    classifier = train_classifier(models["classifier"], TickClock(), 5000, rng, config)
    navigator = train_navigator_road_only(models["navigator"], TickClock(), 5000, rng, config)
    print(f"    Classifier accuracy: {classifier.accuracy * 100:.1f}%")
    print(f"    Navigator accuracy (road): {navigator.accuracy * 100:.1f}%")

    # Step 3: Benchmark
    print("\n[3] Benchmarking on sand...")
    harness = BenchmarkHarness(
        models,
        document.get_links(),
        "navigator",
        config=config,
        clock_factory=TickClock,
        duration=3000,
        window_interval=500,
    )
    results = harness.run_all(standard_configurations(), seed=config.seed)

    # Step 4: Compare
    print("\n[4] Results:")
    print(summarize_results(results))

    best = max(results, key=lambda r: r.total_targets)
    print(f"\n    Per-window breakdown for {best.configuration}:")
    print(format_windows(best))

    print("\n" + "=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
