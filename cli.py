#!/usr/bin/env python3
"""
Dendrogram Builder CLI

Command-line interface for building merge trees from point files.

Usage:
    python cli.py build points.csv                    # Build and print summary
    python cli.py build points.csv --metric cosine    # Pick a metric
    python cli.py build points.csv --show-merges      # Also list every merge
    python cli.py metrics                             # List available metrics
"""

import sys
import json
import argparse
from typing import List, Optional

import numpy as np

from dendro.config.settings_loader import ConfigManager
from dendro.core.clustering_engine import ClusteringEngine
from dendro.core.dendrogram import Dendrogram
from dendro.core.metrics import METRICS
from dendro.utils.advanced_logging import configure_logging, log_exceptions
from dendro.utils.error_handling import DendroError


def load_points(path: str) -> np.ndarray:
    """
    Load a comma-separated numeric matrix, one point per row.

    Args:
        path: CSV file path

    Returns:
        Point matrix (m x n)
    """
    with log_exceptions(operation="load_points"):
        return np.loadtxt(path, delimiter=",", ndmin=2, comments="#")


def format_merges(dendrogram: Dendrogram) -> List[str]:
    """One line per merge, in merge order."""
    lines = []
    for step in dendrogram.merge_steps():
        height = "-" if step.height is None else f"{step.height:.6g}"
        lines.append(
            f"{step.node_id:>6} <- ({step.left_id}, {step.right_id})  "
            f"height={height}  size={step.size}"
        )
    return lines


def cmd_build(args: argparse.Namespace) -> int:
    settings = ConfigManager.reload_config(args.config)
    configure_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        log_file=settings.logging.file,
        service_name=settings.service.name,
    )

    metric_params = None
    if args.minkowski_p is not None:
        metric_params = {"p": args.minkowski_p}

    points = load_points(args.points)
    engine = ClusteringEngine(settings)
    dendrogram = engine.build_dendrogram(
        points,
        metric=args.metric,
        metric_params=metric_params,
        verbose=True if args.verbose else None,
    )

    print(json.dumps(dendrogram.summary().model_dump(mode="json"), indent=2))
    if args.show_merges:
        print("\n".join(format_merges(dendrogram)))
    return 0


def cmd_metrics(args: argparse.Namespace) -> int:
    for name, metric_class in METRICS.items():
        print(f"{name:<12} {metric_class.mode.value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build agglomerative merge trees (dendrograms)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build a dendrogram from a CSV point file")
    build.add_argument("points", help="CSV file, one point per row")
    build.add_argument("--metric", default=None, choices=sorted(METRICS), help="Separability metric")
    build.add_argument("--minkowski-p", type=float, default=None, help="Order for the minkowski metric")
    build.add_argument("--config", default=None, help="Settings YAML path")
    build.add_argument("--verbose", action="store_true", help="Log every agglomeration step")
    build.add_argument("--show-merges", action="store_true", help="Print one line per merge")
    build.set_defaults(func=cmd_build)

    metrics = subparsers.add_parser("metrics", help="List available metrics")
    metrics.set_defaults(func=cmd_metrics)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except DendroError as e:
        print(f"❌ {type(e).__name__}: {e.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
