#!/usr/bin/env python3
"""
Student Standing Summary

Reads category weights and thresholds from config.json (optional), then
prints each student's running average, their standing band, and the
conditional formatting rules a renderer would apply.

Usage:
    1. Optionally edit config.json to set capacities, weights and thresholds
    2. Run: python summarize.py [--config config.json] [--verbose]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from standing import (
    StandingError,
    Thresholds,
    WeightConfig,
    band_of,
    build_default_rule_set,
    final_running_average,
    merge_config,
    running_average_frame,
    validate_config,
    validate_scores,
)
from standing.example import example_table

logger = logging.getLogger("summarize")


def load_config(config_path: Path) -> dict:
    """Load configuration from JSON file."""
    with open(config_path, "r") as f:
        return json.load(f)


def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Summarize student standing for the example gradebook.")
    p.add_argument("--config", type=Path, default=None, help="JSON config merged over the defaults.")
    p.add_argument("--verbose", action="store_true", help="Verbose logging.")
    return p.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    _setup_logging(args.verbose)

    print("📊 Student Standing Summary")
    print("=" * 40)

    # Load configuration
    user_config = {}
    if args.config is not None:
        if not args.config.exists():
            print(f"❌ Error: {args.config} not found!")
            return 1
        user_config = load_config(args.config)
        print(f"✓ Loaded configuration from {args.config}")
    config = merge_config(user_config)

    issues = validate_config(config)
    for issue in issues:
        marker = "❌" if issue["type"] == "error" else "⚠️"
        print(f"{marker} {issue['message']}")

    try:
        weights = WeightConfig.from_config(config)
        thresholds = Thresholds.from_config(config)
    except StandingError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    table = example_table()
    for issue in validate_scores(table):
        print(f"⚠️ {issue['row']} / {issue['column']}: {issue['message']}")

    try:
        averages = running_average_frame(table, weights)
        rule_set = build_default_rule_set(weights, thresholds)
        masks = rule_set.evaluate(table)
        final_bands = {s: band_of(v, thresholds) for s, v in final_running_average(table, weights).items()}
    except StandingError as e:
        logger.error("Could not compute standing: %s", e)
        return 1

    # Per-student standing
    print("\n📋 Running averages:")
    header = "".join(f"{c:>12}" for c in averages.columns)
    print(f"   {table.identifier_name:<12}{header}   Band")
    for student, row in averages.iterrows():
        cells = "".join("         n/a" if row.isna()[c] else f"{row[c]:>12.2f}" for c in averages.columns)
        print(f"   {student:<12}{cells}   {final_bands[student].value}")

    # Rules, in overlay order
    print("\n🎨 Formatting rules (later rules win per field):")
    for rule, mask in masks:
        print(f"   {rule.name:<20} {int(mask.to_numpy().sum()):>3} cell(s)  {rule.style}")

    print("\n" + "=" * 40)
    print(f"   Students: {len(table)}")
    print(f"   Rules: {len(rule_set)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
