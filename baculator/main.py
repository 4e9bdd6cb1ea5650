"""
BAC estimate CLI. Run from project root: python -m baculator
Logs drinks relative to now, prints current BAC, peak and sober/legal times,
and optionally saves a graph.
"""

import argparse
import logging
import sys
from datetime import datetime

from baculator.config import US_STANDARD_DRINK_GRAMS, EngineConfig
from baculator.drinks import SubjectProfile
from baculator.errors import BACValidationError
from baculator.graph import save_bac_graph
from baculator.session import DrinkingSession
from baculator.timeline import format_time_relative

DEMO_DRINKS = [(2.0, 1.5), (1.0, 0.75), (1.5, 0.25)]  # (standards, hours ago)


def _parse_drink(value: str):
    """STANDARDS@HOURS_AGO, e.g. 1.5@0.25."""
    standards, _, hours_ago = value.partition("@")
    try:
        return float(standards), float(hours_ago or 0.0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected STANDARDS@HOURS_AGO, got {value!r}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="BAC estimate: log drinks and view BAC over time")
    parser.add_argument("--weight", type=float, default=75.0, help="Body weight (kg)")
    parser.add_argument("--female", action="store_true", help="Use the female distribution ratio")
    parser.add_argument("--drink", type=_parse_drink, action="append", metavar="STANDARDS@HOURS_AGO",
                        help="Add a drink finished HOURS_AGO hours ago (repeatable)")
    parser.add_argument("--us", action="store_true", help="14 g standard drinks instead of 10 g")
    parser.add_argument("--graph", type=str, metavar="FILE", help="Save BAC graph to FILE (e.g. bac_graph.png)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    config = EngineConfig.from_env()
    if args.us:
        config = config.with_overrides({"grams_per_standard": US_STANDARD_DRINK_GRAMS})

    now = datetime.now().astimezone()
    session = DrinkingSession(profile=SubjectProfile(weight_kg=args.weight, sex="female" if args.female else "male"))
    drinks = args.drink or DEMO_DRINKS
    if not args.drink:
        print("No --drink given; using demo session: 2 std 1.5h ago, 1 std 45 min ago, 1.5 std 15 min ago")

    try:
        for standards, hours_ago in drinks:
            session.add_drink_ago(hours_ago, standards, now)
        result = session.evaluate(now, config)
    except BACValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(f"Weight: {args.weight} kg, {session.profile.sex}, {session.total_standards:g} standard drinks")
    print(f"BAC now: {result.current_bac:.3f}% ({'rising' if result.is_rising else 'falling'})")
    print(f"Peak: {result.peak_bac:.3f}% {format_time_relative(result.time_to_peak_hours)}")
    sober = f"{result.time_to_sober_hours:.1f}h" + ("+" if result.sober_capped else "")
    legal = f"{result.time_to_legal_hours:.1f}h" + ("+" if result.legal_capped else "")
    print(f"Under {config.legal_target:.2f}% in: {legal}")
    print(f"Sober in: {sober}")
    print(f"Timeline points: {len(result.timeline)}")

    if args.graph:
        try:
            path = save_bac_graph(result.timeline, output_path=args.graph, legal_limit=config.legal_target)
            print(f"Graph saved: {path}")
        except ImportError:
            print("matplotlib not installed. pip install matplotlib", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)
