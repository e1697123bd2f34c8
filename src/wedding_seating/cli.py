"""Command line interface for WeddingSeating."""
from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Sequence

from .csv_loader import load_all
from .errors import InsufficientCapacityError
from .fitness import fitness_breakdown
from .models import OptimizationCriteria
from .optimizer import OptimizerSettings, SeatingOptimizer
from .report import compute_table_stats, grade_tables, plan_summary

logger = logging.getLogger(__name__)

REPORT_FIELDS = [
    "table", "grade", "capacity", "occupied", "empty", "side_a", "side_b",
    "mean_age", "age_variance", "cohesion", "violations", "members",
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Wedding seating optimizer")
    parser.add_argument("--guests", required=True, help="Path to guests.csv")
    parser.add_argument("--tables", required=True, help="Path to tables.csv")
    parser.add_argument("--relationships", help="Path to relationships.csv")
    parser.add_argument("--preferences", help="Path to preferences.csv")
    parser.add_argument("--seed", type=int, help="Random seed for a replayable run.")
    parser.add_argument("--population", type=int, default=100, help="Plans per generation.")
    parser.add_argument("--generations", type=int, default=200, help="Generation ceiling.")
    parser.add_argument("--time-limit", type=float, help="Stop searching after this many seconds.")
    parser.add_argument("--workers", type=int, default=1, help="Threads used to score a generation.")
    parser.add_argument("--no-family-groups", action="store_true",
                        help="Do not reward keeping relationship groups together.")
    parser.add_argument("--no-mix-sides", action="store_true",
                        help="Do not reward tables mixing both sides.")
    parser.add_argument("--no-age-balance", action="store_true",
                        help="Do not reward tables with similar ages.")
    parser.add_argument("--minimize-empty-seats", action="store_true",
                        help="Penalize every unfilled seat.")
    parser.add_argument("--avoid-isolated", action="store_true",
                        help="Penalize guests seated away from everyone they know.")
    parser.add_argument("--out-assignments", type=Path,
                        help="Write assignments CSV: guest,table.")
    parser.add_argument("--out-report", type=Path,
                        help="Write per-table report CSV with statistics and grades.")
    parser.add_argument("--out-map", type=Path,
                        help="Write an interactive HTML seating map.")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``wedding-seating`` and ``python -m wedding_seating.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    criteria = OptimizationCriteria(
        prioritize_family_groups=not args.no_family_groups,
        mix_guest_sides=not args.no_mix_sides,
        balance_table_ages=not args.no_age_balance,
        minimize_empty_seats=args.minimize_empty_seats,
        avoid_isolated_guests=args.avoid_isolated,
    )
    try:
        guests, tables, preferences = load_all(args.guests, args.tables, args.relationships, args.preferences)
        settings = OptimizerSettings(
            population_size=args.population,
            max_generations=args.generations,
            elite_size=min(10, args.population),
            time_limit=args.time_limit,
            workers=args.workers,
            seed=args.seed,
        )
        result = SeatingOptimizer(guests, tables, preferences, criteria, settings).run()
    except InsufficientCapacityError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Input validation error: {e}", file=sys.stderr)
        return 2

    plan = result.plan
    problem = result.problem

    # Print simple assignments
    for guest, table in sorted(plan.assignments.items()):
        print(f"{guest},{table}")

    if args.out_assignments:
        args.out_assignments.parent.mkdir(parents=True, exist_ok=True)
        with args.out_assignments.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["guest", "table"])
            for guest, table in sorted(plan.assignments.items()):
                w.writerow([guest, table])

    graded = grade_tables(compute_table_stats(problem, plan))

    # Print a compact table summary
    for s in graded:
        print(f"[REPORT] {s['table']} grade={s['grade']} seated={s['occupied']}/{s['capacity']} "
              f"sides={s['side_a']}/{s['side_b']} mean_age={s['mean_age']:.1f} cohesion={s['cohesion']:.2f} "
              f"violations={s['violations']}")
    summary = plan_summary(problem, plan)
    print(f"[SUMMARY] fitness={result.fitness:.2f} state={result.state.value} generations={result.generations} "
          f"utilization={summary.utilization:.1%} violations={len(summary.violations)}")
    for name, value in fitness_breakdown(problem, plan.table_of).items():
        logger.info("fitness term %s: %.2f", name, value)

    if args.out_report:
        args.out_report.parent.mkdir(parents=True, exist_ok=True)
        with args.out_report.open("w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=REPORT_FIELDS)
            w.writeheader()
            for s in graded:
                row = {k: s[k] for k in REPORT_FIELDS}
                row["mean_age"] = f"{s['mean_age']:.2f}"
                row["age_variance"] = f"{s['age_variance']:.2f}"
                row["cohesion"] = f"{s['cohesion']:.4f}"
                w.writerow(row)

    if args.out_map:
        from .mind_map import generate_seating_map

        args.out_map.parent.mkdir(parents=True, exist_ok=True)
        args.out_map.write_text(generate_seating_map(plan, guests, tables), encoding="utf-8")

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
