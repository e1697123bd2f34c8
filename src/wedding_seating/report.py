"""
Per-table report for a seating plan.

Tables are graded A to F on cohesion: the share of their guests' relationship
links that end at the same table. A table whose guests have no relationships
counts as fully cohesive.
"""
from __future__ import annotations

from typing import Dict, List

import numpy as np

from .constraints import SIDE_A, SIDE_B, SeatingProblem, check_violations, is_satisfied
from .models import PlanSummary, SeatingPlan


def compute_table_stats(problem: SeatingProblem, plan: SeatingPlan) -> List[Dict[str, int | float | str]]:
    """Occupancy, side split, ages, cohesion and broken preferences for each table, in table order.

    A preference counts at every table where one of its guests sits.
    """
    stats = []
    for t, table_id in enumerate(problem.table_ids):
        members = np.flatnonzero(plan.table_of == t)
        kept = links = 0
        for g in members:
            others = problem.linked[g]
            links += others.size
            kept += int((plan.table_of[others] == t).sum())
        broken = {
            id(pref)
            for g in members
            for pref in problem.preferences_for(problem.guest_ids[int(g)])
            if not is_satisfied(problem, pref, plan.table_of)
        }
        ages = problem.ages[members]
        capacity = int(problem.capacities[t])
        stats.append({
            "table": table_id,
            "capacity": capacity,
            "occupied": int(members.size),
            "empty": capacity - int(members.size),
            "side_a": int((problem.sides[members] == SIDE_A).sum()),
            "side_b": int((problem.sides[members] == SIDE_B).sum()),
            "mean_age": float(ages.mean()) if members.size else 0.0,
            "age_variance": float(ages.var()) if members.size else 0.0,
            "cohesion": kept / links if links else 1.0,
            "violations": len(broken),
            "members": "|".join(problem.guest_ids[int(g)] for g in members),
        })
    return stats


def grade_tables(stats: List[Dict[str, int | float | str]]) -> List[Dict[str, int | float | str]]:
    """Assign A to F based on cohesion thresholds. Empty tables get ``-``."""
    graded = []
    for s in stats:
        c = s["cohesion"]
        if not s["occupied"]:
            g = "-"
        elif c >= 0.9:
            g = "A"
        elif c >= 0.75:
            g = "B"
        elif c >= 0.5:
            g = "C"
        elif c >= 0.25:
            g = "D"
        else:
            g = "F"
        out = dict(s)
        out["grade"] = g
        graded.append(out)
    return graded


def plan_summary(problem: SeatingProblem, plan: SeatingPlan) -> PlanSummary:
    occupancy = plan.occupancy()
    capacity = problem.total_capacity
    return PlanSummary(
        guests=problem.n_guests,
        capacity=capacity,
        tables_used=int((occupancy > 0).sum()),
        empty_seats=capacity - problem.n_guests,
        utilization=problem.n_guests / capacity if capacity else 0.0,
        violations=check_violations(problem, plan.table_of),
    )
