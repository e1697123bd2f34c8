"""
Fitness of a seating plan.

Every plan starts from ``BASE_SCORE`` and collects weighted terms:
    hard violation:   -1000 x severity/100
    soft violation:     -50 x severity/100
    empty seat:         -10 each
    uneven tables:      -20 x stddev of table fill ratios
    group together:     +20 x group size
    group split:         -2 x (tables used - 1)
    mixed sides:        +15 x min/max side ratio x guests at table
    age balance:       +100 / (1 + age variance) per occupied table
    accessibility:      +30 per accessibility need met
    isolated guest:     -10 each
Soft terms only apply when enabled in ``OptimizationCriteria``. The total is
clamped at zero.
"""
from __future__ import annotations

from concurrent.futures import Executor
from functools import partial
from typing import Dict, List, Optional, Sequence

import numpy as np

from .constraints import SIDE_A, SIDE_B, SeatingProblem, check_violations, is_satisfied
from .models import ConstraintType, PreferenceKind, SeatingPlan


BASE_SCORE = 1000.0

_WEIGHTS = {
    "hard_violation": -1000.0,
    "soft_violation": -50.0,
    "empty_seat": -10.0,
    "uneven_distribution": -20.0,
    "group_together": 20.0,
    "group_split": -2.0,
    "mixed_sides": 15.0,
    "age_balance": 1.0,
    "accessibility": 30.0,
    "isolated_guest": -10.0,
}


# ----------------------------- terms -----------------------------
def violation_penalty(problem: SeatingProblem, table_of: np.ndarray) -> float:
    penalty = 0.0
    for v in check_violations(problem, table_of):
        weight = _WEIGHTS["hard_violation"] if v.type is ConstraintType.HARD else _WEIGHTS["soft_violation"]
        penalty += weight * v.severity / 100
    return penalty


def empty_seats(problem: SeatingProblem, occupancy: np.ndarray) -> int:
    return int((problem.capacities - occupancy).sum())


def distribution_unevenness(problem: SeatingProblem, occupancy: np.ndarray) -> float:
    """Population standard deviation of per table fill ratios."""
    if problem.n_tables == 0:
        return 0.0
    return float(np.std(occupancy / problem.capacities))


def group_cohesion(problem: SeatingProblem, table_of: np.ndarray) -> float:
    score = 0.0
    for group in problem.groups:
        used = np.unique(table_of[group]).size
        if used == 1:
            score += _WEIGHTS["group_together"] * group.size
        else:
            score += _WEIGHTS["group_split"] * (used - 1)
    return score


def side_mixing(problem: SeatingProblem, table_of: np.ndarray, occupancy: np.ndarray) -> float:
    side_a = np.bincount(table_of[problem.sides == SIDE_A], minlength=problem.n_tables)
    side_b = np.bincount(table_of[problem.sides == SIDE_B], minlength=problem.n_tables)
    mixed = (side_a > 0) & (side_b > 0)
    if not mixed.any():
        return 0.0
    ratio = np.minimum(side_a[mixed], side_b[mixed]) / np.maximum(side_a[mixed], side_b[mixed])
    return float((ratio * occupancy[mixed]).sum())


def age_balance(problem: SeatingProblem, table_of: np.ndarray, occupancy: np.ndarray) -> float:
    """Sum of ``100 / (1 + variance)`` over occupied tables."""
    seated = occupancy > 0
    if not seated.any():
        return 0.0
    total = np.bincount(table_of, weights=problem.ages, minlength=problem.n_tables)[seated]
    squares = np.bincount(table_of, weights=problem.ages ** 2, minlength=problem.n_tables)[seated]
    counts = occupancy[seated]
    mean = total / counts
    variance = np.maximum(squares / counts - mean ** 2, 0.0)
    return float((100.0 / (1.0 + variance)).sum())


def accessibility_score(problem: SeatingProblem, table_of: np.ndarray) -> int:
    """Count accessibility preferences met plus flagged guests at accessible tables."""
    met = sum(
        1
        for pref in problem.preferences
        if pref.kind is PreferenceKind.WHEELCHAIR_ACCESSIBLE and is_satisfied(problem, pref, table_of)
    )
    if problem.needs_accessibility.any():
        met += int(problem.accessible[table_of[problem.needs_accessibility]].sum())
    return met


def isolated_guests(problem: SeatingProblem, table_of: np.ndarray) -> int:
    """Guests with relationships but none of their relations at the same table."""
    count = 0
    for guest, others in enumerate(problem.linked):
        if others.size and not (table_of[others] == table_of[guest]).any():
            count += 1
    return count


# ----------------------------- evaluation -----------------------------
def fitness_breakdown(problem: SeatingProblem, table_of: np.ndarray) -> Dict[str, float]:
    """Weighted contribution of every enabled term, keyed by term name."""
    criteria = problem.criteria
    occupancy = np.bincount(table_of, minlength=problem.n_tables)
    terms: Dict[str, float] = {"violations": violation_penalty(problem, table_of)}
    if criteria.minimize_empty_seats:
        terms["empty_seats"] = _WEIGHTS["empty_seat"] * empty_seats(problem, occupancy)
    if criteria.prefer_even_distribution:
        terms["uneven_distribution"] = _WEIGHTS["uneven_distribution"] * distribution_unevenness(problem, occupancy)
    if criteria.prioritize_family_groups:
        terms["group_cohesion"] = group_cohesion(problem, table_of)
    if criteria.mix_guest_sides:
        terms["side_mixing"] = _WEIGHTS["mixed_sides"] * side_mixing(problem, table_of, occupancy)
    if criteria.balance_table_ages:
        terms["age_balance"] = _WEIGHTS["age_balance"] * age_balance(problem, table_of, occupancy)
    if criteria.prioritize_accessibility:
        terms["accessibility"] = _WEIGHTS["accessibility"] * accessibility_score(problem, table_of)
    if criteria.avoid_isolated_guests:
        terms["isolated_guests"] = _WEIGHTS["isolated_guest"] * isolated_guests(problem, table_of)
    return terms


def score_assignment(problem: SeatingProblem, table_of: np.ndarray) -> float:
    """Fitness of a raw assignment array. Pure and deterministic."""
    score = BASE_SCORE
    for value in fitness_breakdown(problem, table_of).values():
        score += value
    return max(0.0, score)


def evaluate(problem: SeatingProblem, plan: SeatingPlan) -> float:
    return score_assignment(problem, plan.table_of)


def evaluate_population(
    problem: SeatingProblem,
    population: Sequence[SeatingPlan],
    executor: Optional[Executor] = None,
) -> List[SeatingPlan]:
    """Fill in the cached fitness of every plan not yet scored.

    With an ``executor`` the pending plans are scored concurrently. Scoring only
    reads the plan and the shared problem, so results do not depend on the
    number of workers.
    """
    pending = [plan for plan in population if plan.fitness is None]
    if executor is None:
        scores = [score_assignment(problem, plan.table_of) for plan in pending]
    else:
        scores = list(executor.map(partial(score_assignment, problem), [plan.table_of for plan in pending]))
    for plan, score in zip(pending, scores):
        plan.fitness = score
    return list(population)
