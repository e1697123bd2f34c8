"""Genetic operators: selection, crossover, mutation and capacity repair."""
from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from .constraints import SeatingProblem
from .errors import RepairInvariantError
from .models import SeatingPlan


def tournament_select(
    population: Sequence[SeatingPlan],
    count: int,
    rng: np.random.Generator,
    tournament_size: int = 5,
) -> List[SeatingPlan]:
    """Pick ``count`` parents, each the fittest of ``tournament_size`` random plans.

    Plans are sampled with replacement. All plans must already be scored.
    """
    if not population:
        return []
    parents: List[SeatingPlan] = []
    while len(parents) < count:
        picks = rng.integers(0, len(population), size=tournament_size)
        parents.append(max((population[int(i)] for i in picks), key=lambda p: p.fitness))
    return parents


def uniform_crossover(
    parent1: SeatingPlan, parent2: SeatingPlan, rng: np.random.Generator
) -> Tuple[SeatingPlan, SeatingPlan]:
    """Each guest's table comes from either parent on a fair coin flip.

    The second child takes the complementary choice. Children may exceed table
    capacity until repaired.
    """
    mask = rng.random(parent1.table_of.size) < 0.5
    child1 = np.where(mask, parent1.table_of, parent2.table_of)
    child2 = np.where(mask, parent2.table_of, parent1.table_of)
    return parent1.with_assignment(child1), parent1.with_assignment(child2)


def mutate(table_of: np.ndarray, rng: np.random.Generator, fraction: float = 0.1) -> np.ndarray:
    """Swap the tables of two distinct random guests, ``ceil(n * fraction)`` times. In place."""
    n = table_of.size
    if n < 2:
        return table_of
    for _ in range(int(math.ceil(n * fraction))):
        a, b = rng.choice(n, size=2, replace=False)
        table_of[a], table_of[b] = table_of[b], table_of[a]
    return table_of


def repair(table_of: np.ndarray, capacities: np.ndarray) -> np.ndarray:
    """Move guests off over-full tables so every table is within capacity. In place.

    For each over-full table, in table order, the excess guests are taken from
    the end of its roster and then re-seated in that order at the first table
    with a free seat.
    """
    occupancy = np.bincount(table_of, minlength=capacities.size)
    overflow: List[int] = []
    for table in np.flatnonzero(occupancy > capacities):
        roster = np.flatnonzero(table_of == table)
        excess = int(occupancy[table] - capacities[table])
        overflow.extend(int(g) for g in roster[::-1][:excess])
        occupancy[table] -= excess

    for guest in overflow:
        free = np.flatnonzero(occupancy < capacities)
        if free.size == 0:
            raise RepairInvariantError(f"No free seat for guest index {guest}")
        table = free[0]
        table_of[guest] = table
        occupancy[table] += 1
    return table_of


def breed(
    problem: SeatingProblem,
    parents: Sequence[SeatingPlan],
    rng: np.random.Generator,
    mutation_rate: float = 0.05,
    mutation_fraction: float = 0.1,
) -> List[SeatingPlan]:
    """Produce one child per parent via crossover, mutation and repair.

    Parents are paired in order; an odd parent out is paired with the first.
    Returned children are unscored and satisfy table capacity.
    """
    offspring: List[SeatingPlan] = []
    for i in range(0, len(parents), 2):
        mate = parents[(i + 1) % len(parents)]
        for child in uniform_crossover(parents[i], mate, rng):
            if rng.random() < mutation_rate:
                mutate(child.table_of, rng, mutation_fraction)
            repair(child.table_of, problem.capacities)
            offspring.append(child)
    return offspring[: len(parents)]
