"""Initial population of seating plans."""
from __future__ import annotations

import logging
import math
from typing import List, Sequence

import numpy as np

from .constraints import SeatingProblem
from .errors import InsufficientCapacityError, RepairInvariantError
from .models import Guest, SeatingPlan, Table

logger = logging.getLogger(__name__)


def check_capacity(guests: Sequence[Guest], tables: Sequence[Table]) -> None:
    """Raise ``InsufficientCapacityError`` when the tables cannot seat everyone."""
    capacity = sum(int(t.capacity) for t in tables)
    if capacity < len(guests):
        raise InsufficientCapacityError(len(guests), capacity)


def _first_free_table(remaining: np.ndarray) -> int:
    free = np.flatnonzero(remaining > 0)
    if free.size == 0:
        raise RepairInvariantError("No table has a free seat left")
    return int(free[0])


def smart_plan(problem: SeatingProblem, rng: np.random.Generator) -> SeatingPlan:
    """Seat whole relationship groups first, then fill in everyone else.

    Groups are visited in guest order (by their first member) and each goes to
    the first table, in table order, that still holds the entire group. Guests
    left over are seated in random order at the first table with a free seat.
    """
    table_of = np.full(problem.n_guests, -1, dtype=np.intp)
    remaining = problem.capacities.copy()

    for group in sorted(problem.groups, key=lambda members: int(members[0])):
        fits = np.flatnonzero(remaining >= group.size)
        if fits.size == 0:
            continue
        table = int(fits[0])
        table_of[group] = table
        remaining[table] -= group.size

    for guest in rng.permutation(np.flatnonzero(table_of < 0)):
        table = _first_free_table(remaining)
        table_of[guest] = table
        remaining[table] -= 1
    return problem.new_plan(table_of)


def random_plan(problem: SeatingProblem, rng: np.random.Generator) -> SeatingPlan:
    """Seat guests in shuffled order, each at a random table with a free seat."""
    table_of = np.full(problem.n_guests, -1, dtype=np.intp)
    remaining = problem.capacities.copy()
    for guest in rng.permutation(problem.n_guests):
        free = np.flatnonzero(remaining > 0)
        if free.size == 0:
            raise RepairInvariantError(f"No free seat for guest {problem.guest_ids[guest]}")
        table = int(free[rng.integers(free.size)])
        table_of[guest] = table
        remaining[table] -= 1
    return problem.new_plan(table_of)


def initialize_population(
    problem: SeatingProblem,
    size: int,
    rng: np.random.Generator,
    smart_fraction: float = 0.2,
) -> List[SeatingPlan]:
    """Build ``size`` plans, the first ``ceil(size * smart_fraction)`` of them smart."""
    n_smart = min(size, int(math.ceil(size * smart_fraction)))
    population = [smart_plan(problem, rng) for _ in range(n_smart)]
    population.extend(random_plan(problem, rng) for _ in range(size - n_smart))
    logger.debug("Initial population: %d smart, %d random plans", n_smart, size - n_smart)
    return population
