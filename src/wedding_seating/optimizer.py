"""
Genetic seating optimizer.

The driver owns all generation to generation state: the current population,
the best fitness seen so far and the stagnation counter. Everything it calls
is a function of the problem, a plan and the random generator it passes down.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

import numpy as np

from .constraints import SeatingProblem, build_problem
from .fitness import evaluate_population
from .models import Guest, OptimizationCriteria, SeatingPlan, SeatingPreference, Table
from .operators import breed, tournament_select
from .population import check_capacity, initialize_population

logger = logging.getLogger(__name__)


class OptimizerState(str, Enum):
    INITIALIZING = "initializing"
    EVALUATING = "evaluating"
    CONVERGED = "converged"
    MAX_GENERATIONS = "max_generations"
    CANCELLED = "cancelled"
    DONE = "done"


@dataclass
class OptimizerSettings:
    """Tuning knobs of the genetic search."""

    population_size: int = 100
    max_generations: int = 200
    mutation_rate: float = 0.05
    mutation_fraction: float = 0.1
    elite_size: int = 10
    tournament_size: int = 5
    smart_fraction: float = 0.2
    stagnation_threshold: int = 20
    convergence_ratio: Optional[float] = 0.95
    convergence_window: int = 30
    time_limit: Optional[float] = None
    workers: int = 1
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.population_size < 1:
            raise ValueError("population_size must be at least 1")
        if self.max_generations < 0:
            raise ValueError("max_generations must not be negative")
        if not 0 <= self.elite_size <= self.population_size:
            raise ValueError("elite_size must be between 0 and population_size")
        if self.tournament_size < 1:
            raise ValueError("tournament_size must be at least 1")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be within [0, 1]")
        if not 0.0 <= self.smart_fraction <= 1.0:
            raise ValueError("smart_fraction must be within [0, 1]")
        if self.stagnation_threshold < 1:
            raise ValueError("stagnation_threshold must be at least 1")
        if self.convergence_window < 1:
            raise ValueError("convergence_window must be at least 1")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")


@dataclass
class OptimizationResult:
    plan: SeatingPlan
    state: OptimizerState
    generations: int
    best_history: List[float] = field(default_factory=list)
    problem: Optional[SeatingProblem] = None

    @property
    def fitness(self) -> float:
        return float(self.plan.fitness or 0.0)


class SeatingOptimizer:
    """Evolve seating plans until convergence, the generation ceiling or cancellation."""

    def __init__(
        self,
        guests: Sequence[Guest],
        tables: Sequence[Table],
        preferences: Sequence[SeatingPreference] = (),
        criteria: Optional[OptimizationCriteria] = None,
        settings: Optional[OptimizerSettings] = None,
        rng: Optional[np.random.Generator] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        on_generation: Optional[Callable[[int, float], None]] = None,
    ) -> None:
        self.guests = list(guests)
        self.tables = list(tables)
        self.preferences = list(preferences)
        self.criteria = criteria or OptimizationCriteria()
        self.settings = settings or OptimizerSettings()
        self.rng = rng if rng is not None else np.random.default_rng(self.settings.seed)
        self.should_stop = should_stop
        self.on_generation = on_generation
        self.state = OptimizerState.INITIALIZING
        self.best_history: List[float] = []

    # ----------------------------- convergence -----------------------------
    def _converged(self, best_fitness: float, stagnation: int) -> bool:
        s = self.settings
        if stagnation >= s.stagnation_threshold:
            return True
        # Ratio check is meaningless until fitness is positive.
        if s.convergence_ratio is None or best_fitness <= 0:
            return False
        if len(self.best_history) <= s.convergence_window:
            return False
        earlier = self.best_history[-s.convergence_window - 1]
        return earlier > 0 and earlier / best_fitness >= s.convergence_ratio

    def _cancelled(self, deadline: Optional[float]) -> bool:
        if deadline is not None and time.monotonic() >= deadline:
            return True
        return bool(self.should_stop and self.should_stop())

    # ----------------------------- main loop -----------------------------
    def run(self) -> OptimizationResult:
        s = self.settings
        self.state = OptimizerState.INITIALIZING
        check_capacity(self.guests, self.tables)
        deadline = time.monotonic() + s.time_limit if s.time_limit is not None else None

        problem = build_problem(self.guests, self.tables, self.preferences, self.criteria)
        population = initialize_population(problem, s.population_size, self.rng, s.smart_fraction)

        executor = ThreadPoolExecutor(max_workers=s.workers) if s.workers > 1 else None
        try:
            population, generations = self._evolve(problem, population, executor, deadline)
            evaluate_population(problem, population, executor)
        finally:
            if executor is not None:
                executor.shutdown()

        best = max(population, key=lambda p: p.fitness)
        finished = self.state
        self.state = OptimizerState.DONE
        logger.info(
            "Optimization finished (%s) after %d generations, fitness %.2f", finished.value, generations, best.fitness
        )
        return OptimizationResult(
            plan=best,
            state=finished,
            generations=generations,
            best_history=list(self.best_history),
            problem=problem,
        )

    def _evolve(self, problem: SeatingProblem, population: List[SeatingPlan], executor, deadline):
        s = self.settings
        self.best_history = []
        best_fitness = float("-inf")
        stagnation = 0

        for generation in range(s.max_generations):
            if self._cancelled(deadline):
                self.state = OptimizerState.CANCELLED
                logger.info("Optimization cancelled before generation %d", generation)
                return population, generation
            self.state = OptimizerState.EVALUATING

            evaluate_population(problem, population, executor)
            ranked = sorted(population, key=lambda p: p.fitness, reverse=True)
            current = ranked[0].fitness
            if current > best_fitness:
                best_fitness = current
                stagnation = 0
            else:
                stagnation += 1
            self.best_history.append(best_fitness)
            logger.debug("Generation %d: best %.2f, stagnation %d", generation, current, stagnation)
            if self.on_generation:
                self.on_generation(generation, current)

            if self._converged(best_fitness, stagnation):
                self.state = OptimizerState.CONVERGED
                logger.info("Converged at generation %d", generation)
                return ranked, generation + 1

            elite = ranked[: s.elite_size]
            parents = tournament_select(ranked, s.population_size - s.elite_size, self.rng, s.tournament_size)
            offspring = breed(problem, parents, self.rng, s.mutation_rate, s.mutation_fraction)
            population = (elite + offspring)[: s.population_size]

        self.state = OptimizerState.MAX_GENERATIONS
        return population, s.max_generations


def optimize(
    guests: Sequence[Guest],
    tables: Sequence[Table],
    preferences: Sequence[SeatingPreference] = (),
    criteria: Optional[OptimizationCriteria] = None,
    settings: Optional[OptimizerSettings] = None,
    rng: Optional[np.random.Generator] = None,
) -> SeatingPlan:
    """Return the best seating plan found.

    Raises ``InsufficientCapacityError`` before any search work when the tables
    cannot seat every guest.
    """
    return SeatingOptimizer(guests, tables, preferences, criteria, settings, rng).run().plan
