"""Tests for the genetic seating optimizer driver."""
import numpy as np
import pytest

from wedding_seating import optimizer as optimizer_module
from wedding_seating.errors import InsufficientCapacityError
from wedding_seating.models import Guest, PreferenceKind, SeatingPreference, Side, Table
from wedding_seating.optimizer import OptimizerSettings, OptimizerState, SeatingOptimizer, optimize

FAST = dict(population_size=30, max_generations=25, elite_size=4)


def _crowd(n):
    return [
        Guest(f"g{i}", name=f"Guest {i}", age=18 + (i * 7) % 50, side=Side.SIDE_A if i % 3 else Side.SIDE_B)
        for i in range(n)
    ]


def _assert_complete_and_within_capacity(plan, guests, tables):
    assert set(plan.assignments) == {g.id for g in guests}
    counts = {t.id: 0 for t in tables}
    for table in plan.assignments.values():
        counts[table] += 1
    for t in tables:
        assert counts[t.id] <= t.capacity


class TestFeasibility:
    def test_over_capacity_by_one_fails_before_population(self, monkeypatch):
        calls = []

        def counting_initializer(*args, **kwargs):
            calls.append(args)
            return []

        monkeypatch.setattr(optimizer_module, "initialize_population", counting_initializer)
        with pytest.raises(InsufficientCapacityError):
            optimize(_crowd(5), [Table("a", 2), Table("b", 2)])
        assert calls == []

    def test_no_tables_for_guests(self):
        with pytest.raises(InsufficientCapacityError):
            optimize(_crowd(1), [])


class TestScenarios:
    def test_family_is_seated_together(self, family_guests, two_small_tables):
        result = SeatingOptimizer(
            family_guests, two_small_tables, settings=OptimizerSettings(seed=7, **FAST)
        ).run()
        assignments = result.plan.assignments
        assert assignments["G1"] == assignments["G2"]
        assert result.fitness == pytest.approx(1240.0)

    def test_no_guests_returns_empty_plan_at_baseline(self):
        plan = optimize([], [Table("a", 8), Table("b", 6)], settings=OptimizerSettings(seed=1, **FAST))
        assert plan.assignments == {}
        assert plan.fitness == pytest.approx(1000.0)

    def test_accessibility_requirement_is_met(self):
        guests = _crowd(3)
        tables = [Table("plain", 2), Table("ramp", 2, accessible=True)]
        prefs = [SeatingPreference(PreferenceKind.WHEELCHAIR_ACCESSIBLE, ("g0",))]
        plan = optimize(guests, tables, prefs, settings=OptimizerSettings(seed=3, **FAST))
        assert plan.assignments["g0"] == "ramp"

    def test_conflicting_guests_are_separated(self):
        guests = _crowd(6)
        tables = [Table("a", 3), Table("b", 3)]
        prefs = [SeatingPreference(PreferenceKind.MUST_NOT_SIT_TOGETHER, ("g1", "g2"))]
        plan = optimize(guests, tables, prefs, settings=OptimizerSettings(seed=5, **FAST))
        assert plan.assignments["g1"] != plan.assignments["g2"]


class TestInvariants:
    def test_plan_is_complete_and_within_capacity(self):
        guests = _crowd(23)
        tables = [Table("a", 6), Table("b", 6), Table("c", 5), Table("d", 8)]
        plan = optimize(guests, tables, settings=OptimizerSettings(seed=11, **FAST))
        _assert_complete_and_within_capacity(plan, guests, tables)

    def test_same_seed_same_plan(self):
        guests = _crowd(15)
        tables = [Table("a", 6), Table("b", 6), Table("c", 6)]
        first = optimize(guests, tables, settings=OptimizerSettings(seed=42, **FAST))
        second = optimize(guests, tables, settings=OptimizerSettings(seed=42, **FAST))
        assert first.assignments == second.assignments
        assert first.fitness == second.fitness

    def test_injected_generator_is_used(self):
        guests = _crowd(12)
        tables = [Table("a", 6), Table("b", 6), Table("c", 6)]
        settings = OptimizerSettings(**FAST)
        first = optimize(guests, tables, settings=settings, rng=np.random.default_rng(8))
        second = optimize(guests, tables, settings=settings, rng=np.random.default_rng(8))
        assert first.assignments == second.assignments

    def test_worker_threads_do_not_change_result(self):
        guests = _crowd(15)
        tables = [Table("a", 6), Table("b", 6), Table("c", 6)]
        serial = optimize(guests, tables, settings=OptimizerSettings(seed=9, **FAST))
        threaded = optimize(guests, tables, settings=OptimizerSettings(seed=9, workers=3, **FAST))
        assert serial.assignments == threaded.assignments

    def test_best_fitness_never_decreases(self):
        guests = _crowd(18)
        tables = [Table("a", 5), Table("b", 5), Table("c", 5), Table("d", 5)]
        per_generation = []
        result = SeatingOptimizer(
            guests,
            tables,
            settings=OptimizerSettings(seed=2, convergence_ratio=None, stagnation_threshold=100, **FAST),
            on_generation=lambda generation, best: per_generation.append(best),
        ).run()
        assert len(per_generation) == FAST["max_generations"]
        assert per_generation == sorted(per_generation)
        assert result.best_history == sorted(result.best_history)
        assert result.fitness >= result.best_history[-1]


class TestStopping:
    def test_generation_ceiling(self):
        settings = OptimizerSettings(
            seed=1, population_size=10, elite_size=2, max_generations=3, stagnation_threshold=100, convergence_ratio=None
        )
        optimizer = SeatingOptimizer(_crowd(6), [Table("a", 4), Table("b", 4)], settings=settings)
        result = optimizer.run()
        assert result.state is OptimizerState.MAX_GENERATIONS
        assert result.generations == 3
        assert optimizer.state is OptimizerState.DONE

    def test_stagnation_converges(self):
        settings = OptimizerSettings(seed=1, population_size=10, elite_size=2, stagnation_threshold=5)
        result = SeatingOptimizer([], [Table("a", 4)], settings=settings).run()
        assert result.state is OptimizerState.CONVERGED
        assert result.generations == 6

    def test_ratio_converges_once_fitness_is_positive(self):
        settings = OptimizerSettings(
            seed=1, population_size=10, elite_size=2, stagnation_threshold=1000, convergence_window=3
        )
        result = SeatingOptimizer([], [Table("a", 4)], settings=settings).run()
        assert result.state is OptimizerState.CONVERGED
        assert result.generations == 4

    def test_ratio_check_inactive_at_zero_fitness(self):
        guests = _crowd(2)
        prefs = [SeatingPreference(PreferenceKind.MUST_NOT_SIT_TOGETHER, ("g0", "g1"))] * 2
        settings = OptimizerSettings(
            seed=1,
            population_size=10,
            elite_size=2,
            max_generations=10,
            stagnation_threshold=1000,
            convergence_window=3,
        )
        result = SeatingOptimizer(guests, [Table("only", 2)], prefs, settings=settings).run()
        assert result.fitness == 0.0
        assert result.state is OptimizerState.MAX_GENERATIONS

    def test_should_stop_cancels_before_first_generation(self):
        guests = _crowd(8)
        tables = [Table("a", 4), Table("b", 4)]
        result = SeatingOptimizer(
            guests, tables, settings=OptimizerSettings(seed=4, **FAST), should_stop=lambda: True
        ).run()
        assert result.state is OptimizerState.CANCELLED
        assert result.generations == 0
        _assert_complete_and_within_capacity(result.plan, guests, tables)
        assert result.plan.fitness is not None

    def test_time_limit_cancels(self):
        result = SeatingOptimizer(
            _crowd(8), [Table("a", 4), Table("b", 4)], settings=OptimizerSettings(seed=4, time_limit=0.0, **FAST)
        ).run()
        assert result.state is OptimizerState.CANCELLED


@pytest.mark.parametrize(
    "overrides",
    [dict(population_size=0), dict(elite_size=200), dict(mutation_rate=1.5), dict(workers=0), dict(tournament_size=0)],
)
def test_invalid_settings(overrides):
    with pytest.raises(ValueError):
        OptimizerSettings(**overrides)
