import numpy as np
import pytest

from wedding_seating.constraints import build_problem
from wedding_seating.errors import InsufficientCapacityError
from wedding_seating.models import Guest, RelationshipKind, RelationshipLink, Table
from wedding_seating.population import check_capacity, initialize_population, random_plan, smart_plan


def _guests(n):
    return [Guest(f"g{i}") for i in range(n)]


def _assert_valid(problem, plan):
    assert plan.table_of.shape == (problem.n_guests,)
    assert (plan.table_of >= 0).all()
    assert (plan.occupancy() <= problem.capacities).all()
    assert set(plan.assignments) == set(problem.guest_ids)


def test_check_capacity():
    check_capacity(_guests(4), [Table("a", 2), Table("b", 2)])
    with pytest.raises(InsufficientCapacityError) as exc:
        check_capacity(_guests(5), [Table("a", 2), Table("b", 2)])
    assert exc.value.guests == 5
    assert exc.value.capacity == 4


def test_smart_plan_seats_group_at_first_table_that_fits():
    family = (RelationshipLink("b", RelationshipKind.FAMILY),)
    guests = [
        Guest("a", relationships=family),
        Guest("b"),
        Guest("c", relationships=(RelationshipLink("b", RelationshipKind.PLUS_ONE),)),
        Guest("d"),
        Guest("e"),
    ]
    tables = [Table("small", 2), Table("medium", 3), Table("large", 4)]
    problem = build_problem(guests, tables)

    plan = smart_plan(problem, np.random.default_rng(0))
    _assert_valid(problem, plan)
    assignments = plan.assignments
    assert assignments["a"] == assignments["b"] == assignments["c"] == "medium"
    # ungrouped guests fill the first table with a free seat
    assert assignments["d"] == assignments["e"] == "small"


def test_smart_plan_prefers_table_order_over_tight_fit():
    guests = [Guest("a", relationships=(RelationshipLink("b", RelationshipKind.FAMILY),)), Guest("b")]
    problem = build_problem(guests, [Table("big", 8), Table("small", 2)])
    plan = smart_plan(problem, np.random.default_rng(0))
    assert plan.assignments["a"] == plan.assignments["b"] == "big"


def test_smart_plan_places_groups_in_guest_order():
    guests = [
        Guest("a", relationships=(RelationshipLink("b", RelationshipKind.PLUS_ONE),)),
        Guest("b"),
        Guest("c", relationships=(RelationshipLink("d", RelationshipKind.FAMILY),)),
        Guest("d", relationships=(RelationshipLink("e", RelationshipKind.FAMILY),)),
        Guest("e"),
    ]
    problem = build_problem(guests, [Table("t1", 3), Table("t2", 3)])
    for seed in range(3):
        assignments = smart_plan(problem, np.random.default_rng(seed)).assignments
        assert assignments["a"] == assignments["b"] == "t1"
        assert assignments["c"] == assignments["d"] == assignments["e"] == "t2"


def test_smart_plan_splits_group_that_fits_nowhere():
    links = tuple(RelationshipLink(f"g{i}", RelationshipKind.FAMILY) for i in range(1, 5))
    guests = [Guest("g0", relationships=links)] + [Guest(f"g{i}") for i in range(1, 5)]
    problem = build_problem(guests, [Table("a", 3), Table("b", 3)])
    plan = smart_plan(problem, np.random.default_rng(3))
    _assert_valid(problem, plan)
    assert plan.occupancy().tolist() == [3, 2]


@pytest.mark.parametrize("seed", range(5))
def test_random_plan_is_complete_and_within_capacity(seed):
    problem = build_problem(_guests(17), [Table("a", 5), Table("b", 4), Table("c", 8), Table("d", 1)])
    _assert_valid(problem, random_plan(problem, np.random.default_rng(seed)))


def test_initialize_population():
    problem = build_problem(_guests(9), [Table("a", 4), Table("b", 6)])
    population = initialize_population(problem, 10, np.random.default_rng(1))
    assert len(population) == 10
    for plan in population:
        _assert_valid(problem, plan)
        assert plan.fitness is None


def test_initialize_population_without_guests():
    problem = build_problem([], [Table("a", 4)])
    population = initialize_population(problem, 3, np.random.default_rng(1))
    assert [plan.assignments for plan in population] == [{}, {}, {}]
