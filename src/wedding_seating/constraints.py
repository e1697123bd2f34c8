"""
Constraint and group model.

Guests and tables are mapped once per run to small integer handles so a plan
can be stored as a ``table_of[guest_index]`` array. Relationship links are
folded into connected groups, and seating preferences are compiled against
the guest handles they reference.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from .models import (
    ConstraintType,
    ConstraintViolation,
    Guest,
    OptimizationCriteria,
    PreferenceKind,
    SeatingPlan,
    SeatingPreference,
    Side,
    Table,
)

logger = logging.getLogger(__name__)

SIDE_NONE, SIDE_A, SIDE_B = 0, 1, 2
_SIDE_CODE = {None: SIDE_NONE, Side.SIDE_A: SIDE_A, Side.SIDE_B: SIDE_B}


@dataclass(frozen=True)
class CompiledPreference:
    """A preference resolved to guest handles."""

    kind: PreferenceKind
    guests: np.ndarray
    type: ConstraintType
    severity: int


@dataclass
class SeatingProblem:
    """Immutable arena shared by every plan of one optimization run."""

    guest_ids: Tuple[str, ...]
    table_ids: Tuple[str, ...]
    capacities: np.ndarray
    accessible: np.ndarray
    ages: np.ndarray
    sides: np.ndarray
    needs_accessibility: np.ndarray
    groups: List[np.ndarray]
    linked: List[np.ndarray]
    preferences: List[CompiledPreference]
    criteria: OptimizationCriteria
    guest_index: Dict[str, int] = field(default_factory=dict)
    _by_guest: Dict[int, List[CompiledPreference]] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self.guest_index:
            self.guest_index = {gid: i for i, gid in enumerate(self.guest_ids)}
        for pref in self.preferences:
            for g in pref.guests:
                self._by_guest.setdefault(int(g), []).append(pref)

    @property
    def n_guests(self) -> int:
        return len(self.guest_ids)

    @property
    def n_tables(self) -> int:
        return len(self.table_ids)

    @property
    def total_capacity(self) -> int:
        return int(self.capacities.sum())

    def new_plan(self, table_of: np.ndarray) -> SeatingPlan:
        return SeatingPlan(table_of, self.guest_ids, self.table_ids)

    def preferences_for(self, guest_id: str) -> List[CompiledPreference]:
        """Compiled preferences that mention ``guest_id``."""
        idx = self.guest_index.get(guest_id)
        if idx is None:
            return []
        return list(self._by_guest.get(idx, []))


def build_relationship_graph(guests: Sequence[Guest]) -> nx.Graph:
    """Undirected graph of guests with one edge per known relationship link."""
    graph = nx.Graph()
    known = {g.id for g in guests}
    for g in guests:
        graph.add_node(g.id)
    for g in guests:
        for link in g.relationships:
            if link.guest_id == g.id:
                continue
            if link.guest_id not in known:
                logger.warning("Ignoring relationship from %s to unknown guest %s", g.id, link.guest_id)
                continue
            graph.add_edge(g.id, link.guest_id, kind=link.kind)
    return graph


def build_groups(guests: Sequence[Guest], graph: Optional[nx.Graph] = None) -> List[List[str]]:
    """Partition guests into groups chained by relationship links.

    Every guest appears in exactly one group; guests without links form
    singleton groups. Groups are ordered largest first, then by the position of
    their first member in ``guests``.
    """
    if graph is None:
        graph = build_relationship_graph(guests)
    order = {g.id: i for i, g in enumerate(guests)}
    groups = [sorted(component, key=order.__getitem__) for component in nx.connected_components(graph)]
    return sorted(groups, key=lambda members: (-len(members), order[members[0]]))


def compile_preferences(
    preferences: Sequence[SeatingPreference],
    guest_index: Dict[str, int],
    criteria: OptimizationCriteria,
) -> List[CompiledPreference]:
    """Resolve preference guest ids to handles.

    A preference naming any unknown guest is ignored as a whole.
    """
    compiled: List[CompiledPreference] = []
    for pref in preferences:
        unknown = [gid for gid in pref.guest_ids if gid not in guest_index]
        if unknown:
            logger.warning(
                "Preference %s references unknown guest(s) %s; ignoring it", pref.kind.value, ", ".join(unknown)
            )
            continue
        handles: List[int] = []
        for gid in pref.guest_ids:
            if guest_index[gid] not in handles:
                handles.append(guest_index[gid])
        if not handles:
            logger.warning("Preference %s has no guests; skipped", pref.kind.value)
            continue
        hard = pref.hard and criteria.respect_all_constraints
        compiled.append(
            CompiledPreference(
                kind=pref.kind,
                guests=np.array(handles, dtype=np.intp),
                type=ConstraintType.HARD if hard else ConstraintType.SOFT,
                severity=pref.severity,
            )
        )
    return compiled


def build_problem(
    guests: Sequence[Guest],
    tables: Sequence[Table],
    preferences: Sequence[SeatingPreference] = (),
    criteria: Optional[OptimizationCriteria] = None,
) -> SeatingProblem:
    """Index guests, tables and preferences for one optimization run."""
    criteria = criteria or OptimizationCriteria()
    guest_ids = tuple(g.id for g in guests)
    if len(set(guest_ids)) != len(guest_ids):
        raise ValueError("Guest ids must be unique")
    table_ids = tuple(t.id for t in tables)
    if len(set(table_ids)) != len(table_ids):
        raise ValueError("Table ids must be unique")
    guest_index = {gid: i for i, gid in enumerate(guest_ids)}

    graph = build_relationship_graph(guests)
    groups = [
        np.array([guest_index[gid] for gid in members], dtype=np.intp)
        for members in build_groups(guests, graph)
        if len(members) > 1
    ]
    linked = [
        np.array(sorted(guest_index[other] for other in graph.neighbors(gid)), dtype=np.intp)
        for gid in guest_ids
    ]

    return SeatingProblem(
        guest_ids=guest_ids,
        table_ids=table_ids,
        capacities=np.array([int(t.capacity) for t in tables], dtype=np.int64),
        accessible=np.array([bool(t.accessible) for t in tables], dtype=bool),
        ages=np.array([g.effective_age for g in guests], dtype=float),
        sides=np.array([_SIDE_CODE[g.side] for g in guests], dtype=np.int8),
        needs_accessibility=np.array([bool(g.needs_accessibility) for g in guests], dtype=bool),
        groups=groups,
        linked=linked,
        preferences=compile_preferences(preferences, guest_index, criteria),
        criteria=criteria,
        guest_index=guest_index,
    )


def is_satisfied(problem: SeatingProblem, pref: CompiledPreference, table_of: np.ndarray) -> bool:
    seated = table_of[pref.guests]
    if pref.kind is PreferenceKind.MUST_SIT_TOGETHER:
        return np.unique(seated).size <= 1
    if pref.kind is PreferenceKind.MUST_NOT_SIT_TOGETHER:
        return np.unique(seated).size == seated.size
    if pref.kind is PreferenceKind.WHEELCHAIR_ACCESSIBLE:
        return bool(problem.accessible[seated].all())
    raise ValueError(f"Unsupported preference kind: {pref.kind}")


def check_violations(problem: SeatingProblem, table_of: np.ndarray) -> List[ConstraintViolation]:
    """Return one violation per compiled preference the assignment breaks."""
    violations: List[ConstraintViolation] = []
    for pref in problem.preferences:
        if is_satisfied(problem, pref, table_of):
            continue
        names = tuple(problem.guest_ids[int(g)] for g in pref.guests)
        violations.append(
            ConstraintViolation(
                type=pref.type,
                severity=pref.severity,
                guest_ids=names,
                message=f"{pref.kind.value} not met for {', '.join(names)}",
            )
        )
    return violations
