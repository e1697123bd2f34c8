"""Data models for WeddingSeating."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple
import math

import numpy as np


DEFAULT_AGE = 30


def parse_pipe_list(value: object) -> List[str]:
    """Split a pipe separated string into a list.

    Empty values such as ``""`` or ``None`` return an empty list.
    ``pandas`` often provides ``float('nan')`` for missing values which is
    also treated as empty.
    """
    if value is None:
        return []
    if isinstance(value, float) and math.isnan(value):
        return []
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return []
    return [part.strip() for part in text.split("|") if part.strip()]


def parse_bool(value: object, default: bool = False) -> bool:
    """Parse common truthy strings into bool.

    Missing values (``None`` or NaN) fall back to ``default``.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    return text in ("true", "yes", "y", "1")


class Side(str, Enum):
    """Which side of the wedding party a guest belongs to."""

    SIDE_A = "sideA"
    SIDE_B = "sideB"

    @classmethod
    def parse(cls, value: object) -> Optional["Side"]:
        """Return the side for ``value`` or ``None`` when it is missing."""
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return None
        if isinstance(value, Side):
            return value
        text = str(value).strip()
        if not text:
            return None
        return _SIDE_ALIASES.get(text.lower()) or cls(text)


_SIDE_ALIASES = {
    "sidea": Side.SIDE_A,
    "a": Side.SIDE_A,
    "bride": Side.SIDE_A,
    "sideb": Side.SIDE_B,
    "b": Side.SIDE_B,
    "groom": Side.SIDE_B,
}


class RelationshipKind(str, Enum):
    FAMILY = "family"
    FRIEND = "friend"
    COLLEAGUE = "colleague"
    PLUS_ONE = "plus_one"


class PreferenceKind(str, Enum):
    WHEELCHAIR_ACCESSIBLE = "wheelchair_accessible"
    MUST_SIT_TOGETHER = "must_sit_together"
    MUST_NOT_SIT_TOGETHER = "must_not_sit_together"


class ConstraintType(str, Enum):
    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True)
class RelationshipLink:
    """One directed link from a guest to another guest."""

    guest_id: str
    kind: RelationshipKind = RelationshipKind.FAMILY


@dataclass(frozen=True)
class Guest:
    """Representation of a wedding guest."""

    id: str
    name: str = ""
    age: Optional[int] = None
    side: Optional[Side] = None
    needs_accessibility: bool = False
    relationships: Tuple[RelationshipLink, ...] = ()

    @property
    def effective_age(self) -> int:
        """Age used for scoring. Missing or zero ages count as ``DEFAULT_AGE``."""
        return self.age if self.age else DEFAULT_AGE


@dataclass(frozen=True)
class Table:
    """Dinner table definition."""

    id: str
    capacity: int
    accessible: bool = False
    name: str = ""

    def __post_init__(self) -> None:
        if int(self.capacity) <= 0:
            raise ValueError(f"Table {self.id} must have a positive capacity, got {self.capacity}")


@dataclass(frozen=True)
class Relationship:
    """Undirected relationship between two guests."""

    a: str
    b: str
    kind: RelationshipKind = RelationshipKind.FAMILY


@dataclass(frozen=True)
class SeatingPreference:
    """A seating rule over a set of guests."""

    kind: PreferenceKind
    guest_ids: Tuple[str, ...]
    hard: bool = True
    severity: int = 100

    def __post_init__(self) -> None:
        if not 0 <= self.severity <= 100:
            raise ValueError(f"Preference severity must be within 0-100, got {self.severity}")

    @property
    def constraint_type(self) -> ConstraintType:
        return ConstraintType.HARD if self.hard else ConstraintType.SOFT


@dataclass
class OptimizationCriteria:
    """Toggles for the soft terms of the fitness function."""

    prioritize_family_groups: bool = True
    mix_guest_sides: bool = True
    balance_table_ages: bool = True
    minimize_empty_seats: bool = False
    prefer_even_distribution: bool = True
    prioritize_accessibility: bool = True
    respect_all_constraints: bool = True
    avoid_isolated_guests: bool = False


@dataclass(frozen=True)
class ConstraintViolation:
    type: ConstraintType
    severity: int
    guest_ids: Tuple[str, ...]
    message: str = ""


@dataclass
class SeatingPlan:
    """Candidate assignment of every guest to one table.

    ``table_of[i]`` holds the table handle of guest ``i``. Handles index into
    ``guest_ids`` and ``table_ids``. ``fitness`` stays ``None`` until the plan
    has been scored.
    """

    table_of: np.ndarray
    guest_ids: Tuple[str, ...]
    table_ids: Tuple[str, ...]
    fitness: Optional[float] = None

    @property
    def assignments(self) -> Dict[str, str]:
        """Mapping of guest id to table id."""
        return {gid: self.table_ids[int(t)] for gid, t in zip(self.guest_ids, self.table_of)}

    def occupancy(self) -> np.ndarray:
        """Number of guests seated at each table, in table order."""
        return np.bincount(self.table_of, minlength=len(self.table_ids))

    def members_by_table(self) -> Dict[str, List[str]]:
        """Guest ids per table id. Empty tables map to an empty list."""
        members: Dict[str, List[str]] = {tid: [] for tid in self.table_ids}
        for gid, t in zip(self.guest_ids, self.table_of):
            members[self.table_ids[int(t)]].append(gid)
        return members

    def copy(self) -> "SeatingPlan":
        return SeatingPlan(self.table_of.copy(), self.guest_ids, self.table_ids, self.fitness)

    def with_assignment(self, table_of: np.ndarray) -> "SeatingPlan":
        """New unevaluated plan over the same guests and tables."""
        return SeatingPlan(table_of, self.guest_ids, self.table_ids)


@dataclass
class PlanSummary:
    """Plan level totals used by reports."""

    guests: int
    capacity: int
    tables_used: int
    empty_seats: int
    utilization: float
    violations: List[ConstraintViolation] = field(default_factory=list)
